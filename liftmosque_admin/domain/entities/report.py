"""Report domain entity.

A report is filed by one user against another. An administrator answers it
once: the report moves from PENDING to ALERTED, carrying the admin's comment,
and the reported user is notified by the mobile app (isRead=False).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from liftmosque_admin.domain.entities._fields import text, timestamp
from liftmosque_admin.domain.enums import ReportStatus
from liftmosque_admin.domain.exceptions import (
    StateConflictException,
    ValidationException,
)


@dataclass
class ReportEntity:
    """Report with its one-way status transition."""

    id: str
    reporter_id: str | None
    reported_user_id: str | None
    reason: str | None
    status: ReportStatus = ReportStatus.PENDING
    admin_comment: str | None = None
    mosque_id: str | None = None
    created_at: datetime | None = None
    responded_at: datetime | None = None
    is_read: bool | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == ReportStatus.PENDING

    def mark_alerted(self, comment: str, at: datetime) -> None:
        """Move PENDING -> ALERTED with the admin's comment.

        Raises:
            ValidationException: If the comment is blank.
            StateConflictException: If the report was already alerted.
        """
        if not comment or not comment.strip():
            raise ValidationException("Alert message is required", field="message")
        if self.status == ReportStatus.ALERTED:
            raise StateConflictException(
                "Report has already been alerted",
                report_id=self.id,
                status=self.status.value,
            )
        self.status = ReportStatus.ALERTED
        self.admin_comment = comment
        self.responded_at = at
        self.is_read = False

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "ReportEntity":
        """Build from a Firestore document. A missing status means PENDING.

        Raises:
            ValidationException: If status holds an unknown value.
        """
        raw_status = data.get("status") or ReportStatus.PENDING.value
        try:
            status = ReportStatus(raw_status)
        except ValueError:
            raise ValidationException(
                f"Unknown report status: {raw_status!r}", field="status"
            ) from None
        is_read = data.get("isRead")
        return cls(
            id=doc_id,
            reporter_id=text(data, "reporterId"),
            reported_user_id=text(data, "reportedUserId"),
            reason=text(data, "reason"),
            status=status,
            admin_comment=text(data, "adminComment"),
            mosque_id=text(data, "mosqueId"),
            created_at=timestamp(data, "createdAt"),
            responded_at=timestamp(data, "respondedAt"),
            is_read=is_read if isinstance(is_read, bool) else None,
        )
