"""Read-models handed to the Presentation Layer."""

from dataclasses import dataclass

from liftmosque_admin.domain.entities.report import ReportEntity


@dataclass(frozen=True)
class ReportView:
    """A report row with human-readable reporter/reported names."""

    report: ReportEntity
    reporter_name: str
    reported_name: str


@dataclass(frozen=True)
class DashboardCounts:
    """Aggregate counts shown on the overview page (scoped to the operator)."""

    users: int = 0
    trips: int = 0
    mosques: int = 0
    pending_reports: int = 0
