"""Domain exceptions for the console core.

Every failure a command or the session can report to the Presentation Layer
is a LiftMosqueException subclass carrying a user-displayable message, a
machine-readable error_code, and optional details.
"""

from typing import Any


class LiftMosqueException(Exception):
    """Base exception for all console errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, record_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form (error, message, details)."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(LiftMosqueException):
    """Raised when command input is malformed or missing. Nothing is written."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(LiftMosqueException):
    """Raised by the identity provider (bad credentials, weak password, email in use).

    The message is the provider's own message; the raw provider code is kept
    in details["provider_code"].
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        provider_code: str | None = None,
    ) -> None:
        details = {"provider_code": provider_code} if provider_code else {}
        super().__init__(message, "AUTHENTICATION_ERROR", details)


class AuthorizationException(LiftMosqueException):
    """Raised when the operator's role or scope does not allow the operation."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional resource, action, and message.

        Args:
            resource: Optional record kind (e.g. 'trip', 'report').
            action: Optional action that was attempted (e.g. 'delete').
            message: Human-readable message; default used when resource/action omitted.
        """
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(LiftMosqueException):
    """Raised when a requested record does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class StateConflictException(LiftMosqueException):
    """Raised when a write conflicts with the record's current state (e.g. re-alerting a report)."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "STATE_CONFLICT", details)


class RemoteOperationException(LiftMosqueException):
    """Raised when a Firestore or Firebase Auth call fails at the network/store level."""

    def __init__(
        self,
        operation: str,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {"operation": operation, "reason": reason}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            f"Remote operation failed: {operation}",
            "REMOTE_OPERATION_ERROR",
            details,
        )


class SessionNotReadyException(LiftMosqueException):
    """Raised when a command needs a signed-in operator whose profile is loaded."""

    def __init__(self) -> None:
        super().__init__(
            "No signed-in operator (or the session is still initializing)",
            "SESSION_NOT_READY",
        )
