"""Command outcomes for the Presentation Layer.

run_command() turns a domain exception into a displayable failure, the same
mapping an HTTP layer would do with exception handlers. Anything that is not
a LiftMosqueException is a bug and propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from liftmosque_admin.domain.exceptions import LiftMosqueException

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CommandResult(Generic[T]):
    """Success with a value, or failure with a user-displayable message."""

    ok: bool
    value: T | None = None
    error_code: str | None = None
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: T | None = None) -> CommandResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, exc: LiftMosqueException) -> CommandResult[T]:
        return cls(
            ok=False,
            error_code=exc.error_code,
            message=exc.message,
            details=dict(exc.details),
        )


async def run_command(operation: Awaitable[T]) -> CommandResult[T]:
    """Await operation and wrap its outcome."""
    try:
        value = await operation
    except LiftMosqueException as e:
        logger.info("Command failed (%s): %s", e.error_code, e.message)
        return CommandResult.failure(e)
    return CommandResult.success(value)
