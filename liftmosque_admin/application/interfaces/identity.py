"""Identity provider interfaces (ports) for the application layer."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from liftmosque_admin.application.dtos.identity import Identity

IdentityListener = Callable[["Identity | None"], None]


class IAuthContext(Protocol):
    """One authentication session (its own signed-in identity and tokens)."""

    @property
    def current_identity(self) -> Identity | None:
        """The identity signed in on this context, if any."""

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener called synchronously on sign-in/sign-out. Returns unsubscribe."""

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email/password; raises AuthenticationException."""

    async def sign_out(self) -> None:
        """Forget the signed-in identity (local; idempotent)."""

    async def create_credential(self, email: str, password: str) -> Identity:
        """Register a new email/password account; the new account becomes this context's identity."""

    async def delete_current_user(self) -> None:
        """Delete the account signed in on this context (used to roll back provisioning)."""

    async def get_id_token(self) -> str | None:
        """Fresh ID token of the signed-in identity, refreshing it if needed."""

    async def aclose(self) -> None:
        """Release every resource held by this context."""


class IIdentityProvider(Protocol):
    """Identity provider: one primary context plus isolated secondary contexts."""

    @property
    def primary(self) -> IAuthContext:
        """The operator's own session."""

    def isolated_context(self) -> AbstractAsyncContextManager[IAuthContext]:
        """A fresh context on the same project, torn down on exit (any exit path)."""
