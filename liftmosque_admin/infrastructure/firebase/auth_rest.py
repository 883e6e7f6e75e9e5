"""Firebase Authentication over REST (Identity Toolkit v1 + Secure Token v1).

Each FirebaseAuthContext is one independent session with its own tokens and
HTTP connection pool, mirroring a named Firebase app instance in the client
SDKs. Registering an account signs it in on the context that registered it,
which is why provisioning uses an isolated context rather than the primary.
"""

from __future__ import annotations

import itertools
import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx

from liftmosque_admin.application.dtos.identity import Identity
from liftmosque_admin.application.interfaces.identity import IdentityListener
from liftmosque_admin.domain.exceptions import (
    AuthenticationException,
    RemoteOperationException,
)
from liftmosque_admin.shared.telemetry.tracing import traced
from liftmosque_admin.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_IDENTITY_BASE = "https://identitytoolkit.googleapis.com/v1"
_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
# Refresh ID tokens this long before they expire.
_REFRESH_MARGIN = timedelta(seconds=60)

_context_ids = itertools.count(1)


@dataclass(frozen=True)
class _TokenSession:
    uid: str
    email: str | None
    id_token: str
    refresh_token: str
    expires_at: datetime

    def identity(self) -> Identity:
        return Identity(uid=self.uid, email=self.email)


def _expiry(expires_in: object) -> datetime:
    try:
        seconds = int(expires_in)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        seconds = 3600
    return utc_now() + timedelta(seconds=seconds)


def _raise_for_auth_error(resp: httpx.Response, operation: str) -> None:
    """Map an Identity Toolkit error body to AuthenticationException.

    The provider's message is kept verbatim (e.g. "EMAIL_EXISTS",
    "WEAK_PASSWORD : Password should be at least 6 characters").
    """
    if resp.status_code == 200:
        return
    try:
        error = resp.json().get("error", {})
    except (json.JSONDecodeError, AttributeError):
        error = {}
    message = error.get("message") if isinstance(error, dict) else None
    if resp.status_code in (400, 401, 403) and message:
        code = message.split(":", 1)[0].strip()
        raise AuthenticationException(message, provider_code=code)
    raise RemoteOperationException(
        operation, message or resp.reason_phrase, resp.status_code
    )


class FirebaseAuthContext:
    """One Firebase Auth session (implements IAuthContext)."""

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        owns_http_client: bool | None = None,
        timeout: float = 30.0,
        name: str = "primary",
    ) -> None:
        self._api_key = api_key
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None if owns_http_client is None else owns_http_client
        self._session: _TokenSession | None = None
        self._listeners: list[IdentityListener] = []
        self._closed = False
        self.name = name

    @property
    def current_identity(self) -> Identity | None:
        return self._session.identity() if self._session else None

    @property
    def closed(self) -> bool:
        return self._closed

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Register listener; returned callable unregisters it (idempotent)."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set_session(self, session: _TokenSession | None) -> None:
        previous = self.current_identity
        self._session = session
        current = self.current_identity
        if previous == current:
            return
        logger.debug(
            "Auth context %s identity changed: %s -> %s",
            self.name,
            previous.uid if previous else None,
            current.uid if current else None,
        )
        for listener in list(self._listeners):
            try:
                listener(current)
            except Exception:
                logger.exception("Identity listener failed on context %s", self.name)

    async def _post_identity(self, endpoint: str, payload: dict, operation: str) -> dict:
        if self._closed:
            raise RuntimeError(f"Auth context {self.name} is closed")
        try:
            resp = await self._http.post(
                f"{_IDENTITY_BASE}/{endpoint}",
                params={"key": self._api_key},
                json=payload,
            )
        except httpx.TransportError as e:
            raise RemoteOperationException(operation, str(e) or type(e).__name__) from e
        _raise_for_auth_error(resp, operation)
        return resp.json()

    def _session_from(self, data: dict, fallback_email: str) -> _TokenSession:
        return _TokenSession(
            uid=data["localId"],
            email=data.get("email") or fallback_email,
            id_token=data["idToken"],
            refresh_token=data["refreshToken"],
            expires_at=_expiry(data.get("expiresIn")),
        )

    @traced("firebase_auth.sign_in")
    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email and password.

        Raises:
            AuthenticationException: Bad credentials, disabled user, throttling.
            RemoteOperationException: Network or provider outage.
        """
        data = await self._post_identity(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
            "sign in",
        )
        session = self._session_from(data, email)
        self._set_session(session)
        logger.info("Signed in uid=%s on context %s", session.uid, self.name)
        return session.identity()

    @traced("firebase_auth.create_credential")
    async def create_credential(self, email: str, password: str) -> Identity:
        """Register an email/password account; it becomes this context's identity.

        Raises:
            AuthenticationException: Email already in use, weak password, invalid email.
        """
        data = await self._post_identity(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
            "create credential",
        )
        session = self._session_from(data, email)
        self._set_session(session)
        logger.info("Registered uid=%s on context %s", session.uid, self.name)
        return session.identity()

    @traced("firebase_auth.delete_current_user")
    async def delete_current_user(self) -> None:
        """Delete the signed-in account, then sign this context out."""
        token = await self.get_id_token()
        if token is None:
            return
        await self._post_identity("accounts:delete", {"idToken": token}, "delete account")
        self._set_session(None)

    async def sign_out(self) -> None:
        """Forget the local session (Firebase sign-out is client-side only)."""
        self._set_session(None)

    @traced("firebase_auth.refresh")
    async def _refresh(self, session: _TokenSession) -> _TokenSession:
        try:
            resp = await self._http.post(
                _TOKEN_URL,
                params={"key": self._api_key},
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": session.refresh_token,
                },
            )
        except httpx.TransportError as e:
            raise RemoteOperationException("refresh token", str(e) or type(e).__name__) from e
        _raise_for_auth_error(resp, "refresh token")
        data = resp.json()
        return _TokenSession(
            uid=data.get("user_id", session.uid),
            email=session.email,
            id_token=data["id_token"],
            refresh_token=data.get("refresh_token", session.refresh_token),
            expires_at=_expiry(data.get("expires_in")),
        )

    async def get_id_token(self) -> str | None:
        """Current ID token, refreshed when it is about to expire; None when signed out."""
        session = self._session
        if session is None:
            return None
        if session.expires_at - _REFRESH_MARGIN > utc_now():
            return session.id_token
        refreshed = await self._refresh(session)
        # A sign-out during the refresh wins.
        if self._session is session:
            self._session = refreshed
        return refreshed.id_token

    async def aclose(self) -> None:
        """Sign out and release the HTTP pool (if owned). Idempotent."""
        if self._closed:
            return
        self._set_session(None)
        self._listeners.clear()
        self._closed = True
        if self._owns_http:
            await self._http.aclose()


class FirebaseIdentityProvider:
    """Identity provider: the operator's primary context plus isolated contexts.

    Isolated contexts share the API key (same project) but nothing else: own
    session state, own HTTP pool.
    """

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 30.0,
        http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._http_client_factory = http_client_factory
        self._primary = self._new_context("primary")

    def _new_context(self, name: str) -> FirebaseAuthContext:
        if self._http_client_factory is None:
            return FirebaseAuthContext(self._api_key, timeout=self._timeout, name=name)
        return FirebaseAuthContext(
            self._api_key,
            http_client=self._http_client_factory(),
            owns_http_client=True,
            name=name,
        )

    @property
    def primary(self) -> FirebaseAuthContext:
        return self._primary

    @asynccontextmanager
    async def isolated_context(self) -> AsyncIterator[FirebaseAuthContext]:
        """Yield a fresh context; it is signed out and closed on every exit path."""
        context = self._new_context(f"isolated-{next(_context_ids)}")
        logger.debug("Opened auth context %s", context.name)
        try:
            yield context
        finally:
            await context.aclose()
            logger.debug("Closed auth context %s", context.name)

    async def aclose(self) -> None:
        await self._primary.aclose()
