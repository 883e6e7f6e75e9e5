"""Console configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (FIREBASE_API_KEY and a project id)
are validated at load time.
"""

import json
from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from liftmosque_admin.domain.enums import MissingProfilePolicy


class Settings(BaseSettings):
    """Console settings loaded from environment and .env.

    Firebase Authentication always needs the web API key. Firestore requests
    are authorized with the signed-in operator's ID token (same as the web
    console), unless a service account is configured, in which case
    google-auth service account tokens are used instead.
    """

    # App
    app_name: str = "liftmosque-admin"
    debug: bool = False

    # Firebase project
    firebase_api_key: SecretStr = SecretStr("")
    firebase_project_id: str = ""
    firestore_database: str = "(default)"
    # Optional: service account (env JSON or file path). Switches Firestore auth mode.
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    # Collections (defaults match the mobile app)
    collection_mosques: str = "mosques"
    collection_trips: str = "trips"
    collection_users: str = "users"
    collection_reports: str = "reports"

    # Live subscriptions
    live_poll_interval_seconds: float = 5.0
    # Push the mosque equality filter into runQuery; results are filtered
    # client-side either way.
    scope_pushdown: bool = False

    # Session policy for an authenticated identity with no profile document:
    # "global_admin" (historical fallback) or "deny".
    missing_profile_policy: MissingProfilePolicy = MissingProfilePolicy.GLOBAL_ADMIN

    # Redis pub/sub: cross-process change notifications for live subscriptions
    redis_enabled: bool = False
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def uses_service_account(self) -> bool:
        """True when Firestore requests use service account credentials."""
        has_key = (
            self.firebase_service_account_key is not None
            and bool(self.firebase_service_account_key.get_secret_value())
        )
        return has_key or bool(self.firebase_service_account_path)

    def service_account_info(self) -> dict | None:
        """Return the service account dict from env key or file path, or None."""
        if self.firebase_service_account_key is not None:
            raw = self.firebase_service_account_key.get_secret_value()
            if raw:
                try:
                    return json.loads(raw)
                except json.JSONDecodeError as e:
                    raise ValueError(
                        "FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON"
                    ) from e
        if self.firebase_service_account_path:
            path = Path(self.firebase_service_account_path).expanduser().resolve()
            if not path.is_file():
                raise ValueError(
                    f"FIREBASE_SERVICE_ACCOUNT_PATH not found: {path}"
                )
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        return None

    @property
    def resolved_project_id(self) -> str:
        """Project id from settings, falling back to the service account's project_id."""
        if self.firebase_project_id:
            return self.firebase_project_id
        info = self.service_account_info()
        return (info or {}).get("project_id", "")

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate required Firebase settings and the poll interval."""
        if not self.firebase_api_key.get_secret_value():
            raise ValueError(
                "FIREBASE_API_KEY is required (Firebase console → Project settings → Web API key)."
            )
        if not self.firebase_project_id and not self.uses_service_account:
            raise ValueError(
                "Set FIREBASE_PROJECT_ID, or provide FIREBASE_SERVICE_ACCOUNT_KEY / "
                "FIREBASE_SERVICE_ACCOUNT_PATH so the project id can be read from it."
            )
        if self.live_poll_interval_seconds <= 0:
            raise ValueError("live_poll_interval_seconds must be positive")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.
    """
    return Settings()
