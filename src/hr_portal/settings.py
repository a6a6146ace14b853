"""
hr_portal.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings for the auth backend, database, object storage and e-mail.
- Hide secrets (service keys, storage credentials, cron secret) from repr/logging.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Every handler reads the same settings object; nothing is read from the
    environment at request time.
    """

    model_config = SettingsConfigDict(env_prefix="HRP_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev tokens.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "hr-portal-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Authentication backend (Supabase GoTrue)
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = Field(default="", repr=False)
    supabase_service_role_key: str = Field(default="", repr=False)
    auth_timeout_seconds: float = 10.0

    # "local" verifies access tokens with the project JWT secret,
    # "remote" asks the auth backend for the token's user.
    token_verification: Literal["local", "remote"] = "local"
    jwt_alg: str = "HS256"
    jwt_audience: str = "authenticated"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./hr_portal.db"

    # Object storage (Cloudflare R2 through the S3 API)
    r2_endpoint: str | None = None
    r2_access_key_id: str | None = Field(default=None, repr=False)
    r2_secret_access_key: str | None = Field(default=None, repr=False)
    r2_bucket: str | None = None
    r2_region: str = "auto"

    # Zip archive route
    zip_fetch_timeout_seconds: float = 60.0
    zip_allowed_hosts: list[str] = Field(default_factory=list)

    # Accounts
    synthetic_email_domain: str = "sic.invalid"

    # Scheduled reminders
    cron_secret: str = Field(default="", repr=False)
    resend_api_key: str = Field(default="", repr=False)
    resend_from_email: str = "SING HR <reminders@hr.singinchinese.com>"
    resend_base_url: str = "https://api.resend.com"

    @property
    def storage_configured(self) -> bool:
        return bool(
            self.r2_endpoint
            and self.r2_access_key_id
            and self.r2_secret_access_key
            and self.r2_bucket
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Storage settings are optional so the service boots without R2 credentials;
# storage routes report the missing configuration per request instead.
