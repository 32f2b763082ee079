"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

CUSTOMS_URL=none selects the disabled customs gate; any other value is the
base URL of the rate-limiting backend.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class DatabaseSettings(_EnvSettings):
    mongodb_uri: str
    db_name: str = "fxa-auth"


class RedisSettings(_EnvSettings):
    # Optional; without Redis, flow metrics context is simply not carried over
    redis_uri: Optional[str] = None
    metrics_context_ttl_seconds: int = 7200


class CustomsSettings(_EnvSettings):
    customs_url: str = "none"
    customs_timeout_seconds: float = 3.0

    @property
    def enabled(self) -> bool:
        return self.customs_url.strip().lower() not in ("", "none")


class TokenSettings(_EnvSettings):
    password_forgot_token_ttl_seconds: int = 3600
    password_forgot_tries: int = 3
    account_reset_token_ttl_seconds: int = 900
    verifier_version: int = 1


class EmailSettings(_EnvSettings):
    zepto_api_token: str = ""
    zepto_from_email: str = "accounts@firefox.com"
    zepto_from_name: str = "Firefox Accounts"


class PushSettings(_EnvSettings):
    push_timeout_seconds: float = 5.0
    push_ttl_seconds: int = 3600


class LoggingSettings(_EnvSettings):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    # Sampling rates (0.0–1.0)
    sample_rate_customs: float = 0.10
    sample_rate_flow: float = 1.0


class SentrySettings(_EnvSettings):
    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


_SUB_CONFIGS = {
    "db": DatabaseSettings,
    "redis": RedisSettings,
    "customs": CustomsSettings,
    "tokens": TokenSettings,
    "email": EmailSettings,
    "push": PushSettings,
    "logging": LoggingSettings,
    "sentry": SentrySettings,
}


class AppSettings(_EnvSettings):
    # Core
    env: str = "development"
    app_url: str = "https://accounts.firefox.com"
    app_name: str = "fxa-auth"
    # Domain allowed in redirectTo on the forgot-password flow
    redirect_domain: str = "firefox.com"

    # Proxies in front of the service; each appends one X-Forwarded-For entry.
    # The client address is this many entries from the right.
    client_address_depth: int = Field(default=1, ge=1)
    # Only honoured when a proxy sets it; clients can send it too
    trust_x_real_ip: bool = False

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    customs: Optional[CustomsSettings] = None
    tokens: Optional[TokenSettings] = None
    email: Optional[EmailSettings] = None
    push: Optional[PushSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Every sub-config reads the same env/dotenv source
        for name, factory in _SUB_CONFIGS.items():
            if getattr(self, name) is None:
                setattr(self, name, factory())
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
