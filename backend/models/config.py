import os
import sys
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    Local development picks up `backend/.env` automatically so mail
    credentials don't have to be exported by hand.

    Do NOT auto-load `.env` when running under pytest or in CI, so tests see
    only the environment they set up themselves.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'production', or 'test'",
    )

    # Server
    HOST: str = Field(default="0.0.0.0", description="Interface to bind")
    PORT: int = Field(default=3000, description="Port to listen on")
    FRONTEND_URL: str = Field(
        default="http://localhost:5500",
        description="Origin of the portfolio site allowed to call the API (CORS)",
    )
    SERVICE_NAME: str = Field(
        default="Portfolio Contact API",
        description="Service name reported by the health endpoint",
    )

    # Email Provider Settings
    EMAIL_SERVICE: str = Field(
        default="gmail",
        description="Mail provider: 'gmail', 'outlook', 'yahoo', 'zoho', 'smtp' or 'console'",
    )
    EMAIL_USER: str = Field(
        default="",
        description="Mail account used to authenticate and as the sender address",
    )
    EMAIL_PASS: str = Field(
        default="",
        description="Mail account password or app password",
    )
    EMAIL_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for a single send (connect and I/O)",
    )
    SMTP_HOST: str = Field(
        default="localhost",
        description="SMTP server hostname (EMAIL_SERVICE=smtp only)",
    )
    SMTP_PORT: int = Field(
        default=587,
        description="SMTP server port (EMAIL_SERVICE=smtp only)",
    )
    SMTP_USE_TLS: bool = Field(
        default=True,
        description="Use STARTTLS for SMTP connection (port 587)",
    )
    SMTP_USE_SSL: bool = Field(
        default=False,
        description="Use implicit SSL for SMTP connection (port 465)",
    )

    # Site owner
    OWNER_EMAIL: str = Field(
        default="",
        description="Mailbox receiving contact notifications (defaults to EMAIL_USER)",
    )
    OWNER_NAME: str = Field(
        default="Aman Gupta",
        description="Name used to sign confirmation emails",
    )

    # Contact form rate limiting
    CONTACT_RATE_LIMIT_MAX: int = Field(
        default=5,
        description="Submissions admitted per client per window",
    )
    CONTACT_RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=15 * 60,
        description="Length of the fixed rate limit window in seconds",
    )
    TRUST_PROXY_HEADERS: bool = Field(
        default=False,
        description="Derive the client address from proxy headers (only behind a trusted proxy)",
    )

    # Performance settings
    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # Monitoring
    SENTRY_DSN: str = Field(default="", description="Sentry DSN; empty disables Sentry")
    SENTRY_RELEASE: str = Field(default="unknown", description="Release tag for Sentry")
    LOG_FILE: str = Field(
        default="",
        description="Optional path of a rotating log file",
    )

    @field_validator("EMAIL_SERVICE", mode="before")
    @classmethod
    def normalize_email_service(cls, v: str) -> str:
        """Provider names are case-insensitive."""
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def owner_email(self) -> str:
        """Mailbox for owner notifications."""
        return self.OWNER_EMAIL or self.EMAIL_USER

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Build the settings once per process."""
    return Settings()
