"""Application settings and configuration.

This module defines all configuration options for the AfterClasses backend.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or a ``.env`` file.
    """

    # Application metadata
    app_name: str = Field(default="AfterClasses", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    port: int = Field(default=10000, alias="PORT")

    # Database configuration
    database_url: str = Field(default="sqlite:///./afterclasses.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    database_ssl_enabled: bool = Field(default=True, alias="DATABASE_SSL_ENABLED")
    # Hosted Postgres providers hand out certificates we cannot always verify.
    database_ssl_verify: bool = Field(default=False, alias="DATABASE_SSL_VERIFY")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Outbound mail (OTP delivery)
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="EMAIL_USER")
    smtp_password: str | None = Field(default=None, alias="EMAIL_PASS")
    smtp_security: Literal["starttls", "ssl", "none"] = Field(
        default="starttls",
        alias="SMTP_SECURITY",
    )
    smtp_timeout_seconds: float = Field(default=15.0, alias="SMTP_TIMEOUT_SECONDS")
    mail_from: str = Field(
        default='"AfterClasses Team" <no-reply@afterclasses.app>',
        alias="MAIL_FROM",
    )

    # One-time code login
    otp_ttl_seconds: int = Field(default=300, alias="OTP_TTL_SECONDS")
    allowed_email_domain: str | None = Field(default=None, alias="ALLOWED_EMAIL_DOMAIN")
    expose_code_in_response: bool = Field(default=False, alias="EXPOSE_OTP_IN_RESPONSE")

    # Coin economy and matching
    starting_coins: int = Field(default=400, alias="STARTING_COINS")
    approach_cost: int = Field(default=10, alias="APPROACH_COST")
    suggestion_limit: int = Field(default=20, alias="SUGGESTION_LIMIT")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["GET", "POST"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for Alembic and scripts."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+psycopg://", 1)
        return url

    @property
    def database_connect_args(self) -> dict[str, Any]:
        """Return driver connect arguments for the active database URL.

        Postgres connections are encrypted when SSL is enabled; certificate
        verification is only requested when ``database_ssl_verify`` is set.
        """
        url = self.database_url_sync
        if url.startswith("sqlite"):
            return {"check_same_thread": False}
        if url.startswith("postgresql") and self.database_ssl_enabled:
            return {"sslmode": "verify-full" if self.database_ssl_verify else "require"}
        return {}


settings = Settings()
