"""Application configuration from environment variables."""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(
        default="sqlite:///./quillboard.db", description="SQLAlchemy connection string"
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Auth tokens
    jwt_secret: str = Field(
        default="dev-secret-change-me-before-deploying", description="HS256 signing key"
    )
    access_token_ttl_seconds: int = Field(
        default=60 * 60 * 24, description="Lifetime of issued access tokens"
    )

    # SMTP (super-admin notification emails)
    smtp_host: str | None = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_user: str | None = Field(default=None, description="SMTP login")
    smtp_password: str | None = Field(default=None, description="SMTP password or app password")
    smtp_from_email: str | None = Field(
        default=None, description="Sender address (defaults to smtp_user)"
    )
    smtp_timeout_seconds: float = Field(default=10.0, description="SMTP socket timeout")

    # Status-change workflow
    status_change_rate_limit_seconds: float = Field(
        default=10.0, description="Minimum spacing between status-change requests per user"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/server.log", description="Server log file")

    # API
    api_title: str = Field(default="Quillboard Admin API", description="API title")
    api_version: str = Field(default="0.1.0", description="API version")
    api_host: str = Field(
        default="0.0.0.0", description="Bind address for `python -m quillboard.main`"
    )
    api_port: int = Field(default=8000, description="Bind port")


# Global settings instance
settings = Settings()
