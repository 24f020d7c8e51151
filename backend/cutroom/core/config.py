"""
Application Configuration

Settings class using pydantic-settings for environment variable loading.
Defines data store selection, security, storage and resource limits.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For example, DATA_STORE can be set to "memory" to run against the
    in-memory demo store instead of the database.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Cutroom API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="0.1.0", description="API version")
    log_level: str = Field(default="INFO", description="Root log level")

    # Security
    secret_key: str = Field(
        default="change-me-in-production-min-32-chars",
        description="Secret key for JWT signing (min 32 characters)",
    )
    access_token_expire_hours: int = Field(
        default=24,
        description="Session lifetime in hours",
    )
    email_token_expire_hours: int = Field(
        default=48,
        description="Lifetime of email confirmation and password reset tokens",
    )

    # Data store
    data_store: Literal["sql", "memory"] = Field(
        default="sql",
        description="Data store backing the access layer: sql or memory",
    )
    demo_seed: bool = Field(
        default=False,
        description="Seed the memory store with demo users and projects",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./cutroom.db",
        description="Database connection URL",
    )
    create_schema_on_startup: bool = Field(
        default=True,
        description="Create missing tables when the application starts",
    )
    require_email_confirmation: bool = Field(
        default=False,
        description="Sign-up yields no session until the email is confirmed",
    )
    store_profile_trigger: bool = Field(
        default=False,
        description="Store creates the profile row itself during sign-up",
    )
    admin_emails: str = Field(
        default="",
        description="Comma-separated emails provisioned with the admin role",
    )
    remote_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for every data store call",
    )

    # URLs
    app_url: str = Field(
        default="http://localhost:3000",
        description="Front-end URL used for confirmation and reset redirects",
    )
    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Public URL of this API, used to build signed file URLs",
    )

    # Storage
    storage_path: str = Field(
        default="./data",
        alias="STORAGE_PATH",
        description="Root path for object storage",
    )
    storage_bucket: str = Field(
        default="project-files",
        description="Bucket holding project files",
    )
    signed_url_ttl_seconds: int = Field(
        default=3600,
        gt=0,
        description="Lifetime of signed file URLs",
    )

    # Resource Limits
    max_upload_size: int = Field(
        default=500 * 1024 * 1024,  # 500MB
        description="Maximum upload file size in bytes (default: 500MB)",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable Redis-backed rate limiting",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def admin_emails_set(self) -> set[str]:
        """Lower-cased admin emails."""
        return {email.strip().lower() for email in self.admin_emails.split(",") if email.strip()}

    @property
    def redirect_url(self) -> str:
        """App URL without a trailing slash, used in emailed links."""
        return self.app_url.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Uses lru_cache to ensure settings are only loaded once per process.

    Returns:
        Settings: Application settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.signed_url_ttl_seconds)
        3600
    """
    return Settings()
