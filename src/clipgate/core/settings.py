"""Application settings and configuration.

This module defines all configuration options for the Clipgate service.
Settings are loaded from environment variables with sensible defaults and are
read-only once constructed; the application factory builds one instance and
hands it to every component explicitly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SECONDS_PER_DAY = 24 * 60 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or a ``.env`` file.
    """

    # Application metadata
    app_name: str = Field(default="Clipgate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./clipgate.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    create_tables_on_startup: bool = Field(default=True, alias="CREATE_TABLES_ON_STARTUP")

    # Human-verification challenge
    captcha_salt: str | None = Field(default=None, alias="CAPTCHA_SALT")
    challenge_length: int = Field(default=6, ge=4, le=12, alias="CHALLENGE_LENGTH")
    challenge_single_use: bool = Field(default=False, alias="CHALLENGE_SINGLE_USE")
    challenge_ttl_seconds: int = Field(default=600, gt=0, alias="CHALLENGE_TTL_SECONDS")

    # Rate limiting
    rate_limit_backend: Literal["memory", "redis"] = Field(
        default="memory",
        alias="RATE_LIMIT_BACKEND",
    )
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    comment_rate_limit: int = Field(default=1, ge=1, alias="COMMENT_RATE_LIMIT")
    comment_rate_window_seconds: int = Field(
        default=SECONDS_PER_DAY,
        gt=0,
        alias="COMMENT_RATE_WINDOW_SECONDS",
    )
    upload_rate_limit: int = Field(default=5, ge=1, alias="UPLOAD_RATE_LIMIT")
    upload_rate_window_seconds: int = Field(
        default=SECONDS_PER_DAY,
        gt=0,
        alias="UPLOAD_RATE_WINDOW_SECONDS",
    )
    # How long an admitted-but-unconfirmed submission holds its slot.
    reservation_lease_seconds: int = Field(default=120, gt=0, alias="RESERVATION_LEASE_SECONDS")

    # External text moderation
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    moderation_url: str = Field(
        default="https://api.openai.com/v1/moderations",
        alias="MODERATION_URL",
    )
    moderation_model: str | None = Field(default=None, alias="MODERATION_MODEL")
    moderation_timeout_seconds: float = Field(default=10.0, gt=0, alias="MODERATION_TIMEOUT_SECONDS")

    # Persistence hand-off
    persistence_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        alias="PERSISTENCE_TIMEOUT_SECONDS",
    )

    # Submission size bounds
    comment_max_length: int = Field(default=1000, gt=0, alias="COMMENT_MAX_LENGTH")
    title_max_length: int = Field(default=200, gt=0, alias="TITLE_MAX_LENGTH")
    description_max_length: int = Field(default=5000, gt=0, alias="DESCRIPTION_MAX_LENGTH")
    upload_max_bytes: int = Field(default=100 * 1024 * 1024, gt=0, alias="UPLOAD_MAX_BYTES")

    # Object storage for media bytes
    aws_region: str | None = Field(default=None, alias="AWS_REGION")
    s3_bucket: str | None = Field(default=None, alias="AWS_S3_BUCKET_NAME")
    s3_public_url: str = Field(default="", alias="AWS_S3_PUBLIC_URL")
    s3_prefix: str = Field(default="videos", alias="S3_PREFIX")

    # Origin extraction behind reverse proxies
    trust_forwarded_for: bool = Field(default=True, alias="TRUST_FORWARDED_FOR")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @property
    def challenge_configured(self) -> bool:
        """Return True when a server secret for challenge digests is present."""
        return bool(self.captcha_salt)

    @property
    def moderation_configured(self) -> bool:
        """Return True when credentials for the moderation service are present."""
        return bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    """Return settings read from the process environment.

    Only the application entry point should call this; components receive the
    instance through their constructors.
    """
    return Settings()
