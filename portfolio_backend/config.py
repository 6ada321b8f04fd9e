"""
Configuration and settings for the portfolio backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    admin_prefix: str = Field(default="/admin")

    # Embedded SQLite file unless another SQLAlchemy URL is given.
    database_url: str = Field(default="sqlite:///data/data.db")
    seed_on_startup: bool = Field(default=True)

    # Admin auth
    admin_password: str = Field(default="change-me")
    session_ttl_seconds: int = Field(default=60 * 60 * 24, ge=1)

    # Sessions live in process memory unless Redis is configured.
    redis_url: Optional[str] = Field(default=None)
    redis_session_prefix: str = Field(default="portfolio:session:")

    # Uploads
    upload_dir: str = Field(default="uploads")
    uploads_mount: str = Field(default="/uploads")
    # Public address used to absolutize stored relative media paths.
    base_url: Optional[str] = Field(default=None)

    # S3-compatible storage for uploads (optional)
    s3_bucket: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_endpoint: Optional[str] = Field(default=None)
    s3_public_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
