"""
Configuration and settings for the tribute site.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_ROOT = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible object storage for uploaded images
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    media_bucket: Optional[str] = Field(default=None)
    media_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Realtime feed (Redis pub/sub)
    redis_url: Optional[str] = Field(default=None)
    posts_channel: str = Field(default="posts-changes")

    # Comic assets
    comic_dir: str = Field(default=str(PACKAGE_ROOT / "static" / "comicpages"))
    comic_url_prefix: str = Field(default="/comicpages")

    recent_posts_limit: int = Field(default=4, ge=1)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="SUNBEAM_USE_IN_MEMORY_BACKENDS"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
