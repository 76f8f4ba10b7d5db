"""
Configuration and settings for the accounts backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # bcrypt work factor
    password_hash_rounds: int = Field(default=8, ge=4, le=31)

    # Profile images are either kept inline with the record or written to
    # file storage with only the path persisted. One per deployment.
    image_storage: Literal["inline", "disk"] = Field(default="inline")
    static_root: str = Field(default="uploads")
    static_url_prefix: str = Field(default="/uploads")

    # S3-compatible storage (Tencent COS) for disk mode. When no bucket is
    # configured, files are written under static_root.
    cos_endpoint: Optional[str] = Field(default=None)
    cos_region: Optional[str] = Field(default=None)
    cos_bucket: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Language of success messages
    locale: str = Field(default="th")

    @property
    def stores_images_on_disk(self) -> bool:
        return self.image_storage == "disk"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
