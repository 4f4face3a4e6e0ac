from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Secrets(BaseSettings):
    """Secrets configuration, loaded from the environment or a secrets management service."""

    model_config = SettingsConfigDict(
        env_prefix="CLIPSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    jwt_secret: str = Field(default="change-me", description="Signing secret for bearer token validation.")
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None


class Settings(BaseSettings):
    """Centralised runtime configuration for the Clipstore API."""

    model_config = SettingsConfigDict(
        env_prefix="CLIPSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "Clipstore API"
    environment: str = Field(default="development", description="Deployment environment label.")
    version: str = Field(default="0.1.0", description="API version for metadata and OpenAPI.")
    log_level: str = Field(default="info")
    port: int = Field(default=8091, description="Port the API is served on; used for local asset URLs.")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./clipstore.db",
        description="SQLAlchemy compatible DSN.",
    )

    assets_root: Path = Field(default_factory=lambda: Path("assets"), description="Directory served under /assets.")
    staging_dir: Path | None = Field(
        default=None,
        description="Directory for staged uploads (defaults to the system temp directory).",
    )

    video_storage_backend: Literal["s3", "local"] = Field(default="s3", description="Destination for processed video.")
    s3_bucket: Optional[str] = None
    s3_region: str = Field(default="us-east-1")
    s3_endpoint_url: Optional[str] = Field(default=None, description="Override for S3-compatible endpoints.")

    max_video_upload_bytes: int = Field(default=1 << 30, description="Hard limit for video upload bodies.")
    max_thumbnail_upload_bytes: int = Field(default=10 << 20, description="Hard limit for thumbnail upload bodies.")

    ffprobe_binary: str = Field(default="ffprobe")
    ffmpeg_binary: str = Field(default="ffmpeg")
    tool_timeout_s: float = Field(default=300.0, gt=0, description="Timeout for each ffmpeg/ffprobe invocation.")

    jwt_algorithm: str = Field(default="HS256", description="Algorithm used for JWT tokens.")
    jwt_issuer: Optional[str] = None
    jwt_audience: Optional[str] = None
    dev_tokens_enabled: bool = Field(
        default=False,
        description="Serve /admin/dev-token. Honoured only in a development environment.",
    )

    secrets: Secrets = Field(default_factory=Secrets, description="Holds sensitive configuration.")

    @property
    def environment_lower(self) -> str:
        return self.environment.lower()

    @property
    def assets_base_url(self) -> str:
        return f"http://localhost:{self.port}/assets"


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env", override=False)

    _ENV_ALIAS_MAP = {
        "CLIPSTORE_ENV": "CLIPSTORE_ENVIRONMENT",
        "CLIPSTORE_DB_URL": "CLIPSTORE_DATABASE_URL",
    }

    for source, target in _ENV_ALIAS_MAP.items():
        value = os.getenv(source)
        if value:
            os.environ[target] = value

    settings = Settings()

    if settings.environment_lower == "production":
        if settings.secrets.jwt_secret == "change-me":
            raise ValueError("Production environment must have a non-default JWT secret.")
        if settings.video_storage_backend == "s3" and not settings.s3_bucket:
            raise ValueError("Production environment must configure CLIPSTORE_S3_BUCKET for the s3 backend.")

    return settings


__all__ = ["Secrets", "Settings", "get_settings"]
