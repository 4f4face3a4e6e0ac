from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EnvCheckResponse(BaseModel):
    ffmpeg: bool
    ffprobe: bool


class VideoCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, json_schema_extra={"example": "Boots on the ground"})
    description: str = Field(default="", json_schema_extra={"example": "First upload from the field."})


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: str
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None


__all__ = [
    "HealthResponse",
    "EnvCheckResponse",
    "VideoCreateRequest",
    "VideoResponse",
    "ErrorResponse",
]
