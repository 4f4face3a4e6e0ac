from __future__ import annotations

import asyncio
from typing import Optional, Protocol
from uuid import UUID

from starlette.datastructures import UploadFile

from clipstore.core.config import Settings
from clipstore.core.errors import AuthError, ClientInputError, NotFoundError
from clipstore.core.logging import get_logger
from clipstore.core.storage import ObjectStore
from clipstore.db.models import Video
from clipstore.media import (
    THUMBNAIL_MEDIA_TYPES,
    VIDEO_MEDIA_TYPES,
    MediaProber,
    MediaTranscoder,
    ToolRunner,
    derive_key,
    extension_for,
    output_path_for,
    require_media_type,
    stage_upload,
)

from .video_service import VideoService


VIDEO_FIELD = "video"
THUMBNAIL_FIELD = "thumbnail"


class UploadSource(Protocol):
    async def get_file(self, field_name: str) -> UploadFile: ...


def parse_video_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except (TypeError, ValueError) as exc:
        raise ClientInputError("Invalid video ID", code="invalid_video_id") from exc


class UploadService:
    """Runs an upload from validated request to stored asset and updated record.

    Every step fails fast. Staged and processed files live inside a single
    ``stage_upload`` scope, so they are gone once a call returns or raises,
    and the record is only touched after the asset has been stored.
    """

    def __init__(
        self,
        settings: Settings,
        videos: VideoService,
        *,
        video_store: ObjectStore,
        asset_store: ObjectStore,
        runner: ToolRunner,
    ):
        self.settings = settings
        self.videos = videos
        self.video_store = video_store
        self.asset_store = asset_store
        self.prober = MediaProber(runner, binary=settings.ffprobe_binary, timeout_s=settings.tool_timeout_s)
        self.transcoder = MediaTranscoder(runner, binary=settings.ffmpeg_binary, timeout_s=settings.tool_timeout_s)
        self.logger = get_logger(component="upload_service")

    async def upload_video(self, *, video_id: str, user_id: str, source: UploadSource) -> Video:
        video = await self._get_owned_video(video_id, user_id)
        logger = self.logger.bind(video_id=video.id, user_id=user_id)
        logger.info("video_upload_started")

        upload = await source.get_file(VIDEO_FIELD)
        media_type = require_media_type(upload.content_type, VIDEO_MEDIA_TYPES, label="MP4 videos")
        extension = extension_for(media_type)

        async with stage_upload(
            upload,
            size_limit=self.settings.max_video_upload_bytes,
            suffix=extension,
            directory=self.settings.staging_dir,
        ) as staged:
            processed_path = staged.adopt(output_path_for(staged.path))
            await asyncio.to_thread(self.transcoder.optimize_for_streaming, staged.path)

            # Geometry comes from the bytes the client sent, not the rewritten container.
            classification = await asyncio.to_thread(self.prober.probe_aspect_ratio, staged.path)

            key = derive_key(classification, extension)
            with processed_path.open("rb") as body:
                await asyncio.to_thread(self.video_store.put, key, body, content_type=media_type)
            logger.info("video_asset_stored", key=key, classification=classification.value, size_bytes=staged.size_bytes)

        video.video_url = self.video_store.url_for(key)
        updated = await self.videos.update_video(video)
        logger.info("video_upload_completed", video_url=updated.video_url)
        return updated

    async def upload_thumbnail(self, *, video_id: str, user_id: str, source: UploadSource) -> Video:
        video = await self._get_owned_video(video_id, user_id)
        logger = self.logger.bind(video_id=video.id, user_id=user_id)
        logger.info("thumbnail_upload_started")

        upload = await source.get_file(THUMBNAIL_FIELD)
        media_type = require_media_type(upload.content_type, THUMBNAIL_MEDIA_TYPES, label="JPEG and PNG images")
        extension = extension_for(media_type)

        async with stage_upload(
            upload,
            size_limit=self.settings.max_thumbnail_upload_bytes,
            suffix=extension,
            directory=self.settings.staging_dir,
        ) as staged:
            filename = derive_key(None, extension)
            staged.rewind()
            await asyncio.to_thread(self.asset_store.put, filename, staged.handle, content_type=media_type)
            logger.info("thumbnail_asset_stored", filename=filename, size_bytes=staged.size_bytes)

        video.thumbnail_url = self.asset_store.url_for(filename)
        updated = await self.videos.update_video(video)
        logger.info("thumbnail_upload_completed", thumbnail_url=updated.thumbnail_url)
        return updated

    async def _get_owned_video(self, video_id: str, user_id: str) -> Video:
        parsed = parse_video_id(video_id)
        video: Optional[Video] = await self.videos.get_video(parsed)
        if video is None:
            raise NotFoundError("Video not found", code="video_not_found")
        if video.user_id != user_id:
            self.logger.info("upload_owner_mismatch", video_id=video.id, user_id=user_id)
            raise AuthError("You are not authorized to modify this video", code="not_video_owner")
        return video


__all__ = ["UploadService", "UploadSource", "parse_video_id", "VIDEO_FIELD", "THUMBNAIL_FIELD"]
