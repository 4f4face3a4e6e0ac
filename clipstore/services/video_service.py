from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clipstore.core.errors import StorageError
from clipstore.core.logging import get_logger
from clipstore.db.models import Video


class VideoService:
    """Record store for video metadata."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.logger = get_logger(component="video_service")

    async def create_video(self, *, user_id: str, title: str, description: str = "") -> Video:
        video = Video(id=str(uuid4()), user_id=user_id, title=title, description=description)
        self.session.add(video)
        await self._commit("Couldn't create video")
        await self.session.refresh(video)
        self.logger.info("video_created", video_id=video.id, user_id=user_id)
        return video

    async def get_video(self, video_id: UUID | str) -> Video | None:
        return await self.session.get(Video, str(video_id))

    async def list_videos(self, *, user_id: str) -> list[Video]:
        stmt = select(Video).where(Video.user_id == user_id).order_by(Video.created_at.desc(), Video.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_video(self, video: Video) -> Video:
        """Submit the whole record; on failure nothing is persisted."""
        merged = await self.session.merge(video)
        await self._commit("Couldn't update video metadata")
        await self.session.refresh(merged)
        return merged

    async def _commit(self, message: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            self.logger.error("video_commit_failed", error=str(exc))
            raise StorageError(message) from exc


__all__ = ["VideoService"]
