from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clipstore.core.auth import AuthContext, get_auth_context
from clipstore.core.config import Settings, get_settings
from clipstore.core.storage import ObjectStore
from clipstore.media import ToolRunner
from clipstore.services.upload_service import UploadService
from clipstore.services.video_service import VideoService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory = request.app.state.session_factory
    if not isinstance(session_factory, async_sessionmaker):
        raise RuntimeError("session_factory_not_configured")
    async with session_factory() as session:
        yield session


def get_video_store(request: Request) -> ObjectStore:
    store: ObjectStore = request.app.state.video_store
    return store


def get_asset_store(request: Request) -> ObjectStore:
    store: ObjectStore = request.app.state.asset_store
    return store


def get_tool_runner(request: Request) -> ToolRunner:
    runner: ToolRunner = request.app.state.tool_runner
    return runner


def get_app_settings() -> Settings:
    return get_settings()


async def get_video_service(session: AsyncSession = Depends(get_session)) -> VideoService:
    return VideoService(session)


async def get_upload_service(
    videos: VideoService = Depends(get_video_service),
    settings: Settings = Depends(get_app_settings),
    video_store: ObjectStore = Depends(get_video_store),
    asset_store: ObjectStore = Depends(get_asset_store),
    runner: ToolRunner = Depends(get_tool_runner),
) -> UploadService:
    return UploadService(settings, videos, video_store=video_store, asset_store=asset_store, runner=runner)


VideoServiceDep = Annotated[VideoService, Depends(get_video_service)]
UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]
AuthDependency = Annotated[AuthContext, Depends(get_auth_context)]


__all__ = [
    "get_session",
    "get_video_store",
    "get_asset_store",
    "get_tool_runner",
    "get_app_settings",
    "get_video_service",
    "get_upload_service",
    "VideoServiceDep",
    "UploadServiceDep",
    "AuthDependency",
]
