from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from clipstore.api import deps
from clipstore.api.uploads import MultipartUploadSource
from clipstore.core.config import Settings
from clipstore.core.errors import NotFoundError
from clipstore.services.upload_service import parse_video_id

from . import schemas


router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("", response_model=schemas.VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    payload: schemas.VideoCreateRequest,
    videos: deps.VideoServiceDep,
    context: deps.AuthDependency,
) -> schemas.VideoResponse:
    video = await videos.create_video(user_id=context.user_id, title=payload.title, description=payload.description)
    return schemas.VideoResponse.model_validate(video)


@router.get("", response_model=list[schemas.VideoResponse])
async def list_videos(videos: deps.VideoServiceDep, context: deps.AuthDependency) -> list[schemas.VideoResponse]:
    return [schemas.VideoResponse.model_validate(video) for video in await videos.list_videos(user_id=context.user_id)]


@router.get("/{video_id}", response_model=schemas.VideoResponse)
async def get_video(video_id: str, videos: deps.VideoServiceDep, context: deps.AuthDependency) -> schemas.VideoResponse:
    video = await videos.get_video(parse_video_id(video_id))
    # Other users' records are indistinguishable from missing ones.
    if video is None or video.user_id != context.user_id:
        raise NotFoundError("Video not found", code="video_not_found")
    return schemas.VideoResponse.model_validate(video)


@router.post("/{video_id}/upload", response_model=schemas.VideoResponse)
async def upload_video(
    video_id: str,
    request: Request,
    service: deps.UploadServiceDep,
    context: deps.AuthDependency,
    settings: Settings = Depends(deps.get_app_settings),
) -> schemas.VideoResponse:
    async with MultipartUploadSource(request, max_body_bytes=settings.max_video_upload_bytes) as source:
        video = await service.upload_video(video_id=video_id, user_id=context.user_id, source=source)
    return schemas.VideoResponse.model_validate(video)


@router.post("/{video_id}/thumbnail", response_model=schemas.VideoResponse)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    service: deps.UploadServiceDep,
    context: deps.AuthDependency,
    settings: Settings = Depends(deps.get_app_settings),
) -> schemas.VideoResponse:
    async with MultipartUploadSource(request, max_body_bytes=settings.max_thumbnail_upload_bytes) as source:
        video = await service.upload_thumbnail(video_id=video_id, user_id=context.user_id, source=source)
    return schemas.VideoResponse.model_validate(video)


__all__ = ["router"]
