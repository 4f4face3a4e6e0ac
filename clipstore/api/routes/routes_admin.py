from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from clipstore.api.deps import AuthDependency, get_app_settings, get_tool_runner
from clipstore.core.config import Settings
from clipstore.core.errors import ToolInvocationError
from clipstore.media import ToolRunner

from .schemas import EnvCheckResponse


router = APIRouter(prefix="/admin", tags=["admin"])


class DevTokenRequest(BaseModel):
    user_id: UUID = Field(default_factory=uuid4)
    scopes: list[str] = Field(default_factory=list, examples=[["admin"]])


class DevTokenResponse(BaseModel):
    token: str
    user_id: UUID


def _probe_binary(runner: ToolRunner, binary: str) -> bool:
    try:
        runner.run(binary, ["-version"], timeout_s=10)
    except ToolInvocationError:
        return False
    return True


@router.get("/env-check", response_model=EnvCheckResponse, summary="Validate ffmpeg toolchain")
async def env_check(
    context: AuthDependency,
    settings: Settings = Depends(get_app_settings),
    runner: ToolRunner = Depends(get_tool_runner),
) -> EnvCheckResponse:
    if "admin" not in context.scopes:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin_scope_required")

    return EnvCheckResponse(
        ffmpeg=_probe_binary(runner, settings.ffmpeg_binary),
        ffprobe=_probe_binary(runner, settings.ffprobe_binary),
    )


@router.post("/dev-token", response_model=DevTokenResponse, summary="Mint development JWT")
async def mint_dev_token(payload: DevTokenRequest, settings: Settings = Depends(get_app_settings)) -> DevTokenResponse:
    if not settings.dev_tokens_enabled or settings.environment_lower not in {"development", "dev"}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="dev_token_disabled")

    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(hours=1)
    claims: dict[str, object] = {
        "sub": str(payload.user_id),
        "scopes": payload.scopes,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if settings.jwt_issuer:
        claims["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience

    token = jwt.encode(claims, settings.secrets.jwt_secret, algorithm=settings.jwt_algorithm)
    return DevTokenResponse(token=token, user_id=payload.user_id)


__all__ = ["router"]
