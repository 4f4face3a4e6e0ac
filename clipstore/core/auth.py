from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings, get_settings
from .errors import AuthError


security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    scopes: tuple[str, ...] = ()


def _decode_token(token: str, settings: Settings) -> dict:
    try:
        payload = jwt.decode(
            token,
            settings.secrets.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except jwt.PyJWTError as exc:
        raise AuthError("Couldn't validate JWT", code="invalid_token") from exc
    return payload


def resolve_identity(token: str, settings: Settings) -> AuthContext:
    """Validate a bearer token and return the principal it was issued to."""
    payload = _decode_token(token, settings)
    subject = payload.get("sub")
    try:
        user_id = str(UUID(str(subject)))
    except (TypeError, ValueError) as exc:
        raise AuthError("Token subject is not a valid user id", code="invalid_token") from exc

    scopes = tuple(payload.get("scopes") or [])
    return AuthContext(user_id=user_id, scopes=scopes)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> AuthContext:
    if not credentials:
        raise AuthError("Couldn't find JWT", code="missing_authorization")

    context = resolve_identity(credentials.credentials, settings)
    request.state.auth = context
    return context


__all__ = ["AuthContext", "get_auth_context", "resolve_identity"]
