from __future__ import annotations

import base64
import secrets
from typing import Optional

from clipstore.core.errors import ClientInputError

from .prober import Classification

__all__ = [
    "TOKEN_BYTES",
    "MEDIA_TYPE_EXTENSIONS",
    "random_token",
    "derive_key",
    "extension_for",
]

# 16 bytes encode to 22 URL-safe characters once padding is stripped.
TOKEN_BYTES = 16

MEDIA_TYPE_EXTENSIONS = {
    "video/mp4": ".mp4",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}


def random_token(nbytes: int = TOKEN_BYTES) -> str:
    """Return an unpadded URL-safe base64 token read from the OS CSPRNG."""
    return base64.urlsafe_b64encode(secrets.token_bytes(nbytes)).rstrip(b"=").decode("ascii")


def derive_key(classification: Optional[Classification | str], extension: str) -> str:
    """Build a storage key for a new asset.

    Args:
        classification: Optional prefix segment, e.g. ``landscape``.
        extension: File extension with or without the leading dot.

    Returns:
        ``<token><ext>`` or ``<classification>/<token><ext>``.
    """
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    name = random_token() + extension
    if classification is None:
        return name
    prefix = classification.value if isinstance(classification, Classification) else str(classification)
    return f"{prefix}/{name}"


def extension_for(media_type: str) -> str:
    try:
        return MEDIA_TYPE_EXTENSIONS[media_type]
    except KeyError:
        raise ClientInputError(f"unsupported content type: {media_type}", code="unsupported_media_type") from None
