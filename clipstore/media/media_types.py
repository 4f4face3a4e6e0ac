from __future__ import annotations

import re
from typing import Collection, Optional

from clipstore.core.errors import ClientInputError


VIDEO_MEDIA_TYPES = frozenset({"video/mp4"})
THUMBNAIL_MEDIA_TYPES = frozenset({"image/jpeg", "image/png"})

# RFC 2045 token: any printable ASCII except space and tspecials.
_TOKEN = r"[A-Za-z0-9!#$%&'*+\-.^_`{|}~]+"
_QUOTED = r'"(?:[^"\\\r\n]|\\.)*"'
_MEDIA_TYPE_RE = re.compile(rf"^{_TOKEN}/{_TOKEN}$")
_PARAMETER_RE = re.compile(rf"\s*({_TOKEN})\s*=\s*({_TOKEN}|{_QUOTED})\s*")


def _check_parameters(raw: str, section: str) -> None:
    """Reject a malformed or repeated ``; name=value`` list. A single trailing ``;`` is tolerated."""
    seen = set()
    pos = 0
    while section[pos:].strip():
        match = _PARAMETER_RE.match(section, pos)
        if match is None:
            raise ClientInputError(f"Failed to parse media type: {raw}", code="invalid_content_type")
        name = match.group(1).lower()
        if name in seen:
            raise ClientInputError(f"Failed to parse media type: {raw}", code="invalid_content_type")
        seen.add(name)
        pos = match.end()
        if pos < len(section):
            if section[pos] != ";":
                raise ClientInputError(f"Failed to parse media type: {raw}", code="invalid_content_type")
            pos += 1


def parse_media_type(raw: Optional[str]) -> str:
    """Return the lower-cased ``type/subtype`` of a Content-Type value, parameters stripped."""
    if raw is None or not raw.strip():
        raise ClientInputError("Content-Type header is missing", code="missing_content_type")

    essence, _, parameters = raw.partition(";")
    essence = essence.strip().lower()
    if not _MEDIA_TYPE_RE.match(essence):
        raise ClientInputError(f"Failed to parse media type: {raw}", code="invalid_content_type")
    _check_parameters(raw, parameters)
    return essence


def require_media_type(raw: Optional[str], allowed: Collection[str], *, label: str) -> str:
    media_type = parse_media_type(raw)
    if media_type not in allowed:
        allowed_list = ", ".join(sorted(allowed))
        raise ClientInputError(
            f"Unsupported file type: {media_type}. Only {label} ({allowed_list}) are allowed.",
            code="unsupported_media_type",
        )
    return media_type


__all__ = ["VIDEO_MEDIA_TYPES", "THUMBNAIL_MEDIA_TYPES", "parse_media_type", "require_media_type"]
