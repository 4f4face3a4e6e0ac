from __future__ import annotations

from typing import AsyncGenerator, Optional

from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect, Request

from clipstore.core.errors import ClientInputError, PayloadTooLargeError


class BoundedRequest(Request):
    """Request whose body stream raises once more than ``max_body_bytes`` arrive."""

    def __init__(self, request: Request, max_body_bytes: int):
        super().__init__(request.scope, request.receive)
        self.max_body_bytes = max_body_bytes

    async def stream(self) -> AsyncGenerator[bytes, None]:
        received = 0
        async for chunk in super().stream():
            received += len(chunk)
            if received > self.max_body_bytes:
                raise PayloadTooLargeError(f"Request body exceeds the {self.max_body_bytes} byte limit")
            yield chunk


def ensure_declared_length(request: Request, max_body_bytes: int) -> None:
    declared = request.headers.get("content-length")
    if declared is None:
        return
    try:
        length = int(declared)
    except ValueError as exc:
        raise ClientInputError("Invalid Content-Length header", code="invalid_content_length") from exc
    if length > max_body_bytes:
        raise PayloadTooLargeError(f"Request body exceeds the {max_body_bytes} byte limit")


class MultipartUploadSource:
    """Lazily parses a multipart body; nothing is read until ``get_file`` is awaited."""

    def __init__(self, request: Request, *, max_body_bytes: int):
        ensure_declared_length(request, max_body_bytes)
        self._request = BoundedRequest(request, max_body_bytes)
        self._form: Optional[FormData] = None

    async def get_file(self, field_name: str) -> UploadFile:
        try:
            self._form = await self._request.form(max_files=1)
        except (MultiPartException, StarletteHTTPException, ClientDisconnect) as exc:
            raise ClientInputError("Failed to parse form data", code="invalid_multipart") from exc

        upload = self._form.get(field_name)
        if not isinstance(upload, UploadFile):
            raise ClientInputError(f"Couldn't get {field_name} file from form", code="missing_upload_field")
        return upload

    async def aclose(self) -> None:
        if self._form is not None:
            await self._form.close()

    async def __aenter__(self) -> "MultipartUploadSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["BoundedRequest", "MultipartUploadSource", "ensure_declared_length"]
