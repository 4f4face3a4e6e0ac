"""Error taxonomy shared by the upload pipeline and the HTTP layer.

Each error carries the HTTP status it maps to, a short machine readable
``code`` and a ``message`` that is safe to return to the caller. Diagnostic
details (tool stderr, boto errors) travel on the exception chain and in logs.
"""

from __future__ import annotations

from typing import Optional, Sequence


class ClipstoreError(Exception):
    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ClientInputError(ClipstoreError):
    """Malformed identifier, bad multipart field or disallowed content type."""

    status_code = 400
    code = "invalid_request"


class PayloadTooLargeError(ClientInputError):
    status_code = 413
    code = "upload_too_large"


class AuthError(ClipstoreError):
    """Missing or invalid credential, or the caller does not own the record."""

    status_code = 401
    code = "unauthorized"


class NotFoundError(ClipstoreError):
    status_code = 404
    code = "not_found"


class ProcessingError(ClipstoreError):
    """An external media tool failed or produced output we cannot use."""

    status_code = 500
    code = "processing_failed"


class ToolInvocationError(ProcessingError):
    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr


class MalformedToolOutputError(ProcessingError):
    pass


class StorageError(ClipstoreError):
    """Disk, object store or record store write failed."""

    status_code = 500
    code = "storage_failed"


__all__ = [
    "ClipstoreError",
    "ClientInputError",
    "PayloadTooLargeError",
    "AuthError",
    "NotFoundError",
    "ProcessingError",
    "ToolInvocationError",
    "MalformedToolOutputError",
    "StorageError",
]
