from __future__ import annotations

import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, BinaryIO, List, Optional, Protocol

from clipstore.core.errors import PayloadTooLargeError, StorageError
from clipstore.core.logging import get_logger


CHUNK_SIZE = 1024 * 1024
STAGED_PREFIX = "clipstore-upload-"

logger = get_logger(component="staging")


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


class StagedFile:
    """A temp file holding one upload, plus any files derived from it.

    Only ``stage_upload`` creates these; everything registered through
    ``adopt`` is removed together with the staged file when the scope exits.
    """

    def __init__(self, path: Path, handle: BinaryIO):
        self.path = path
        self.handle = handle
        self.size_bytes = 0
        self._derived: List[Path] = []

    def rewind(self) -> None:
        self.handle.seek(0)

    def adopt(self, path: Path) -> Path:
        self._derived.append(path)
        return path

    async def _fill(self, source: AsyncReadable, size_limit: int) -> None:
        while True:
            chunk = await source.read(CHUNK_SIZE)
            if not chunk:
                break
            if self.size_bytes + len(chunk) > size_limit:
                raise PayloadTooLargeError(f"Upload exceeds the {size_limit} byte limit")
            try:
                self.handle.write(chunk)
            except OSError as exc:
                raise StorageError("Couldn't copy upload to temp file") from exc
            self.size_bytes += len(chunk)

        try:
            self.handle.flush()
            os.fsync(self.handle.fileno())
        except OSError as exc:
            raise StorageError("Couldn't copy upload to temp file") from exc

    def _release(self) -> None:
        try:
            self.handle.close()
        except OSError as exc:
            logger.warning("staged_file_close_failed", path=str(self.path), error=str(exc))

        for path in [*self._derived, self.path]:
            try:
                path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning("staged_file_cleanup_failed", path=str(path), error=str(cleanup_error))
            else:
                logger.debug("staged_file_removed", path=str(path))


@asynccontextmanager
async def stage_upload(
    source: AsyncReadable,
    *,
    size_limit: int,
    suffix: str = "",
    directory: Optional[Path] = None,
) -> AsyncIterator[StagedFile]:
    """Copy ``source`` into a fresh temp file and yield it rewound to the start.

    The copy fails with PayloadTooLargeError before writing a chunk that would
    take the file past ``size_limit``. The staged file and every adopted path
    are deleted when the ``async with`` block exits, whichever way it exits.
    """
    try:
        handle = tempfile.NamedTemporaryFile(
            mode="w+b",
            prefix=STAGED_PREFIX,
            suffix=suffix,
            dir=str(directory) if directory is not None else None,
            delete=False,
        )
    except OSError as exc:
        raise StorageError("Couldn't create temp file") from exc

    staged = StagedFile(Path(handle.name), handle)
    logger.info("staged_file_created", path=str(staged.path))
    try:
        await staged._fill(source, size_limit)
        staged.rewind()
        logger.info("staged_file_filled", path=str(staged.path), size_bytes=staged.size_bytes)
        yield staged
    finally:
        staged._release()


__all__ = ["AsyncReadable", "CHUNK_SIZE", "STAGED_PREFIX", "StagedFile", "stage_upload"]
