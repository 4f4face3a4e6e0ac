from __future__ import annotations

from pathlib import Path
from typing import Optional

from clipstore.core.errors import MalformedToolOutputError, ProcessingError
from clipstore.core.logging import get_logger

from .runner import ToolRunner


PROCESSED_SUFFIX = ".processing"

logger = get_logger(component="transcoder")


def output_path_for(path: Path) -> Path:
    return path.with_name(path.name + PROCESSED_SUFFIX)


class MediaTranscoder:
    """Rewrite an MP4 with its moov atom up front; streams are copied, never re-encoded."""

    def __init__(self, runner: ToolRunner, *, binary: str = "ffmpeg", timeout_s: Optional[float] = None):
        self.runner = runner
        self.binary = binary
        self.timeout_s = timeout_s

    def optimize_for_streaming(self, path: Path) -> Path:
        output = output_path_for(path)
        args = [
            "-nostdin",
            "-v",
            "error",
            "-y",
            "-i",
            str(path),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            str(output),
        ]
        try:
            self.runner.run(self.binary, args, timeout_s=self.timeout_s)
        except ProcessingError:
            output.unlink(missing_ok=True)
            raise

        if not output.exists():
            raise MalformedToolOutputError(f"{self.binary} reported success but wrote no output")

        logger.info("faststart_written", source=str(path), output=str(output))
        return output


__all__ = ["PROCESSED_SUFFIX", "MediaTranscoder", "output_path_for"]
