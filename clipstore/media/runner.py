from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from clipstore.core.errors import ToolInvocationError
from clipstore.core.logging import get_logger


logger = get_logger(component="tool_runner")


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Captured outcome of a successful external tool run."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class ToolRunner(Protocol):
    def run(self, binary: str, args: Sequence[str], *, timeout_s: Optional[float] = None) -> ToolResult: ...


class SubprocessToolRunner:
    """Run ffmpeg/ffprobe style binaries and turn every failure into a ToolInvocationError."""

    def __init__(self, default_timeout_s: Optional[float] = None):
        self.default_timeout_s = default_timeout_s

    def run(self, binary: str, args: Sequence[str], *, timeout_s: Optional[float] = None) -> ToolResult:
        command = [binary, *args]
        timeout = timeout_s if timeout_s is not None else self.default_timeout_s
        logger.info("tool_run", command=command, timeout_s=timeout)

        try:
            proc = subprocess.run(
                command,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise ToolInvocationError(f"could not run {binary}: binary not found", command=command) from exc
        except OSError as exc:
            raise ToolInvocationError(f"could not run {binary}: {exc.strerror or exc}", command=command) from exc
        except subprocess.TimeoutExpired as exc:
            raise ToolInvocationError(f"{binary} timed out after {timeout}s", command=command) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            logger.error("tool_run_failed", command=command, returncode=exc.returncode, stderr=stderr)
            raise ToolInvocationError(
                f"{binary} exited with status {exc.returncode}",
                command=command,
                returncode=exc.returncode,
                stderr=stderr,
            ) from exc

        return ToolResult(command=tuple(command), returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)


__all__ = ["ToolResult", "ToolRunner", "SubprocessToolRunner"]
