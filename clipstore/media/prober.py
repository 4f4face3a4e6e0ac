from __future__ import annotations

import enum
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from clipstore.core.errors import MalformedToolOutputError

from .runner import ToolRunner


# Open intervals around 16:9 and 9:16.
LANDSCAPE_RATIO_BAND = (1.70, 1.80)
PORTRAIT_RATIO_BAND = (0.55, 0.57)


class Classification(str, enum.Enum):
    landscape = "landscape"
    portrait = "portrait"
    other = "other"


def classify_dimensions(width: int, height: int) -> Classification:
    """Map stream geometry onto an orientation tag.

    Args:
        width: The frame width in pixels.
        height: The frame height in pixels.

    Returns:
        ``landscape`` or ``portrait`` when the ratio falls strictly inside the
        matching band, ``other`` otherwise (including a zero height).
    """
    if height == 0:
        return Classification.other

    ratio = width / height
    low, high = LANDSCAPE_RATIO_BAND
    if low < ratio < high:
        return Classification.landscape

    low, high = PORTRAIT_RATIO_BAND
    if low < ratio < high:
        return Classification.portrait

    return Classification.other


def first_stream_geometry(raw: Dict[str, Any]) -> Optional[Tuple[int, int]]:
    """Return ``(width, height)`` of the first reported stream.

    Args:
        raw: The decoded ffprobe JSON document.

    Returns:
        The geometry, or None when ffprobe reported no streams.
    """
    if not isinstance(raw, dict):
        raise MalformedToolOutputError("ffprobe output is not a JSON object")

    streams = raw.get("streams") or []
    if not isinstance(streams, list):
        raise MalformedToolOutputError("ffprobe output has a non-list 'streams' entry")
    if not streams:
        return None

    first = streams[0]
    if not isinstance(first, dict):
        raise MalformedToolOutputError("ffprobe stream entry is not an object")
    return _dimension(first, "width"), _dimension(first, "height")


def _dimension(stream: Dict[str, Any], key: str) -> int:
    value = stream.get(key)
    if value is None:
        return 0
    # bool is an int subclass; floats and numeric strings are not geometry.
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedToolOutputError(f"ffprobe reported a non-integer {key}: {value!r}")
    return value


def decode_probe_output(stdout: str) -> Dict[str, Any]:
    try:
        return json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise MalformedToolOutputError("could not unmarshal ffprobe output") from exc


def parse_probe_output(stdout: str) -> Classification:
    geometry = first_stream_geometry(decode_probe_output(stdout))
    if geometry is None:
        return Classification.other
    return classify_dimensions(*geometry)


class MediaProber:
    def __init__(self, runner: ToolRunner, *, binary: str = "ffprobe", timeout_s: Optional[float] = None):
        self.runner = runner
        self.binary = binary
        self.timeout_s = timeout_s

    def probe_geometry(self, path: Path) -> Optional[Tuple[int, int]]:
        result = self.runner.run(
            self.binary,
            ["-v", "error", "-print_format", "json", "-show_streams", str(path)],
            timeout_s=self.timeout_s,
        )
        return first_stream_geometry(decode_probe_output(result.stdout))

    def probe_aspect_ratio(self, path: Path) -> Classification:
        geometry = self.probe_geometry(path)
        if geometry is None:
            return Classification.other
        return classify_dimensions(*geometry)


__all__ = [
    "Classification",
    "LANDSCAPE_RATIO_BAND",
    "PORTRAIT_RATIO_BAND",
    "classify_dimensions",
    "decode_probe_output",
    "first_stream_geometry",
    "parse_probe_output",
    "MediaProber",
]
