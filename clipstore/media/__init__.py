"""Media handling primitives used by the upload pipeline and the CLI."""

from clipstore.media.keys import derive_key, extension_for, random_token
from clipstore.media.media_types import (
    THUMBNAIL_MEDIA_TYPES,
    VIDEO_MEDIA_TYPES,
    parse_media_type,
    require_media_type,
)
from clipstore.media.prober import Classification, MediaProber, classify_dimensions, parse_probe_output
from clipstore.media.runner import SubprocessToolRunner, ToolResult, ToolRunner
from clipstore.media.staging import StagedFile, stage_upload
from clipstore.media.transcoder import MediaTranscoder, output_path_for

__all__ = [
    "Classification",
    "MediaProber",
    "MediaTranscoder",
    "StagedFile",
    "SubprocessToolRunner",
    "THUMBNAIL_MEDIA_TYPES",
    "ToolResult",
    "ToolRunner",
    "VIDEO_MEDIA_TYPES",
    "classify_dimensions",
    "derive_key",
    "extension_for",
    "output_path_for",
    "parse_media_type",
    "parse_probe_output",
    "random_token",
    "require_media_type",
    "stage_upload",
]
