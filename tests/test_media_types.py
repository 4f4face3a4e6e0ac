from __future__ import annotations

import pytest

from clipstore.core.errors import ClientInputError
from clipstore.media import THUMBNAIL_MEDIA_TYPES, VIDEO_MEDIA_TYPES, parse_media_type, require_media_type


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("video/mp4", "video/mp4"),
        ("Video/MP4", "video/mp4"),
        ("image/png; charset=binary", "image/png"),
        ("  image/jpeg  ", "image/jpeg"),
    ],
)
def test_parse_media_type(raw, expected):
    assert parse_media_type(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_media_type(raw):
    with pytest.raises(ClientInputError, match="Content-Type header is missing"):
        parse_media_type(raw)


@pytest.mark.parametrize("raw", ["mp4", "video/", "/mp4", "video mp4/x"])
def test_unparseable_media_type(raw):
    with pytest.raises(ClientInputError, match="Failed to parse media type"):
        parse_media_type(raw)


def test_require_media_type_accepts_allowed():
    assert require_media_type("video/mp4", VIDEO_MEDIA_TYPES, label="MP4 videos") == "video/mp4"


def test_require_media_type_names_rejected_type():
    with pytest.raises(ClientInputError) as excinfo:
        require_media_type("image/gif", THUMBNAIL_MEDIA_TYPES, label="JPEG and PNG images")
    assert excinfo.value.code == "unsupported_media_type"
    assert "image/gif" in excinfo.value.message
    assert "image/jpeg, image/png" in excinfo.value.message


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("application/x-clip'take%2*final|cut~v`1", "application/x-clip'take%2*final|cut~v`1"),
        ("video/mp4;", "video/mp4"),
        ('video/mp4; codecs="avc1.42E01E, mp4a.40.2"', "video/mp4"),
        ("image/png; charset = binary; name=thumb", "image/png"),
    ],
)
def test_parameters_and_extended_token_characters(raw, expected):
    assert parse_media_type(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "video/mp4; codecs",
        "video/mp4;;codecs=avc1",
        "video/mp4; =avc1",
        "video/mp4; codecs=avc1 profile=high",
        "video/mp4; codecs=avc1; CODECS=hevc",
        'video/mp4; codecs="unterminated',
    ],
)
def test_malformed_parameters_are_rejected(raw):
    with pytest.raises(ClientInputError, match="Failed to parse media type") as excinfo:
        parse_media_type(raw)
    assert excinfo.value.code == "invalid_content_type"
