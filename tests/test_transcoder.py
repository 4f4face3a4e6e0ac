from __future__ import annotations

import pytest

from clipstore.core.errors import MalformedToolOutputError, ToolInvocationError
from clipstore.media import MediaTranscoder, ToolResult, output_path_for
from tests.conftest import FakeToolRunner


class SilentRunner:
    """Reports success without writing anything."""

    def run(self, binary, args, *, timeout_s=None):
        return ToolResult(command=(binary, *args), returncode=0, stdout="", stderr="")


def test_output_path_is_sibling_with_processing_suffix(tmp_path):
    source = tmp_path / "upload.mp4"
    assert output_path_for(source) == tmp_path / "upload.mp4.processing"


def test_faststart_copies_streams(tmp_path):
    source = tmp_path / "upload.mp4"
    source.write_bytes(b"mp4-bytes")
    runner = FakeToolRunner()

    output = MediaTranscoder(runner, timeout_s=30).optimize_for_streaming(source)

    assert output == output_path_for(source)
    assert output.read_bytes() == b"mp4-bytes"
    (command,) = runner.calls
    assert command[0] == "ffmpeg"
    assert command[command.index("-i") + 1] == str(source)
    assert command[command.index("-c") + 1] == "copy"
    assert command[command.index("-movflags") + 1] == "faststart"
    assert command[command.index("-f") + 1] == "mp4"
    assert command[-1] == str(output)


def test_failed_run_removes_partial_output(tmp_path):
    source = tmp_path / "upload.mp4"
    source.write_bytes(b"broken")

    with pytest.raises(ToolInvocationError) as excinfo:
        MediaTranscoder(FakeToolRunner(fail_ffmpeg=True)).optimize_for_streaming(source)

    assert excinfo.value.stderr == "moov atom not found"
    assert not output_path_for(source).exists()
    assert source.exists()


def test_missing_output_is_malformed(tmp_path):
    source = tmp_path / "upload.mp4"
    source.write_bytes(b"x")

    with pytest.raises(MalformedToolOutputError):
        MediaTranscoder(SilentRunner()).optimize_for_streaming(source)
