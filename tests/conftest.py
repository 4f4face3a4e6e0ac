import asyncio
import json
from pathlib import Path
from typing import Any, Optional, Sequence

import jwt
import pytest
from fastapi.testclient import TestClient

from clipstore.core.config import get_settings
from clipstore.core.db import create_engine, create_schema, drop_schema
from clipstore.core.errors import ToolInvocationError
from clipstore.main import create_app
from clipstore.media import ToolResult

TEST_SECRET = "test-secret"
TEST_ISSUER = "clipstore-test"
TEST_AUDIENCE = "clipstore"


@pytest.fixture(autouse=True)
def configure_environment(monkeypatch, tmp_path, tmp_path_factory):
    db_path = tmp_path_factory.mktemp("db") / "clipstore_test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CLIPSTORE_ENV", "test")
    monkeypatch.setenv("CLIPSTORE_ENVIRONMENT", "test")
    monkeypatch.setenv("CLIPSTORE_LOG_LEVEL", "debug")
    monkeypatch.setenv("CLIPSTORE_DB_URL", database_url)
    monkeypatch.setenv("CLIPSTORE_DATABASE_URL", database_url)
    monkeypatch.setenv("CLIPSTORE_ASSETS_ROOT", str(tmp_path / "assets"))
    monkeypatch.setenv("CLIPSTORE_STAGING_DIR", str(tmp_path / "staging"))
    monkeypatch.setenv("CLIPSTORE_VIDEO_STORAGE_BACKEND", "local")
    monkeypatch.setenv("CLIPSTORE_JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("CLIPSTORE_JWT_ISSUER", TEST_ISSUER)
    monkeypatch.setenv("CLIPSTORE_JWT_AUDIENCE", TEST_AUDIENCE)

    get_settings.cache_clear()
    settings = get_settings()
    engine = create_engine(settings)

    async def _setup() -> None:
        await create_schema(engine)
        await engine.dispose()

    asyncio.run(_setup())

    yield tmp_path

    async def _teardown() -> None:
        await drop_schema(engine)
        await engine.dispose()

    asyncio.run(_teardown())
    get_settings.cache_clear()


@pytest.fixture()
def staging_dir(configure_environment) -> Path:
    return configure_environment / "staging"


@pytest.fixture()
def assets_dir(configure_environment) -> Path:
    return configure_environment / "assets"


@pytest.fixture()
def app(configure_environment):
    return create_app()


@pytest.fixture()
def client(app):
    with TestClient(app) as client:
        yield client


def build_token(user_id: str, *, scopes: Optional[list[str]] = None) -> str:
    payload: dict[str, Any] = {"sub": user_id, "iss": TEST_ISSUER, "aud": TEST_AUDIENCE}
    if scopes:
        payload["scopes"] = scopes
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def auth_headers(user_id: str, *, scopes: Optional[list[str]] = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {build_token(user_id, scopes=scopes)}"}


class FakeToolRunner:
    """Stands in for ffprobe/ffmpeg.

    ffprobe reports a single stream with the configured geometry. ffmpeg
    copies its input to the output path, or writes a partial output and
    fails when ``fail_ffmpeg`` is set.
    """

    def __init__(
        self,
        *,
        width: int = 1920,
        height: int = 1080,
        probe_stdout: Optional[str] = None,
        fail_ffmpeg: bool = False,
    ):
        self.width = width
        self.height = height
        self.probe_stdout = probe_stdout
        self.fail_ffmpeg = fail_ffmpeg
        self.calls: list[tuple[str, ...]] = []

    def run(self, binary: str, args: Sequence[str], *, timeout_s: Optional[float] = None) -> ToolResult:
        command = (binary, *args)
        self.calls.append(command)

        if binary in ("ffmpeg", "ffprobe") and "-version" in args:
            return ToolResult(command=command, returncode=0, stdout=f"{binary} version test", stderr="")

        if binary == "ffprobe":
            stdout = self.probe_stdout
            if stdout is None:
                stdout = json.dumps({"streams": [{"index": 0, "width": self.width, "height": self.height}]})
            return ToolResult(command=command, returncode=0, stdout=stdout, stderr="")

        if binary == "ffmpeg":
            source = Path(args[list(args).index("-i") + 1])
            output = Path(args[-1])
            if self.fail_ffmpeg:
                output.write_bytes(b"partial")
                raise ToolInvocationError(
                    "ffmpeg exited with status 1",
                    command=command,
                    returncode=1,
                    stderr="moov atom not found",
                )
            output.write_bytes(source.read_bytes())
            return ToolResult(command=command, returncode=0, stdout="", stderr="")

        raise ToolInvocationError(f"could not run {binary}: binary not found", command=command)

    def binaries(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeS3Client:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.objects: dict[str, dict[str, Any]] = {}

    def put_object(self, *, Bucket: str, Key: str, Body, ContentType: str) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.objects[Key] = {"bucket": Bucket, "body": Body.read(), "content_type": ContentType}
        return {"ETag": '"fake"'}
