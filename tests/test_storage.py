from __future__ import annotations

import io

import pytest
from botocore.exceptions import ClientError

from clipstore.core.config import get_settings
from clipstore.core.errors import StorageError
from clipstore.core.storage import LocalObjectStore, S3ObjectStore, get_asset_store, get_video_store
from tests.conftest import FakeS3Client


def test_local_store_writes_nested_keys(tmp_path):
    store = LocalObjectStore(tmp_path / "assets", "http://localhost:8091/assets/")

    store.put("landscape/abc.mp4", io.BytesIO(b"payload"), content_type="video/mp4")

    assert (tmp_path / "assets" / "landscape" / "abc.mp4").read_bytes() == b"payload"
    assert store.url_for("landscape/abc.mp4") == "http://localhost:8091/assets/landscape/abc.mp4"


@pytest.mark.parametrize("key", ["../escape.png", "nested/../../escape.png", ""])
def test_local_store_refuses_keys_outside_root(tmp_path, key):
    store = LocalObjectStore(tmp_path / "assets", "http://localhost:8091/assets")
    with pytest.raises(ValueError):
        store.put(key, io.BytesIO(b"x"), content_type="image/png")


def test_s3_store_puts_object_and_builds_virtual_hosted_url():
    client = FakeS3Client()
    store = S3ObjectStore("clips", "eu-west-1", client=client)

    store.put("portrait/abc.mp4", io.BytesIO(b"video"), content_type="video/mp4")

    assert client.objects["portrait/abc.mp4"] == {"bucket": "clips", "body": b"video", "content_type": "video/mp4"}
    assert store.url_for("portrait/abc.mp4") == "https://clips.s3.eu-west-1.amazonaws.com/portrait/abc.mp4"


def test_s3_client_errors_become_storage_errors():
    error = ClientError({"Error": {"Code": "NoSuchBucket", "Message": "missing"}}, "PutObject")
    store = S3ObjectStore("clips", "us-east-1", client=FakeS3Client(error=error))

    with pytest.raises(StorageError) as excinfo:
        store.put("other/abc.mp4", io.BytesIO(b"video"), content_type="video/mp4")
    assert excinfo.value.__cause__ is error


def test_local_backend_shares_the_asset_store(tmp_path):
    settings = get_settings()
    store = get_video_store(settings)
    assert isinstance(store, LocalObjectStore)
    assert store.base_url == get_asset_store(settings).base_url == "http://localhost:8091/assets"


def test_s3_backend_requires_a_bucket(monkeypatch):
    monkeypatch.setenv("CLIPSTORE_VIDEO_STORAGE_BACKEND", "s3")
    monkeypatch.delenv("CLIPSTORE_S3_BUCKET", raising=False)
    get_settings.cache_clear()

    with pytest.raises(ValueError):
        get_video_store(get_settings())


def test_s3_backend_from_settings(monkeypatch):
    monkeypatch.setenv("CLIPSTORE_VIDEO_STORAGE_BACKEND", "s3")
    monkeypatch.setenv("CLIPSTORE_S3_BUCKET", "clips")
    monkeypatch.setenv("CLIPSTORE_S3_REGION", "ap-northeast-2")
    get_settings.cache_clear()

    store = get_video_store(get_settings())

    assert isinstance(store, S3ObjectStore)
    assert store.url_for("k.mp4") == "https://clips.s3.ap-northeast-2.amazonaws.com/k.mp4"
