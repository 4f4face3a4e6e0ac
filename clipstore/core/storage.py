from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import StorageError
from .logging import get_logger


logger = get_logger(component="storage")


class ObjectStore(ABC):
    @abstractmethod
    def put(self, key: str, body: BinaryIO, *, content_type: str) -> None: ...

    @abstractmethod
    def url_for(self, key: str) -> str: ...


class LocalObjectStore(ObjectStore):
    """Filesystem-backed store whose objects are served by the API under /assets."""

    def __init__(self, base_path: Path, base_url: str):
        self.base_path = base_path
        self.base_url = base_url.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        root = self.base_path.resolve()
        target = (root / key).resolve()
        if target == root or root not in target.parents:
            raise ValueError(f"Key escapes the asset root: {key}")
        return target

    def put(self, key: str, body: BinaryIO, *, content_type: str) -> None:
        path = self._resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as handle:
                shutil.copyfileobj(body, handle)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise StorageError("Couldn't save file to disk") from exc
        logger.info("object_stored", backend="local", key=key, content_type=content_type)

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"


class S3ObjectStore(ObjectStore):
    """Durable store backed by an S3 bucket."""

    def __init__(self, bucket: str, region: str, *, client: Any = None):
        self.bucket = bucket
        self.region = region
        self.client = client if client is not None else boto3.client("s3", region_name=region)

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        if not settings.s3_bucket:
            raise ValueError("CLIPSTORE_S3_BUCKET must be set for the s3 storage backend.")
        session = boto3.session.Session(
            aws_access_key_id=settings.secrets.aws_access_key_id,
            aws_secret_access_key=settings.secrets.aws_secret_access_key,
            region_name=settings.s3_region,
        )
        client = session.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            config=Config(signature_version="s3v4"),
        )
        return cls(settings.s3_bucket, settings.s3_region, client=client)

    def put(self, key: str, body: BinaryIO, *, content_type: str) -> None:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Couldn't upload file to S3") from exc
        logger.info("object_stored", backend="s3", bucket=self.bucket, key=key, content_type=content_type)

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


def get_video_store(settings: Settings) -> ObjectStore:
    if settings.video_storage_backend == "s3":
        return S3ObjectStore.from_settings(settings)
    if settings.video_storage_backend == "local":
        return get_asset_store(settings)
    raise ValueError(f"Unsupported storage backend: {settings.video_storage_backend}")


def get_asset_store(settings: Settings) -> LocalObjectStore:
    return LocalObjectStore(base_path=Path(settings.assets_root), base_url=settings.assets_base_url)


__all__ = [
    "ObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
    "get_video_store",
    "get_asset_store",
]
