# app/services/storage.py
"""
S3-compatible object storage (Cloudflare R2, MinIO, AWS) with a local
filesystem fallback for development when no credentials are configured.

boto3 is blocking, so the async helpers run it in the default executor.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import aiofiles
import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings
from app.core.errors import InvalidFileReference, StorageError

logger = logging.getLogger(__name__)

# Firebase-style download URL: .../o/<url-encoded object path>?alt=media&token=...
_DOWNLOAD_URL_PATH = re.compile(r"o/(.+)\?")

RESUME_KEY_PREFIX = "resumes"


@dataclass(frozen=True)
class FileLocation:
    bucket: str
    key: str


def owner_prefix(user_id: str) -> str:
    """Key prefix under which a user's uploads live."""
    return f"{RESUME_KEY_PREFIX}/{user_id}/"


def _checked_key(reference: str, key: str) -> str:
    # relative, normalised object keys only
    parts = key.split("/")
    if not key or key.startswith("/") or "\x00" in key or "\\" in key:
        raise InvalidFileReference(reference)
    if any(p in ("", ".", "..") for p in parts):
        raise InvalidFileReference(reference)
    return key


def parse_file_reference(reference: str, bucket: str) -> FileLocation:
    """
    Resolve a job's file reference to an object key in `bucket`.

    Accepts `s3://<bucket>/key` references (what upload-resume hands out) and
    storage download URLs whose object path follows `/o/` and precedes the
    query string. Other buckets, absolute keys and `..` segments are refused.
    Anything else raises InvalidFileReference.
    """
    if not reference:
        raise InvalidFileReference(reference)
    if reference.startswith("s3://"):
        parsed = urlparse(reference)
        if parsed.netloc != bucket or not parsed.path.startswith("/"):
            raise InvalidFileReference(reference)
        return FileLocation(bucket=bucket, key=_checked_key(reference, parsed.path[1:]))
    m = _DOWNLOAD_URL_PATH.search(reference)
    if not m:
        raise InvalidFileReference(reference)
    return FileLocation(bucket=bucket, key=_checked_key(reference, unquote(m.group(1))))


def _build_s3_client(settings: Settings):
    """
    Return a boto3 S3 client, or None when endpoint credentials are missing
    (callers then use the local upload directory).
    """
    if not settings.S3_ACCESS_KEY or not settings.S3_SECRET_KEY:
        return None
    client_kwargs = {
        "aws_access_key_id": settings.S3_ACCESS_KEY,
        "aws_secret_access_key": settings.S3_SECRET_KEY,
        "region_name": settings.S3_REGION or "us-east-1",
        # signature s3v4 for R2 & MinIO compatibility
        "config": Config(signature_version="s3v4"),
    }
    if settings.S3_ENDPOINT:
        client_kwargs["endpoint_url"] = str(settings.S3_ENDPOINT)
    return boto3.client("s3", **client_kwargs)


class ObjectStorage:
    def __init__(self, bucket: str, client=None, local_dir: Optional[Path] = None):
        self.bucket = bucket
        self._client = client
        self._local_dir = Path(local_dir or "uploads")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorage":
        return cls(
            bucket=settings.S3_BUCKET,
            client=_build_s3_client(settings),
            local_dir=Path(settings.LOCAL_UPLOAD_DIR),
        )

    @property
    def is_local(self) -> bool:
        return self._client is None

    def reference_for(self, key: str, bucket: Optional[str] = None) -> str:
        return f"s3://{bucket or self.bucket}/{key}"

    def _local_path(self, key: str) -> Path:
        root = self._local_dir.resolve()
        path = (root / key).resolve()
        if not path.is_relative_to(root):
            raise StorageError(f"Key outside the upload directory: {key}")
        return path

    async def upload(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Store bytes under `key` and return the reference for it."""
        if self.is_local:
            path = self._local_path(key)
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as out:
                await out.write(data)
            return self.reference_for(key)

        def _put():
            self._client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _put)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to store {key}: {exc}") from exc
        return self.reference_for(key)

    async def download_to_file(self, location: FileLocation, dest: Path) -> Path:
        """Download the object at `location` into `dest`; raises StorageError."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        if self.is_local:
            src = self._local_path(location.key)
            if not src.exists():
                raise StorageError(f"No such object: {location.key}")
            async with aiofiles.open(src, "rb") as fin:
                data = await fin.read()
            async with aiofiles.open(dest, "wb") as fout:
                await fout.write(data)
            return dest

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, self._client.download_file, location.bucket, location.key, str(dest)
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to download {location.key}: {exc}") from exc
        return dest
