"""
Blob storage for chat attachments.

Two backends share one interface:
- LocalBlobStorage: files on disk, served under PUBLIC_BASE_URL
- S3BlobStorage: objects in an S3 bucket, addressed by their public URL

Both report upload progress as cumulative byte counts and raise StorageError
when the object could not be stored.
"""

import io
import logging
import os
from abc import ABC, abstractmethod
from typing import Callable, Optional
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.exceptions import StorageError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

CHUNK_SIZE = 256 * 1024


class BlobStorage(ABC):
    @abstractmethod
    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Store `data` at `path` and return the stored object's key."""

    @abstractmethod
    def get_public_url(self, key: str) -> str:
        """Publicly reachable URL of a stored object."""


class LocalBlobStorage(BlobStorage):
    def __init__(self, base_dir: str, base_url: str):
        self.base_dir = os.path.abspath(base_dir)
        self.base_url = base_url.rstrip("/")

    def upload(self, path, data, content_type, progress=None):
        target = os.path.abspath(os.path.join(self.base_dir, path))
        if not target.startswith(self.base_dir + os.sep):
            raise StorageError(details=f"Invalid object path: {path}")

        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            written = 0
            with open(target, "wb") as f:
                for start in range(0, len(data), CHUNK_SIZE):
                    chunk = data[start:start + CHUNK_SIZE]
                    f.write(chunk)
                    written += len(chunk)
                    if progress:
                        progress(written)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(details=str(e))

        logger.info(f"Stored {len(data)} bytes at {target}")
        return path

    def get_public_url(self, key):
        return f"{self.base_url}/{quote(key)}"


class S3BlobStorage(BlobStorage):
    def __init__(
        self,
        bucket: str,
        region: str,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.client = client or boto3.client(
            "s3",
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=Config(signature_version="s3v4"),
        )

    def upload(self, path, data, content_type, progress=None):
        sent = 0

        def on_chunk(bytes_amount):
            nonlocal sent
            sent += bytes_amount
            if progress:
                progress(sent)

        try:
            self.client.upload_fileobj(
                io.BytesIO(data),
                self.bucket,
                path,
                ExtraArgs={"ContentType": content_type},
                Callback=on_chunk,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 upload of {path} failed: {e}")
            raise StorageError(details=str(e))

        return path

    def get_public_url(self, key):
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"


def build_storage(settings) -> BlobStorage:
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "s3":
        return S3BlobStorage(
            bucket=settings.STORAGE_BUCKET,
            region=settings.AWS_REGION,
            access_key=settings.AWS_ACCESS_KEY,
            secret_key=settings.AWS_SECRET_KEY,
        )
    if backend == "local":
        return LocalBlobStorage(
            os.path.join(settings.UPLOAD_DIR, settings.STORAGE_BUCKET),
            settings.PUBLIC_BASE_URL,
        )
    raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
