"""
Blob storage for evidence files and admin identity photos.

Backends:
  - LocalBlobStore: files under UPLOAD_DIR, served back at UPLOAD_URL_PREFIX.
  - S3BlobStore: objects in S3_BUCKET_NAME, returned as presigned GET URLs.

Keys are slash-delimited paths relative to the store root, e.g.
``<case_id>/1718000000000-affidavit.pdf`` or ``admin-verification/<file>``.
"""
import abc
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from botocore.exceptions import ClientError

from courtfile.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a blob can't be written or removed."""


@dataclass(frozen=True)
class StoredBlob:
    key: str
    url: str
    size_bytes: int


class BlobStore(abc.ABC):
    """Uniform interface over local disk and object storage."""

    @abc.abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> StoredBlob:
        """Write `data` under `key`, refusing to overwrite an existing blob."""

    @abc.abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the blob. Returns False if it did not exist."""

    @abc.abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abc.abstractmethod
    def url_for(self, key: str) -> str:
        ...


class LocalBlobStore(BlobStore):
    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, key: str) -> Path:
        resolved = (self.root / key).resolve()
        if resolved != self.root and self.root not in resolved.parents:
            raise ValueError(f"Key escapes store root: {key}")
        return resolved

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> StoredBlob:
        try:
            path = self._resolve(key)
            if path.exists():
                raise StorageError(f"Blob already exists: {key}")
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except (OSError, ValueError) as e:
            raise StorageError(str(e)) from e
        logger.info("Stored %d bytes at %s", len(data), path)
        return StoredBlob(key=key, url=self.url_for(key), size_bytes=len(data))

    def delete(self, key: str) -> bool:
        path = self._resolve(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(str(e)) from e
        return True

    def exists(self, key: str) -> bool:
        return self._resolve(key).exists()

    def url_for(self, key: str) -> str:
        return f"{self.url_prefix}/{key}"


class S3BlobStore(BlobStore):
    def __init__(self, s3=None):
        if s3 is None:
            from courtfile.services.s3_service import S3Service
            s3 = S3Service()
        self.s3 = s3

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> StoredBlob:
        try:
            if self.s3.object_exists(key):
                raise StorageError(f"Blob already exists: {key}")
            self.s3.upload_bytes(key, data, content_type)
        except ClientError as e:
            raise StorageError(str(e)) from e
        return StoredBlob(key=key, url=self.url_for(key), size_bytes=len(data))

    def delete(self, key: str) -> bool:
        try:
            if not self.s3.object_exists(key):
                return False
            self.s3.delete_object(key)
        except ClientError as e:
            raise StorageError(str(e)) from e
        return True

    def exists(self, key: str) -> bool:
        return self.s3.object_exists(key)

    def url_for(self, key: str) -> str:
        return self.s3.generate_download_url(key)


_store: Optional[BlobStore] = None


def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the configured store (built once)."""
    global _store
    if _store is None:
        if settings.STORAGE_BACKEND == "s3":
            _store = S3BlobStore()
        else:
            _store = LocalBlobStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
        logger.info("Blob store: %s", type(_store).__name__)
    return _store
