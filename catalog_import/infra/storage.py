"""Object storage clients for product assets.

Provides:
- Google Cloud Storage backend (production)
- Local filesystem backend (development)
- Storage key validation so imported assets stay under their prefix
"""

from abc import ABC, abstractmethod
from pathlib import Path

from google.cloud import storage
from google.cloud.storage import Bucket

from catalog_import.config import settings
from catalog_import.infra.logging import get_logger

logger = get_logger(__name__)


class StorageKeyError(ValueError):
    """Raised when a storage key is not a safe relative object name."""


def validate_key(key: str) -> str:
    """Normalize and validate an object key.

    Args:
        key: Object key such as ``products/123/123-1.jpg``

    Returns:
        Key without a leading slash

    Raises:
        StorageKeyError: If the key is empty or escapes its prefix
    """
    normalized = key.lstrip("/")
    if not normalized or ".." in normalized.split("/"):
        raise StorageKeyError(f"Invalid storage key: '{key}'")
    return normalized


class StorageClient(ABC):
    """Interface shared by all storage backends."""

    @abstractmethod
    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its URL."""


class GCSStorageClient(StorageClient):
    """Cloud Storage backend."""

    def __init__(self, bucket_name: str | None = None) -> None:
        """Initialize storage client.

        Args:
            bucket_name: GCS bucket name. Defaults to settings.gcs_bucket.
        """
        self._client: storage.Client | None = None
        self._bucket: Bucket | None = None
        self._bucket_name = bucket_name or settings.gcs_bucket

    @property
    def client(self) -> storage.Client:
        """Lazy-load the GCS client."""
        if self._client is None:
            self._client = storage.Client()
            logger.info("GCS client initialized")
        return self._client

    @property
    def bucket(self) -> Bucket:
        """Get the configured bucket."""
        if self._bucket is None:
            self._bucket = self.client.bucket(self._bucket_name)
            logger.info("GCS bucket configured", bucket=self._bucket_name)
        return self._bucket

    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        """Upload bytes to GCS.

        Args:
            data: Object content
            key: Destination object key
            content_type: MIME type

        Returns:
            gs:// URL to uploaded blob
        """
        key = validate_key(key)
        blob = self.bucket.blob(key)
        blob.upload_from_string(data, content_type=content_type)

        logger.info("Uploaded bytes", key=key, size=len(data), content_type=content_type)

        return f"gs://{self._bucket_name}/{key}"


class LocalStorageClient(StorageClient):
    """Filesystem backend rooted at ``settings.local_storage_root``."""

    def __init__(self, root: Path | str | None = None) -> None:
        self._root = Path(root or settings.local_storage_root)

    @property
    def root(self) -> Path:
        return self._root

    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        key = validate_key(key)
        target = self._root / key
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

        logger.info("Stored bytes locally", key=key, size=len(data), content_type=content_type)

        return target.resolve().as_uri()


# Singleton instance
_storage_client: StorageClient | None = None


def get_storage_client() -> StorageClient:
    """Get the singleton storage client for the configured backend."""
    global _storage_client
    if _storage_client is None:
        if settings.use_local_storage:
            _storage_client = LocalStorageClient()
        else:
            _storage_client = GCSStorageClient()
    return _storage_client
