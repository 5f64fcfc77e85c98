"""Infrastructure - Database, storage, logging."""

from catalog_import.infra.database import (
    close_db_engine,
    get_session_factory,
    transaction,
)
from catalog_import.infra.logging import get_logger, import_context, setup_logging
from catalog_import.infra.storage import (
    GCSStorageClient,
    LocalStorageClient,
    StorageClient,
    StorageKeyError,
    get_storage_client,
)

__all__ = [
    "close_db_engine",
    "get_session_factory",
    "transaction",
    "StorageClient",
    "GCSStorageClient",
    "LocalStorageClient",
    "StorageKeyError",
    "get_storage_client",
    "setup_logging",
    "get_logger",
    "import_context",
]
