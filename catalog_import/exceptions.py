"""Importer error taxonomy.

Soft problems (missing image, unresolved brand) are logged, never raised.
Per-record failures are caught by the batch driver. The errors below that
reach ``main`` terminate the run with a non-zero exit code.
"""


class CatalogImportError(Exception):
    """Base class for importer errors."""


class UploaderNotFoundError(CatalogImportError):
    """Raised when the admin recorded as file uploader does not exist."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Uploader admin '{email}' not found")
        self.email = email


class EmptyBatchError(CatalogImportError):
    """Raised when no product records could be loaded from any source."""

    def __init__(self, sources: list[str]) -> None:
        super().__init__(f"No product records loaded from {len(sources)} source(s)")
        self.sources = sources


class RecordImportError(CatalogImportError):
    """A single product record failed and its transaction was rolled back."""

    def __init__(self, xml_id: str | None, name: str | None, cause: Exception) -> None:
        super().__init__(f"Failed to import product '{name}' ({xml_id}): {cause}")
        self.xml_id = xml_id
        self.name = name
        self.cause = cause


class DatabaseUnavailableError(CatalogImportError):
    """Raised when the catalog database cannot be reached before a run."""

    def __init__(self) -> None:
        super().__init__("Catalog database is not reachable")
