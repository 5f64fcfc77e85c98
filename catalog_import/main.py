"""Command-line entry point.

Imports the configured product JSON sources into the catalog database.
Takes no flags; everything is read from settings (environment / .env).

Usage:
    python -m catalog_import
    SOURCE_FILES='["./data/women.json", "./data/men.json"]' catalog-import
"""

import asyncio
import sys

from catalog_import.config import Settings, settings
from catalog_import.exceptions import DatabaseUnavailableError
from catalog_import.importer.batch import BatchDriver, BatchResult
from catalog_import.importer.images import ImageLinker
from catalog_import.importer.uploader import AssetUploader
from catalog_import.importer.upserter import ProductUpserter
from catalog_import.infra.database import SessionFactory, close_db_engine, verify_db_connection
from catalog_import.infra.logging import get_logger, setup_logging
from catalog_import.infra.storage import StorageClient, get_storage_client

logger = get_logger(__name__)


def build_driver(
    config: Settings,
    storage: StorageClient,
    session_factory: SessionFactory | None = None,
) -> BatchDriver:
    """Wire uploader, linker, upserter and driver from settings."""
    uploader = AssetUploader(storage, config.images_root)
    upserter = ProductUpserter(
        ImageLinker(uploader),
        image_policy=config.image_policy,
        unique_slugs=config.unique_slugs,
        available_stock=config.available_stock,
    )
    return BatchDriver(
        upserter,
        uploader_email=config.uploader_email,
        session_factory=session_factory,
    )


async def run_import(config: Settings = settings) -> BatchResult:
    """Run one batch over ``config.source_files``.

    Raises:
        DatabaseUnavailableError: If the database does not answer before loading sources
    """
    try:
        if not await verify_db_connection():
            raise DatabaseUnavailableError()
        driver = build_driver(config, get_storage_client())
        return await driver.run(config.source_files)
    finally:
        await close_db_engine()


def print_summary(result: BatchResult) -> None:
    print(f"\n{'='*60}")
    print("Catalog import finished")
    print(f"{'='*60}")
    print(f"Imported:  {result.success_count} ({result.created_count} new, {result.updated_count} updated)")
    print(f"Errors:    {result.error_count}")
    for failure in result.failures:
        print(f"  - {failure.name or '?'} ({failure.xml_id or '?'}): {failure.error_type}")
    print(f"{'='*60}\n")


def main() -> int:
    """Run the importer and return the process exit code."""
    setup_logging()
    logger.info(
        "Catalog importer starting",
        environment=settings.environment,
        sources=settings.source_files,
        images_root=settings.images_root,
        image_policy=settings.image_policy,
    )

    try:
        result = asyncio.run(run_import())
    except Exception as e:
        logger.error(
            "Catalog import aborted",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return 1

    print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
