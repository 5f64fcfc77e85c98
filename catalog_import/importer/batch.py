"""Batch driver - imports every record of one or more JSON sources.

Records are processed one after another, each in its own transaction, so
a failing record is rolled back and counted without touching the others.
Running two batches over the same data concurrently is not supported:
the external id lookup and the insert are not coordinated.
"""

import json
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from sqlalchemy.exc import InterfaceError, OperationalError

from catalog_import.exceptions import EmptyBatchError, RecordImportError
from catalog_import.importer.resolvers import ReferenceMaps
from catalog_import.importer.upserter import ProductUpserter, UpsertResult
from catalog_import.infra.database import SessionFactory, transaction
from catalog_import.infra.logging import get_logger, import_context
from catalog_import.schemas.record import ProductRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecordFailure:
    """A record that could not be imported."""

    index: int
    xml_id: str | None
    name: str | None
    error: str
    error_type: str


@dataclass
class BatchResult:
    """Tally of one batch run."""

    success_count: int = 0
    error_count: int = 0
    created_count: int = 0
    updated_count: int = 0
    failures: list[RecordFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.error_count

    def add_success(self, outcome: UpsertResult) -> None:
        self.success_count += 1
        if outcome.created:
            self.created_count += 1
        else:
            self.updated_count += 1

    def add_failure(self, failure: RecordFailure) -> None:
        self.error_count += 1
        self.failures.append(failure)


def load_records(paths: Iterable[Path | str]) -> list[dict[str, Any]]:
    """Read and concatenate the product arrays of all sources.

    A missing, unparseable or non-array source is logged and skipped.
    No de-duplication across files happens here.
    """
    records: list[dict[str, Any]] = []

    for source in paths:
        path = Path(source)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.warning("Source file not found, skipping", path=str(path))
            continue
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Source file unreadable, skipping", path=str(path), error=str(e))
            continue

        if not isinstance(data, list):
            logger.warning(
                "Source file is not a JSON array, skipping",
                path=str(path),
                type=type(data).__name__,
            )
            continue

        items = [item for item in data if isinstance(item, dict)]
        if len(items) != len(data):
            logger.warning(
                "Non-object entries ignored",
                path=str(path),
                ignored=len(data) - len(items),
            )

        records.extend(items)
        logger.info("Source file loaded", path=str(path), records=len(items))

    return records


class BatchDriver:
    """Run the upserter over all records of a batch."""

    def __init__(
        self,
        upserter: ProductUpserter,
        uploader_email: str,
        session_factory: SessionFactory | None = None,
    ) -> None:
        """Initialize driver.

        Args:
            upserter: Imports a single record
            uploader_email: Admin recorded as uploader of imported files
            session_factory: Session factory (default engine if omitted)
        """
        self._upserter = upserter
        self._uploader_email = uploader_email
        self._session_factory = session_factory

    async def run(self, paths: Iterable[Path | str]) -> BatchResult:
        """Import all records found in ``paths``.

        Raises:
            EmptyBatchError: If no record could be loaded
            UploaderNotFoundError: If the uploader admin does not exist
        """
        sources = [str(p) for p in paths]
        start = time.perf_counter()

        raw_records = load_records(sources)
        if not raw_records:
            raise EmptyBatchError(sources)

        async with transaction(self._session_factory) as session:
            refs = await ReferenceMaps.load(session, self._uploader_email)

        logger.info(
            "Catalog import starting",
            sources=len(sources),
            records=len(raw_records),
            brands=len(refs.brands),
            categories=len(refs.categories),
        )

        result = BatchResult()
        with import_context(batch_id=uuid.uuid4().hex[:12]):
            for index, raw in enumerate(raw_records):
                with import_context(record_index=index, xml_id=raw.get("xmlId")):
                    await self._import_record(index, raw, refs, result)

        logger.info(
            "Catalog import finished",
            success=result.success_count,
            errors=result.error_count,
            created=result.created_count,
            updated=result.updated_count,
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return result

    async def _import_record(
        self,
        index: int,
        raw: dict[str, Any],
        refs: ReferenceMaps,
        result: BatchResult,
    ) -> None:
        name = raw.get("name")
        xml_id = raw.get("xmlId")

        try:
            record = ProductRecord.model_validate(raw)
            async with transaction(self._session_factory) as session:
                outcome = await self._upserter.upsert(session, record, refs)

        except (OperationalError, InterfaceError):
            # Lost database connectivity ends the batch
            raise

        except Exception as e:
            error = RecordImportError(
                str(xml_id) if xml_id is not None else None,
                str(name) if name is not None else None,
                e,
            )
            logger.error(
                "Product import failed",
                index=index,
                xml_id=error.xml_id,
                product=error.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            result.add_failure(
                RecordFailure(
                    index=index,
                    xml_id=error.xml_id,
                    name=error.name,
                    error=str(error),
                    error_type=type(e).__name__,
                )
            )
            return

        result.add_success(outcome)
