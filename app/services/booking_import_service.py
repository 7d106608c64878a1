"""
app/services/booking_import_service.py

Service layer for booking CSV imports.

One call to ``BookingImportService.ingest`` is one run over one uploaded
file for one source:

    1. PARSE        source parser -> canonical bookings + row diagnostics
    2. DEDUPLICATE  drop bookings whose external ID is already stored/queued
    3. RESOLVE      map listing names to property/room identities
    4. PERSIST      insert queued bookings in fixed-size chunks, in order
    5. AUDIT        write one import-log entry with the content hash

Structural parse failures abort before anything is stored and leave no
import-log entry. A failed chunk stops the remaining chunks; the run is then
logged with ``error`` status and ``BookingPersistenceError`` is raised with
the partial report attached.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable, Iterator, Sequence
from datetime import datetime, timezone
from functools import lru_cache
from typing import TypeVar

from app.config import get_booking_import_settings
from app.domain.booking import (
    AuditStatus,
    ImportAuditEntry,
    IngestionReport,
    ResolvedBooking,
    RowParseError,
)
from app.logging_utils import log_event
from app.parsers.base import StructuralParseError
from app.parsers.registry import ParserRegistry, get_default_registry
from app.repositories.booking_storage import BookingStorage, BookingStorageError, StorageWriteError
from app.resolvers.identity_resolver import IdentityResolver
from app.services.deduplication import DeduplicationFilter

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 100

_T = TypeVar("_T")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BookingPersistenceError(RuntimeError):
    """
    Raised when bookings or the import log cannot be persisted.

    ``report`` describes what the run achieved before the failure.
    """

    def __init__(self, message: str, *, report: IngestionReport) -> None:
        super().__init__(message)
        self.message = message
        self.report = report

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "source_id": self.report.source_id,
            "file_name": self.report.file_name,
            "inserted": self.report.inserted,
            "status": self.report.status,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def compute_content_hash(raw_content: str) -> str:
    """
    Hex digest of the raw upload used for duplicate-file detection.
    """

    return hashlib.md5(raw_content.encode("utf-8"), usedforsecurity=False).hexdigest()


def chunked(items: Sequence[_T], size: int) -> Iterator[Sequence[_T]]:
    step = max(1, size)
    for start in range(0, len(items), step):
        yield items[start : start + step]


def run_status(*, inserted: int, unmapped_records: int, failed: bool) -> str:
    if failed:
        return AuditStatus.ERROR
    if inserted > 0 and unmapped_records == 0:
        return AuditStatus.SUCCESS
    return AuditStatus.PARTIAL


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class BookingImportService:
    """
    Coordinates parsing, deduplication, identity resolution and persistence.
    """

    def __init__(
        self,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_reported_errors: int = 500,
        log_row_errors: bool = True,
        ambiguous_listings: Sequence[str] = (),
        registry: ParserRegistry | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._chunk_size = max(1, chunk_size)
        self._max_reported_errors = max(1, max_reported_errors)
        self._log_row_errors = log_row_errors
        self._ambiguous_listings = tuple(ambiguous_listings)
        self._registry = registry or get_default_registry()
        self._clock = clock

    @property
    def registry(self) -> ParserRegistry:
        return self._registry

    def ingest(
        self,
        *,
        source_id: str,
        file_name: str,
        raw_content: str,
        storage: BookingStorage,
    ) -> IngestionReport:
        """
        Run one import of ``raw_content`` for ``source_id``.

        Raises:
            UnknownSourceError:       no parser for ``source_id``.
            StructuralParseError:     the file layout is unusable.
            BookingStorageError:      the run snapshot could not be loaded.
            BookingPersistenceError:  a chunk or the import log failed to persist.
        """

        parser = self._registry.require(source_id)
        source_id = parser.source_id
        file_name = file_name.strip() or "upload.csv"
        content_hash = compute_content_hash(raw_content)
        log_event(
            logger,
            logging.INFO,
            "booking_import_started",
            source_id=source_id,
            file_name=file_name,
            content_hash=content_hash,
        )

        try:
            parse_result = parser.parse(raw_content)
        except StructuralParseError as exc:
            log_event(
                logger,
                logging.WARNING,
                "booking_import_failed",
                source_id=source_id,
                file_name=file_name,
                stage="parse",
                error=exc.message,
            )
            raise

        # Per-run snapshots.
        try:
            deduplicator = DeduplicationFilter(storage.load_existing_external_ids())
            resolver = IdentityResolver(
                storage.load_mappings(source_id),
                ambiguous_patterns=self._ambiguous_listings,
                registry=storage.load_room_registry(),
            )
        except BookingStorageError as exc:
            log_event(
                logger,
                logging.ERROR,
                "booking_import_failed",
                source_id=source_id,
                file_name=file_name,
                stage="load",
                error=str(exc),
            )
            raise

        queue: list[ResolvedBooking] = []
        unmapped_records = 0
        for booking in parse_result.bookings:
            if deduplicator.is_duplicate(booking):
                continue
            identity = resolver.resolve(booking)
            if identity is None:
                unmapped_records += 1
                continue
            queue.append(ResolvedBooking(source_id=source_id, booking=booking, identity=identity))
            deduplicator.mark_queued(booking)

        inserted = 0
        failure: StorageWriteError | None = None
        for index, chunk in enumerate(chunked(queue, self._chunk_size)):
            try:
                inserted += storage.insert_bookings_batch(chunk)
            except StorageWriteError as exc:
                failure = exc
                break
            log_event(
                logger,
                logging.DEBUG,
                "booking_import_chunk_persisted",
                source_id=source_id,
                chunk=index,
                size=len(chunk),
                inserted_total=inserted,
            )

        unmapped = resolver.unmapped
        status = run_status(
            inserted=inserted,
            unmapped_records=unmapped_records,
            failed=failure is not None,
        )
        message = self._run_message(failure=failure, unmapped=unmapped)
        report = IngestionReport(
            source_id=source_id,
            file_name=file_name,
            content_hash=content_hash,
            status=status,
            parsed=len(parse_result.bookings),
            inserted=inserted,
            skipped=deduplicator.skipped_count,
            unmapped_records=unmapped_records,
            unmapped=unmapped,
            skipped_ids=deduplicator.skipped_ids,
            errors=self._capture_errors(parse_result.errors, source_id=source_id),
            warnings=list(parse_result.warnings[: self._max_reported_errors]),
            message=message,
        )

        try:
            storage.insert_audit_entry(
                ImportAuditEntry(
                    source_id=source_id,
                    file_name=file_name,
                    content_hash=content_hash,
                    record_count=inserted,
                    status=status,
                    imported_at=self._clock(),
                    message=message,
                )
            )
        except StorageWriteError as exc:
            self._log_failure(report, stage="audit", error=str(exc))
            raise BookingPersistenceError("Import log could not be written.", report=report) from exc

        if failure is not None:
            self._log_failure(report, stage="persist", error=str(failure))
            raise BookingPersistenceError(
                "Failed to persist bookings; remaining chunks were not written.",
                report=report,
            ) from failure

        log_event(
            logger,
            logging.INFO,
            "booking_import_completed",
            source_id=source_id,
            file_name=file_name,
            status=status,
            parsed=report.parsed,
            inserted=inserted,
            skipped=report.skipped,
            unmapped=len(unmapped),
            row_errors=len(parse_result.errors),
            warnings=len(parse_result.warnings),
        )
        return report

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _run_message(*, failure: StorageWriteError | None, unmapped: Sequence[str]) -> str | None:
        parts: list[str] = []
        if failure is not None:
            parts.append(str(failure))
        if unmapped:
            parts.append("Unmapped listings: " + ", ".join(unmapped))
        return " / ".join(parts) or None

    def _capture_errors(
        self,
        errors: Sequence[RowParseError],
        *,
        source_id: str,
    ) -> list[RowParseError]:
        if self._log_row_errors:
            for error in errors:
                logger.warning(
                    "Booking row error source=%s row=%s column=%s message=%s value=%r",
                    source_id,
                    error.row_number,
                    error.column,
                    error.message,
                    error.value,
                )
        return list(errors[: self._max_reported_errors])

    @staticmethod
    def _log_failure(report: IngestionReport, *, stage: str, error: str) -> None:
        log_event(
            logger,
            logging.ERROR,
            "booking_import_failed",
            source_id=report.source_id,
            file_name=report.file_name,
            stage=stage,
            inserted=report.inserted,
            error=error,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_booking_import_service() -> BookingImportService:
    """
    Build and cache the import service with env-driven settings.
    """

    settings = get_booking_import_settings()
    return BookingImportService(
        chunk_size=settings.chunk_size,
        max_reported_errors=settings.max_reported_errors,
        log_row_errors=settings.log_row_errors,
        ambiguous_listings=settings.ambiguous_listings,
    )
