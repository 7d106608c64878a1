from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from app.domain.booking import (
    ImportAuditEntry,
    PropertyIdentity,
    ResolvedBooking,
    SourceMapping,
)
from app.repositories.booking_storage import StorageReadError, StorageWriteError

FIXED_NOW = datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc)


class InMemoryBookingStorage:
    """
    BookingStorage fake that keeps everything in lists.

    ``fail_on_batch`` makes the n-th (0-based) insert_bookings_batch call fail.
    ``fail_load`` makes the existing-ID snapshot fail.
    """

    def __init__(
        self,
        *,
        mappings: Iterable[SourceMapping] = (),
        existing_ids: Iterable[str] = (),
        registry: Iterable[PropertyIdentity] | None = None,
        fail_on_batch: int | None = None,
        fail_audit: bool = False,
        fail_load: bool = False,
    ) -> None:
        self.mappings = list(mappings)
        self.existing_ids = set(existing_ids)
        self.registry = (
            list(registry) if registry is not None else [mapping.identity for mapping in self.mappings]
        )
        self.fail_on_batch = fail_on_batch
        self.fail_audit = fail_audit
        self.fail_load = fail_load
        self.batch_calls = 0
        self.batches: list[list[ResolvedBooking]] = []
        self.audit_entries: list[ImportAuditEntry] = []

    def load_mappings(self, source_id: str) -> list[SourceMapping]:
        return [mapping for mapping in self.mappings if mapping.source_id == source_id]

    def load_existing_external_ids(self) -> set[str]:
        if self.fail_load:
            raise StorageReadError("simulated load failure")
        return set(self.existing_ids)

    def load_room_registry(self) -> list[PropertyIdentity]:
        return list(self.registry)

    def insert_bookings_batch(self, records: Sequence[ResolvedBooking]) -> int:
        call = self.batch_calls
        self.batch_calls += 1
        if self.fail_on_batch is not None and call == self.fail_on_batch:
            raise StorageWriteError("simulated chunk failure")
        self.batches.append(list(records))
        self.existing_ids.update(
            record.booking.external_id for record in records if record.booking.external_id
        )
        return len(records)

    def insert_audit_entry(self, entry: ImportAuditEntry) -> None:
        if self.fail_audit:
            raise StorageWriteError("simulated audit failure")
        self.audit_entries.append(entry)

    @property
    def inserted(self) -> list[ResolvedBooking]:
        return [record for batch in self.batches for record in batch]


def build_csv(headers: Sequence[str], rows: Iterable[Sequence[object]], *, preamble: str | None = None) -> str:
    buffer = io.StringIO()
    if preamble is not None:
        buffer.write(preamble + "\n")
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()
