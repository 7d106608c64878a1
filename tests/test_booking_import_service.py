from __future__ import annotations

import json
import logging

import pytest

from app.domain.booking import AuditStatus, PropertyIdentity, SourceMapping
from app.parsers.base import StructuralParseError
from app.parsers.registry import UnknownSourceError
from app.repositories.booking_storage import StorageReadError
from app.services.booking_import_service import (
    BookingImportService,
    BookingPersistenceError,
    chunked,
    compute_content_hash,
    run_status,
)
from tests.support import FIXED_NOW, InMemoryBookingStorage, build_csv

HEADERS = ["予約ID", "施設名", "利用日", "金額"]

KANDA = PropertyIdentity(property_id=1)
UENO = PropertyIdentity(property_id=2)

MAPPINGS = [
    SourceMapping(source_id="generic", source_display_name="ブルースペース神田", identity=KANDA),
    SourceMapping(source_id="generic", source_display_name="ブルースペース上野", identity=UENO),
]


def _service(**kwargs) -> BookingImportService:
    return BookingImportService(clock=lambda: FIXED_NOW, **kwargs)


def _rows(count: int, *, name: str = "ブルースペース神田") -> list[list[str]]:
    return [[f"G-{index}", name, "2024-01-15", "1000"] for index in range(1, count + 1)]


def test_duplicate_unmapped_and_inserted_rows_in_one_run() -> None:
    content = build_csv(
        HEADERS,
        [
            ["G-1", "ブルースペース神田", "2024-01-15", "5000"],
            ["G-2", "ブルースペース神田", "2024-01-16", "6000"],
            ["G-3", "ブルースペース新宿", "2024-01-17", "7000"],
        ],
    )
    storage = InMemoryBookingStorage(mappings=MAPPINGS, existing_ids=["G-1"])

    report = _service().ingest(
        source_id="generic",
        file_name="bookings.csv",
        raw_content=content,
        storage=storage,
    )

    assert report.parsed == 3
    assert report.inserted == 1
    assert report.skipped == 1
    assert report.skipped_ids == ["G-1"]
    assert report.unmapped == ["ブルースペース新宿"]
    assert report.unmapped_records == 1
    assert report.status == AuditStatus.PARTIAL
    assert report.content_hash == compute_content_hash(content)

    assert [record.booking.external_id for record in storage.inserted] == ["G-2"]
    assert storage.inserted[0].identity == KANDA

    (entry,) = storage.audit_entries
    assert entry.source_id == "generic"
    assert entry.file_name == "bookings.csv"
    assert entry.status == AuditStatus.PARTIAL
    assert entry.record_count == 1
    assert entry.content_hash == report.content_hash
    assert entry.imported_at == FIXED_NOW
    assert entry.message == "Unmapped listings: ブルースペース新宿"


def test_fully_mapped_run_is_success() -> None:
    content = build_csv(HEADERS, _rows(2) + [["G-9", "ブルースペース上野", "2024-01-15", "800"]])
    storage = InMemoryBookingStorage(mappings=MAPPINGS)

    report = _service().ingest(
        source_id="Generic",
        file_name="",
        raw_content=content,
        storage=storage,
    )

    assert report.status == AuditStatus.SUCCESS
    assert report.source_id == "generic"
    assert report.file_name == "upload.csv"
    assert report.inserted == 3
    assert report.message is None
    assert storage.audit_entries[0].status == AuditStatus.SUCCESS


def test_nothing_inserted_is_partial() -> None:
    content = build_csv(HEADERS, _rows(2))
    storage = InMemoryBookingStorage(mappings=MAPPINGS, existing_ids=["G-1", "G-2"])

    report = _service().ingest(source_id="generic", file_name="a.csv", raw_content=content, storage=storage)

    assert report.inserted == 0
    assert report.skipped == 2
    assert report.status == AuditStatus.PARTIAL
    assert storage.batch_calls == 0
    assert storage.audit_entries[0].record_count == 0


def test_structural_failure_writes_nothing() -> None:
    storage = InMemoryBookingStorage(mappings=MAPPINGS)

    with pytest.raises(StructuralParseError):
        _service().ingest(
            source_id="instabase",
            file_name="wrong.csv",
            raw_content=build_csv(HEADERS, _rows(1)),
            storage=storage,
        )

    assert storage.batch_calls == 0
    assert storage.audit_entries == []


def test_unknown_source_writes_nothing() -> None:
    storage = InMemoryBookingStorage(mappings=MAPPINGS)

    with pytest.raises(UnknownSourceError):
        _service().ingest(
            source_id="airbnb",
            file_name="a.csv",
            raw_content=build_csv(HEADERS, _rows(1)),
            storage=storage,
        )

    assert storage.audit_entries == []


def test_chunks_are_written_in_file_order() -> None:
    content = build_csv(HEADERS, _rows(5))
    storage = InMemoryBookingStorage(mappings=MAPPINGS)

    report = _service(chunk_size=2).ingest(
        source_id="generic", file_name="a.csv", raw_content=content, storage=storage
    )

    assert report.inserted == 5
    assert [len(batch) for batch in storage.batches] == [2, 2, 1]
    assert [record.booking.external_id for record in storage.inserted] == [
        "G-1",
        "G-2",
        "G-3",
        "G-4",
        "G-5",
    ]


def test_failed_chunk_stops_run_and_logs_error() -> None:
    content = build_csv(HEADERS, _rows(5))
    storage = InMemoryBookingStorage(mappings=MAPPINGS, fail_on_batch=1)

    with pytest.raises(BookingPersistenceError) as exc_info:
        _service(chunk_size=2).ingest(
            source_id="generic", file_name="a.csv", raw_content=content, storage=storage
        )

    report = exc_info.value.report
    assert report.inserted == 2
    assert report.status == AuditStatus.ERROR
    assert storage.batch_calls == 2
    assert [record.booking.external_id for record in storage.inserted] == ["G-1", "G-2"]

    (entry,) = storage.audit_entries
    assert entry.status == AuditStatus.ERROR
    assert entry.record_count == 2
    assert "simulated chunk failure" in entry.message
    assert exc_info.value.to_dict()["inserted"] == 2


def test_audit_failure_raises_persistence_error() -> None:
    content = build_csv(HEADERS, _rows(1))
    storage = InMemoryBookingStorage(mappings=MAPPINGS, fail_audit=True)

    with pytest.raises(BookingPersistenceError) as exc_info:
        _service().ingest(source_id="generic", file_name="a.csv", raw_content=content, storage=storage)

    assert exc_info.value.report.inserted == 1
    assert exc_info.value.report.status == AuditStatus.SUCCESS


def test_repeated_external_id_in_one_file_is_inserted_once() -> None:
    content = build_csv(
        HEADERS,
        [
            ["G-1", "ブルースペース神田", "2024-01-15", "1000"],
            ["G-1", "ブルースペース神田", "2024-01-15", "1000"],
        ],
    )
    storage = InMemoryBookingStorage(mappings=MAPPINGS)

    report = _service().ingest(source_id="generic", file_name="a.csv", raw_content=content, storage=storage)

    assert report.inserted == 1
    assert report.skipped == 1


def test_reimport_of_same_content_skips_everything() -> None:
    content = build_csv(HEADERS, _rows(3))
    storage = InMemoryBookingStorage(mappings=MAPPINGS)
    service = _service()

    first = service.ingest(source_id="generic", file_name="a.csv", raw_content=content, storage=storage)
    second = service.ingest(source_id="generic", file_name="a.csv", raw_content=content, storage=storage)

    assert first.inserted == 3
    assert second.inserted == 0
    assert second.skipped == 3
    assert first.content_hash == second.content_hash
    assert len(storage.audit_entries) == 2


def test_row_errors_are_capped_in_report() -> None:
    rows = [[f"G-{index}", "ブルースペース神田", "2024-01-15", "abc"] for index in range(5)]
    storage = InMemoryBookingStorage(mappings=MAPPINGS)

    report = _service(max_reported_errors=2, log_row_errors=False).ingest(
        source_id="generic",
        file_name="a.csv",
        raw_content=build_csv(HEADERS, rows),
        storage=storage,
    )

    assert report.parsed == 0
    assert len(report.errors) == 2
    assert report.status == AuditStatus.PARTIAL


def test_helpers() -> None:
    assert [list(chunk) for chunk in chunked([1, 2, 3], 2)] == [[1, 2], [3]]
    assert list(chunked([], 100)) == []
    assert run_status(inserted=1, unmapped_records=0, failed=False) == AuditStatus.SUCCESS
    assert run_status(inserted=1, unmapped_records=1, failed=False) == AuditStatus.PARTIAL
    assert run_status(inserted=5, unmapped_records=0, failed=True) == AuditStatus.ERROR
    assert compute_content_hash("a") == "0cc175b9c0f1b6a831c399e269772661"


def test_run_lifecycle_events_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="app.services.booking_import_service")
    storage = InMemoryBookingStorage(mappings=MAPPINGS)

    _service().ingest(
        source_id="generic",
        file_name="a.csv",
        raw_content=build_csv(HEADERS, _rows(1)),
        storage=storage,
    )

    events = [
        json.loads(record.getMessage())
        for record in caplog.records
        if record.name == "app.services.booking_import_service"
    ]
    assert [event["event"] for event in events] == ["booking_import_started", "booking_import_completed"]
    assert events[1]["inserted"] == 1
    assert "message" not in events[1]


def test_snapshot_load_failure_is_logged_and_writes_nothing(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="app.services.booking_import_service")
    storage = InMemoryBookingStorage(mappings=MAPPINGS, fail_load=True)

    with pytest.raises(StorageReadError, match="simulated load failure"):
        _service().ingest(
            source_id="generic",
            file_name="a.csv",
            raw_content=build_csv(HEADERS, _rows(1)),
            storage=storage,
        )

    assert storage.batch_calls == 0
    assert storage.audit_entries == []

    failed = [
        json.loads(record.getMessage())
        for record in caplog.records
        if record.levelno == logging.ERROR
    ]
    assert [event["stage"] for event in failed] == ["load"]
    assert failed[0]["event"] == "booking_import_failed"
