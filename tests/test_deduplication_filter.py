from __future__ import annotations

from app.domain.booking import CanonicalBooking
from app.services.deduplication import DeduplicationFilter


def _booking(external_id: str | None) -> CanonicalBooking:
    return CanonicalBooking(
        source_display_name="A",
        usage_date="2024-01-15",
        booking_date="2024-01-15",
        gross_amount=100,
        external_id=external_id,
    )


def test_existing_ids_are_skipped_and_recorded() -> None:
    dedup = DeduplicationFilter(["A-1", "", "A-2"])

    assert dedup.is_duplicate(_booking("A-1"))
    assert not dedup.is_duplicate(_booking("A-3"))
    assert dedup.skipped_ids == ["A-1"]
    assert dedup.skipped_count == 1
    assert "" not in dedup


def test_queued_ids_suppress_later_repeats() -> None:
    dedup = DeduplicationFilter()
    booking = _booking("B-1")

    assert not dedup.is_duplicate(booking)
    dedup.mark_queued(booking)

    assert "B-1" in dedup
    assert dedup.is_duplicate(_booking("B-1"))


def test_bookings_without_id_always_pass() -> None:
    dedup = DeduplicationFilter()
    booking = _booking(None)
    dedup.mark_queued(booking)

    assert not dedup.is_duplicate(booking)
    assert dedup.skipped_count == 0
