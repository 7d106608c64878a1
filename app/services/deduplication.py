"""
app/services/deduplication.py

External booking ID duplicate suppression for one ingestion run.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.domain.booking import CanonicalBooking


class DeduplicationFilter:
    """
    Skips bookings whose external ID is already persisted or already queued.

    The ID snapshot is owned by the run: it is loaded once at run start and
    grows as records are queued, so an ID repeated inside one file is only
    inserted once. Bookings without an external ID always pass.
    """

    def __init__(self, existing_ids: Iterable[str] = ()) -> None:
        self._seen: set[str] = {external_id for external_id in existing_ids if external_id}
        self._skipped: list[str] = []

    def is_duplicate(self, booking: CanonicalBooking) -> bool:
        external_id = booking.external_id
        if not external_id or external_id not in self._seen:
            return False
        self._skipped.append(external_id)
        return True

    def mark_queued(self, booking: CanonicalBooking) -> None:
        if booking.external_id:
            self._seen.add(booking.external_id)

    @property
    def skipped_ids(self) -> list[str]:
        return list(self._skipped)

    @property
    def skipped_count(self) -> int:
        return len(self._skipped)

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._seen
