"""
app/domain/booking.py

Domain models shared by the booking import pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


class BookingStatus:
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class AuditStatus:
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


@dataclass(frozen=True)
class CanonicalBooking:
    """
    Source-agnostic booking produced by a source parser.

    Dates are ISO ``YYYY-MM-DD`` strings, times are ``HH:MM`` strings and
    amounts are whole yen.
    """

    source_display_name: str
    usage_date: str
    booking_date: str
    gross_amount: int
    external_id: str | None = None
    sub_space_label: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    duration_minutes: int | None = None
    net_amount: int | None = None
    commission: int | None = None
    guest_name: str | None = None
    usage_purpose: str | None = None
    usage_detail: str | None = None
    guest_count: int | None = None
    status: str = BookingStatus.CONFIRMED
    source_row: int | None = None


@dataclass(frozen=True)
class RowParseError:
    """
    One row-scoped parse error. The row is dropped, the run continues.
    """

    row_number: int
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class RowWarning:
    row_number: int
    message: str


@dataclass(frozen=True)
class ParseResult:
    """
    Output of one parser call.
    """

    bookings: list[CanonicalBooking] = field(default_factory=list)
    errors: list[RowParseError] = field(default_factory=list)
    warnings: list[RowWarning] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class PropertyIdentity:
    """
    Internal registry entry a booking is attributed to.
    """

    property_id: int
    room_id: int | None = None
    is_active: bool = True


@dataclass(frozen=True)
class SourceMapping:
    """
    Links a source listing name (and optional sub-space prefix) to an identity.
    """

    source_id: str
    source_display_name: str
    identity: PropertyIdentity
    sub_space_prefix: str | None = None


@dataclass(frozen=True)
class ResolvedBooking:
    """
    Booking attributed to an internal identity and queued for persistence.
    """

    source_id: str
    booking: CanonicalBooking
    identity: PropertyIdentity


@dataclass(frozen=True)
class ImportAuditEntry:
    """
    Immutable record of one ingestion run.
    """

    source_id: str
    file_name: str
    content_hash: str
    record_count: int
    status: str
    imported_at: datetime
    message: str | None = None


@dataclass(frozen=True)
class IngestionReport:
    """
    End-of-run summary returned to the caller.
    """

    source_id: str
    file_name: str
    content_hash: str
    status: str
    parsed: int
    inserted: int
    skipped: int
    unmapped_records: int
    unmapped: list[str] = field(default_factory=list)
    skipped_ids: list[str] = field(default_factory=list)
    errors: list[RowParseError] = field(default_factory=list)
    warnings: list[RowWarning] = field(default_factory=list)
    message: str | None = None
