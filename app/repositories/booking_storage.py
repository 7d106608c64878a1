"""
app/repositories/booking_storage.py

Storage collaborator used by the booking import service.

``BookingStorage`` is the narrow interface the import run depends on;
``SqlAlchemyBookingStorage`` implements it on the relational schema in
``db.models``. Each ``insert_bookings_batch`` call is one transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.booking import (
    ImportAuditEntry,
    PropertyIdentity,
    ResolvedBooking,
    SourceMapping,
)
from db.models.booking import Booking
from db.models.import_log import ImportLog
from db.models.platform import Platform
from db.models.platform_mapping import PlatformMapping
from db.models.property import Property, Room

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BookingStorageError(Exception):
    """Base exception for booking storage failures."""


class SourceNotRegisteredError(BookingStorageError, LookupError):
    """Raised when a source identifier has no platform row."""

    def __init__(self, source_id: str) -> None:
        super().__init__(f"Platform not registered for source_id='{source_id}'.")
        self.source_id = source_id


class StorageWriteError(BookingStorageError):
    """Raised when a write transaction fails and was rolled back."""


class StorageReadError(BookingStorageError):
    """Raised when a run snapshot cannot be loaded."""


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class BookingStorage(Protocol):
    """
    Storage operations consumed by one import run.
    """

    def load_mappings(self, source_id: str) -> list[SourceMapping]:
        ...

    def load_existing_external_ids(self) -> set[str]:
        ...

    def load_room_registry(self) -> list[PropertyIdentity]:
        ...

    def insert_bookings_batch(self, records: Sequence[ResolvedBooking]) -> int:
        ...

    def insert_audit_entry(self, entry: ImportAuditEntry) -> None:
        ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SqlAlchemyBookingStorage:
    """
    ``BookingStorage`` backed by a SQLAlchemy session (caller owns lifecycle).
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._platform_ids: dict[str, int] = {}

    def platform_id(self, source_id: str) -> int:
        cached = self._platform_ids.get(source_id)
        if cached is not None:
            return cached

        stmt = select(Platform.id).where(Platform.code == source_id)
        try:
            platform_id = self._session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageReadError(f"Failed to load platform for source_id='{source_id}': {exc}") from exc
        if platform_id is None:
            raise SourceNotRegisteredError(source_id)
        self._platform_ids[source_id] = platform_id
        return platform_id

    def load_mappings(self, source_id: str) -> list[SourceMapping]:
        platform_id = self.platform_id(source_id)
        stmt = (
            select(PlatformMapping)
            .where(
                PlatformMapping.platform_id == platform_id,
                PlatformMapping.is_active.is_(True),
            )
            .order_by(PlatformMapping.id.asc())
        )
        rows = self._read(stmt, what="platform mappings")
        return [
            SourceMapping(
                source_id=source_id,
                source_display_name=row.platform_property_name,
                sub_space_prefix=row.sub_space_prefix,
                identity=PropertyIdentity(property_id=row.property_id, room_id=row.room_id),
            )
            for row in rows
        ]

    def load_existing_external_ids(self) -> set[str]:
        stmt = select(Booking.platform_booking_id).where(Booking.platform_booking_id.is_not(None))
        return {value for value in self._read(stmt, what="existing booking IDs") if value}

    def load_room_registry(self) -> list[PropertyIdentity]:
        """
        Every property (room-less identity) and every room, with activity flags.

        A room is active only when its property is active too.
        """

        registry: list[PropertyIdentity] = []
        active_properties: dict[int, bool] = {}
        for prop in self._read(select(Property).order_by(Property.id), what="properties"):
            active_properties[prop.id] = prop.is_active
            registry.append(PropertyIdentity(property_id=prop.id, is_active=prop.is_active))

        for room in self._read(select(Room).order_by(Room.id), what="rooms"):
            registry.append(
                PropertyIdentity(
                    property_id=room.property_id,
                    room_id=room.id,
                    is_active=room.is_active and active_properties.get(room.property_id, False),
                )
            )
        return registry

    def insert_bookings_batch(self, records: Sequence[ResolvedBooking]) -> int:
        if not records:
            return 0

        try:
            models = [self._to_model(record) for record in records]
            self._session.add_all(models)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageWriteError(f"Failed to persist booking batch: {exc}") from exc
        logger.debug("Persisted booking batch size=%s", len(models))
        return len(models)

    def insert_audit_entry(self, entry: ImportAuditEntry) -> None:
        try:
            self._session.add(
                ImportLog(
                    platform_id=self.platform_id(entry.source_id),
                    file_name=entry.file_name,
                    file_hash=entry.content_hash,
                    imported_at=entry.imported_at,
                    record_count=entry.record_count,
                    status=entry.status,
                    error_message=entry.message,
                )
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageWriteError(f"Failed to write import log: {exc}") from exc

    def _read(self, stmt, *, what: str) -> list:
        try:
            return list(self._session.execute(stmt).scalars())
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageReadError(f"Failed to load {what}: {exc}") from exc

    def _to_model(self, record: ResolvedBooking) -> Booking:
        booking = record.booking
        return Booking(
            property_id=record.identity.property_id,
            room_id=record.identity.room_id,
            platform_id=self.platform_id(record.source_id),
            booking_date=date.fromisoformat(booking.booking_date),
            usage_date=date.fromisoformat(booking.usage_date),
            start_time=booking.start_time,
            end_time=booking.end_time,
            duration_minutes=booking.duration_minutes,
            gross_amount=booking.gross_amount,
            net_amount=booking.net_amount,
            commission=booking.commission,
            platform_booking_id=booking.external_id,
            guest_name=booking.guest_name,
            status=booking.status,
            usage_purpose=booking.usage_purpose,
            usage_detail=booking.usage_detail,
            guest_count=booking.guest_count,
        )
