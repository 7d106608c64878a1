"""
db/models/booking.py

Canonical booking (revenue) records.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("properties.id"),
        nullable=False,
    )
    room_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("rooms.id"),
        nullable=True,
    )
    platform_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("platforms.id"),
        nullable=False,
    )

    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    usage_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True, comment="HH:MM")
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True, comment="HH:MM")
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    gross_amount: Mapped[int] = mapped_column(Integer, nullable=False, comment="Tax-inclusive JPY")
    net_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    commission: Mapped[int | None] = mapped_column(Integer, nullable=True)

    platform_booking_id: Mapped[str | None] = mapped_column(
        String(120),
        nullable=True,
        unique=True,
        comment="Reservation ID on the source platform",
    )
    guest_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="confirmed")

    usage_purpose: Mapped[str | None] = mapped_column(String(255), nullable=True)
    usage_detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    guest_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_bookings_property_id_usage_date", "property_id", "usage_date"),
        Index("ix_bookings_platform_id", "platform_id"),
        Index("ix_bookings_usage_date", "usage_date"),
    )
