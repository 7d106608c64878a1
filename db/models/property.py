"""
db/models/property.py

Internal property and room registry.
"""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin


class Property(Base, TimestampMixin):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Internal management code, e.g. P001",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    monthly_rent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_fixed_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    room_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    rooms: Mapped[list["Room"]] = relationship("Room", back_populates="owner")


class Room(Base, TimestampMixin):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Room code, e.g. P002-4A",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    owner: Mapped["Property"] = relationship("Property", back_populates="rooms")

    __table_args__ = (
        UniqueConstraint("property_id", "code", name="uq_rooms_property_id_code"),
        Index("ix_rooms_property_id", "property_id"),
    )
