"""
db/models/platform_mapping.py

Source listing display name -> internal property/room mappings.
"""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class PlatformMapping(Base, TimestampMixin):
    __tablename__ = "platform_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
    )
    room_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
        comment="Set when the listing maps to a single room",
    )
    platform_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("platforms.id", ondelete="CASCADE"),
        nullable=False,
    )
    platform_property_name: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Listing display name as exported by the platform",
    )
    sub_space_prefix: Mapped[str | None] = mapped_column(
        String(120),
        nullable=True,
        comment="Space/plan name prefix selecting this room on shared listings, e.g. 4A*",
    )
    platform_property_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_platform_mappings_platform_id", "platform_id"),
        Index("ix_platform_mappings_platform_name", "platform_id", "platform_property_name"),
    )
