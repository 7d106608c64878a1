"""
db/models/platform.py

Booking source (marketplace) master.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Platform(Base, TimestampMixin):
    __tablename__ = "platforms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Source identifier, e.g. instabase, spacee, spacemarket",
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    commission_rate: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        comment="Nominal commission rate, 0.3 = 30%",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
