"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.booking import Booking
from db.models.import_log import ImportLog, ImportLogStatus
from db.models.platform import Platform
from db.models.platform_mapping import PlatformMapping
from db.models.property import Property, Room

__all__ = [
    "Booking",
    "ImportLog",
    "ImportLogStatus",
    "Platform",
    "PlatformMapping",
    "Property",
    "Room",
]
