"""
app/repositories package marker.
"""

from app.repositories.booking_storage import (
    BookingStorage,
    BookingStorageError,
    SourceNotRegisteredError,
    SqlAlchemyBookingStorage,
    StorageReadError,
    StorageWriteError,
)
from app.repositories.import_log_repository import ImportLogRecord, ImportLogRepository

__all__ = [
    "BookingStorage",
    "BookingStorageError",
    "ImportLogRecord",
    "ImportLogRepository",
    "SourceNotRegisteredError",
    "SqlAlchemyBookingStorage",
    "StorageReadError",
    "StorageWriteError",
]
