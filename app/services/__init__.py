"""
app/services package marker.
"""

from app.services.booking_import_service import (
    BookingImportService,
    BookingPersistenceError,
    compute_content_hash,
    get_booking_import_service,
)
from app.services.deduplication import DeduplicationFilter

__all__ = [
    "BookingImportService",
    "BookingPersistenceError",
    "DeduplicationFilter",
    "compute_content_hash",
    "get_booking_import_service",
]
