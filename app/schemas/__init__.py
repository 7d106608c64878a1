"""
app/schemas package marker.
"""

from app.schemas.booking_import import (
    BookingImportResponse,
    BookingRowErrorResponse,
    BookingRowWarningResponse,
    ImportLogListResponse,
    ImportLogResponse,
    SourceListResponse,
    SourceResponse,
)

__all__ = [
    "BookingImportResponse",
    "BookingRowErrorResponse",
    "BookingRowWarningResponse",
    "ImportLogListResponse",
    "ImportLogResponse",
    "SourceListResponse",
    "SourceResponse",
]
