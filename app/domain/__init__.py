"""
app/domain package marker.
"""

from app.domain.booking import (
    AuditStatus,
    BookingStatus,
    CanonicalBooking,
    ImportAuditEntry,
    IngestionReport,
    ParseResult,
    PropertyIdentity,
    ResolvedBooking,
    RowParseError,
    RowWarning,
    SourceMapping,
)

__all__ = [
    "AuditStatus",
    "BookingStatus",
    "CanonicalBooking",
    "ImportAuditEntry",
    "IngestionReport",
    "ParseResult",
    "PropertyIdentity",
    "ResolvedBooking",
    "RowParseError",
    "RowWarning",
    "SourceMapping",
]
