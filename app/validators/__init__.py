"""
app/validators package marker.
"""

from app.validators.booking_validator import BookingValidator, is_iso_date

__all__ = [
    "BookingValidator",
    "is_iso_date",
]
