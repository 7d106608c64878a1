"""
app/normalizers package marker.
"""

from app.normalizers.fields import (
    is_canonical_time,
    is_numeric_amount,
    normalize_date,
    normalize_time,
    parse_amount,
    parse_duration,
    split_datetime,
)

__all__ = [
    "is_canonical_time",
    "is_numeric_amount",
    "normalize_date",
    "normalize_time",
    "parse_amount",
    "parse_duration",
    "split_datetime",
]
