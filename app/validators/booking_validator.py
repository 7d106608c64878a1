"""
app/validators/booking_validator.py

Record-level checks applied by every source parser before a booking is emitted.
"""

from __future__ import annotations

from datetime import date

from app.domain.booking import CanonicalBooking, RowParseError, RowWarning

DIVERGENCE_MIN_TOLERANCE = 1
DIVERGENCE_TOLERANCE_RATIO = 0.01


def is_iso_date(value: str | None) -> bool:
    """
    Return True when ``value`` is a real calendar date in ``YYYY-MM-DD`` form.
    """

    if not value or len(value) != 10:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


class BookingValidator:
    """
    Gates canonical bookings and derives amount warnings.
    """

    def __init__(
        self,
        *,
        min_tolerance: int = DIVERGENCE_MIN_TOLERANCE,
        tolerance_ratio: float = DIVERGENCE_TOLERANCE_RATIO,
    ) -> None:
        self._min_tolerance = max(0, min_tolerance)
        self._tolerance_ratio = max(0.0, tolerance_ratio)

    def validate(
        self,
        booking: CanonicalBooking,
        *,
        row_number: int,
    ) -> tuple[list[RowParseError], list[RowWarning]]:
        """
        Return (errors, warnings) for one booking. Any error drops the row.
        """

        errors: list[RowParseError] = []
        warnings: list[RowWarning] = []

        if not is_iso_date(booking.usage_date):
            errors.append(
                RowParseError(
                    row_number=row_number,
                    column="usage_date",
                    message="Usage date is not a valid date.",
                    value=booking.usage_date or None,
                )
            )
        if booking.booking_date and not is_iso_date(booking.booking_date):
            errors.append(
                RowParseError(
                    row_number=row_number,
                    column="booking_date",
                    message="Booking date is not a valid date.",
                    value=booking.booking_date,
                )
            )
        if booking.gross_amount < 0:
            errors.append(
                RowParseError(
                    row_number=row_number,
                    column="gross_amount",
                    message="Gross amount must not be negative.",
                    value=str(booking.gross_amount),
                )
            )
        if booking.duration_minutes is not None and booking.duration_minutes < 0:
            errors.append(
                RowParseError(
                    row_number=row_number,
                    column="duration_minutes",
                    message="Duration must not be negative.",
                    value=str(booking.duration_minutes),
                )
            )

        divergence = self.amount_divergence(booking)
        if divergence is not None:
            warnings.append(
                RowWarning(
                    row_number=row_number,
                    message=(
                        f"Net {booking.net_amount} + commission {booking.commission} "
                        f"differs from gross {booking.gross_amount} by {divergence}."
                    ),
                )
            )

        return errors, warnings

    def amount_divergence(self, booking: CanonicalBooking) -> int | None:
        """
        Return the net+commission vs gross gap when it is material, else None.
        """

        if booking.net_amount is None or booking.commission is None:
            return None

        gap = booking.net_amount + booking.commission - booking.gross_amount
        tolerance = max(self._min_tolerance, int(booking.gross_amount * self._tolerance_ratio))
        if abs(gap) > tolerance:
            return gap
        return None
