"""
app/parsers/base.py

Shared building blocks for source-specific booking parsers.

A parser is a ``SourceParser`` value carrying two plain functions: a header
check and a parse function. Rows are kept as ordered (label, value) pairs so
positional lookups stay well-defined when a source repeats a header label.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from app.domain.booking import (
    BookingStatus,
    CanonicalBooking,
    ParseResult,
    RowParseError,
    RowWarning,
)
from app.normalizers.fields import parse_duration
from app.validators.booking_validator import BookingValidator

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderErrorDetail:
    """
    Structured header validation error detail.
    """

    code: str
    message: str
    expected: str | None = None
    context: dict[str, Any] | None = None


class StructuralParseError(ValueError):
    """
    Raised when a file cannot be parsed at all (bad or missing headers).
    """

    def __init__(
        self,
        *,
        message: str,
        source_id: str | None = None,
        errors: Sequence[HeaderErrorDetail] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_id = source_id
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "source_id": self.source_id,
            "errors": [
                {
                    "code": error.code,
                    "message": error.message,
                    "expected": error.expected,
                    "context": error.context,
                }
                for error in self.errors
            ],
        }


# ---------------------------------------------------------------------------
# Raw rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawRow:
    """
    One data line of a source file as ordered (label, value) pairs.
    """

    row_number: int
    cells: tuple[tuple[str, str], ...]

    def get(self, label: str, default: str = "") -> str:
        """
        Value of the first column whose label equals ``label``, stripped.
        """

        for cell_label, value in self.cells:
            if cell_label == label:
                return value.strip()
        return default

    def find(self, fragment: str, default: str = "") -> str:
        """
        Value of the first column whose label contains ``fragment``, stripped.
        """

        for cell_label, value in self.cells:
            if fragment in cell_label:
                return value.strip()
        return default

    def at(self, index: int | None, default: str = "") -> str:
        """
        Value at column position ``index``, stripped.
        """

        if index is None or index < 0 or index >= len(self.cells):
            return default
        return self.cells[index][1].strip()

    def is_blank(self) -> bool:
        return all(not value.strip() for _, value in self.cells)


def normalize_headers(headers: Iterable[str]) -> list[str]:
    return [header.replace(_BOM, "").strip() for header in headers]


def first_line(content: str) -> str:
    return content.lstrip(_BOM).split("\n", 1)[0].rstrip("\r")


def read_header_line(line: str) -> list[str]:
    """
    Split a single physical line into normalized header labels.
    """

    try:
        cells = next(csv.reader([line]), [])
    except csv.Error:
        return []
    return normalize_headers(cells)


def split_csv(
    content: str,
    *,
    source_id: str,
    skip_lines: int = 0,
) -> tuple[list[str], list[RawRow]]:
    """
    Split file content into a header list and non-blank data rows.

    ``skip_lines`` physical lines are dropped before the header. Row numbers
    are physical 1-based line numbers of the original content.
    """

    text = content.lstrip(_BOM)
    for _ in range(skip_lines):
        _, _, text = text.partition("\n")

    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        raw_headers = next(reader, None)
        if not raw_headers or not any(cell.strip() for cell in raw_headers):
            raise StructuralParseError(
                message="CSV header row is missing.",
                source_id=source_id,
                errors=[HeaderErrorDetail(code="missing_header", message="No header row found.")],
            )
        headers = normalize_headers(raw_headers)

        rows: list[RawRow] = []
        for values in reader:
            row_number = reader.line_num + skip_lines
            padded = list(values) + [""] * (len(headers) - len(values))
            labels = headers + [""] * (len(padded) - len(headers))
            row = RawRow(row_number=row_number, cells=tuple(zip(labels, padded)))
            if row.is_blank():
                continue
            rows.append(row)
    except csv.Error as exc:
        raise StructuralParseError(
            message=f"Invalid CSV format: {exc}",
            source_id=source_id,
            errors=[HeaderErrorDetail(code="invalid_csv", message=str(exc))],
        ) from exc

    return headers, rows


# ---------------------------------------------------------------------------
# Header checks
# ---------------------------------------------------------------------------


def missing_fragments(headers: Sequence[str], fragments: Sequence[str]) -> list[str]:
    """
    Required header fragments not contained in any header label.
    """

    return [fragment for fragment in fragments if not any(fragment in header for header in headers)]


def require_fragments(
    headers: Sequence[str],
    fragments: Sequence[str],
    *,
    source_id: str,
    display_name: str,
) -> None:
    missing = missing_fragments(headers, fragments)
    if not missing:
        return
    raise StructuralParseError(
        message=f"CSV headers do not match the {display_name} export layout.",
        source_id=source_id,
        errors=[
            HeaderErrorDetail(
                code="required_header_missing",
                message="Required header not found.",
                expected=fragment,
                context={"headers": list(headers)},
            )
            for fragment in missing
        ],
    )


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def classify_status(
    raw: str,
    *,
    cancelled: Sequence[str] = (),
    confirmed: Sequence[str] = (),
    pending: Sequence[str] = (),
    cancelled_codes: Sequence[str] = (),
) -> str:
    """
    Map a source status token onto the three-way status.

    Cancellation is checked first, then confirmation, then pending. Matching
    ignores case. Unknown or blank tokens count as confirmed.
    """

    value = raw.strip().casefold()
    if not value:
        return BookingStatus.CONFIRMED

    def matches(keywords: Sequence[str]) -> bool:
        return any(keyword.casefold() in value for keyword in keywords)

    if value in {code.casefold() for code in cancelled_codes} or matches(cancelled):
        return BookingStatus.CANCELLED
    if matches(confirmed):
        return BookingStatus.CONFIRMED
    if matches(pending):
        return BookingStatus.PENDING
    return BookingStatus.CONFIRMED


def parse_optional_int(raw: str) -> int | None:
    value = raw.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def optional_text(raw: str) -> str | None:
    value = raw.strip()
    return value or None


def make_booking(
    *,
    source_display_name: str,
    usage_date: str,
    gross_amount: int,
    row_number: int,
    booking_date: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
    duration_minutes: int | None = None,
    **fields: Any,
) -> CanonicalBooking:
    """
    Build a canonical booking, applying the shared defaults.

    ``booking_date`` falls back to ``usage_date`` and a missing duration is
    derived from the start and end times when both are present.
    """

    start = start_time or None
    end = end_time or None
    if duration_minutes is None and start and end:
        duration_minutes = parse_duration(start, end) or None

    return CanonicalBooking(
        source_display_name=source_display_name,
        usage_date=usage_date,
        booking_date=booking_date or usage_date,
        gross_amount=gross_amount,
        start_time=start,
        end_time=end,
        duration_minutes=duration_minutes,
        source_row=row_number,
        **fields,
    )


# ---------------------------------------------------------------------------
# Accumulation
# ---------------------------------------------------------------------------


@dataclass
class ParseAccumulator:
    """
    Collects bookings and row diagnostics for one parse call.
    """

    validator: BookingValidator = field(default_factory=BookingValidator)
    bookings: list[CanonicalBooking] = field(default_factory=list)
    errors: list[RowParseError] = field(default_factory=list)
    warnings: list[RowWarning] = field(default_factory=list)

    def add_booking(self, booking: CanonicalBooking, *, row_number: int) -> bool:
        errors, warnings = self.validator.validate(booking, row_number=row_number)
        self.warnings.extend(warnings)
        if errors:
            self.errors.extend(errors)
            return False
        self.bookings.append(booking)
        return True

    def add_error(
        self,
        row_number: int,
        message: str,
        *,
        column: str | None = None,
        value: str | None = None,
    ) -> None:
        self.errors.append(
            RowParseError(row_number=row_number, message=message, column=column, value=value)
        )

    def add_warning(self, row_number: int, message: str) -> None:
        self.warnings.append(RowWarning(row_number=row_number, message=message))

    def result(self) -> ParseResult:
        return ParseResult(
            bookings=list(self.bookings),
            errors=list(self.errors),
            warnings=list(self.warnings),
        )


def parse_rows(
    rows: Iterable[RawRow],
    handle_row: Callable[[RawRow, ParseAccumulator], None],
    *,
    source_id: str,
) -> ParseResult:
    """
    Run ``handle_row`` over every row; a failing row becomes a row error.
    """

    accumulator = ParseAccumulator()
    for row in rows:
        try:
            handle_row(row, accumulator)
        except (ValueError, IndexError) as exc:
            logger.debug("Row parse failure source=%s row=%s: %s", source_id, row.row_number, exc)
            accumulator.add_error(row.row_number, f"Row could not be parsed: {exc}")
    return accumulator.result()


# ---------------------------------------------------------------------------
# Parser variant
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceParser:
    """
    One source's parsing rules as plain function values.
    """

    source_id: str
    display_name: str
    validate_headers: Callable[[Sequence[str]], bool]
    parse: Callable[[str], ParseResult]
    supports_sub_spaces: bool = False
