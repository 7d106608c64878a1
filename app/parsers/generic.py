"""
app/parsers/generic.py

Fallback parser for exports without a dedicated layout.

Columns are detected by matching header text against per-concept synonym
patterns. Listing name, usage date and amount are required concepts; a file
missing any of them is rejected as a whole.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from app.domain.booking import ParseResult
from app.normalizers.fields import (
    is_canonical_time,
    is_numeric_amount,
    normalize_date,
    normalize_time,
    parse_amount,
)
from app.parsers.base import (
    HeaderErrorDetail,
    ParseAccumulator,
    RawRow,
    SourceParser,
    StructuralParseError,
    classify_status,
    make_booking,
    optional_text,
    parse_rows,
    split_csv,
)

SOURCE_ID = "generic"
DISPLAY_NAME = "Generic"

REQUIRED_CONCEPTS: tuple[str, ...] = ("listing_name", "usage_date", "gross_amount")

# Header-level gate: any header matching each of these is enough to accept the file.
REQUIRED_HEADER_PATTERNS: dict[str, re.Pattern[str]] = {
    "listing_name": re.compile(r"(施設|スペース|物件|店舗|room|space|listing|property)", re.IGNORECASE),
    "usage_date": re.compile(r"(利用日|使用日|予約日|日付|date)", re.IGNORECASE),
    "gross_amount": re.compile(r"(金額|売上|料金|総額|amount|price|total)", re.IGNORECASE),
}

# Column detection, in priority order. Each header is assigned to at most one concept.
COLUMN_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("external_id", re.compile(r"(予約id|予約番号|booking[\s_-]*id|reservation|^id$)", re.IGNORECASE)),
    ("listing_name", re.compile(r"(施設|スペース|物件|店舗|room|space|listing|property)", re.IGNORECASE)),
    ("usage_date", re.compile(r"(利用日|使用日|usage|^日付$|^date$)", re.IGNORECASE)),
    ("booking_date", re.compile(r"(予約日|申込日|booking)", re.IGNORECASE)),
    ("start_time", re.compile(r"(開始|start|^from$)", re.IGNORECASE)),
    ("end_time", re.compile(r"(終了|end|^to$)", re.IGNORECASE)),
    ("net_amount", re.compile(r"(入金|振込|net|payout)", re.IGNORECASE)),
    ("gross_amount", re.compile(r"(総額|売上|金額|料金|amount|price|total)", re.IGNORECASE)),
    ("status", re.compile(r"(ステータス|状態|status)", re.IGNORECASE)),
    ("guest_name", re.compile(r"(名前|氏名|ゲスト|guest|name)", re.IGNORECASE)),
)

CANCELLED_KEYWORDS: tuple[str, ...] = ("キャンセル", "取消", "cancel")
CONFIRMED_KEYWORDS: tuple[str, ...] = ("確定", "完了", "成約", "confirm")
PENDING_KEYWORDS: tuple[str, ...] = ("仮予約", "保留", "pending")


def detect_columns(headers: Sequence[str]) -> dict[str, int]:
    """
    Map each detectable concept to the position of its header.

    A file carrying only a reservation date uses it as the usage date.
    """

    columns: dict[str, int] = {}
    used: set[int] = set()
    for concept, pattern in COLUMN_PATTERNS:
        for index, header in enumerate(headers):
            if index in used or not header:
                continue
            if pattern.search(header):
                columns[concept] = index
                used.add(index)
                break

    if "usage_date" not in columns and "booking_date" in columns:
        columns["usage_date"] = columns["booking_date"]
    return columns


def validate_headers(headers: Sequence[str]) -> bool:
    return all(
        any(pattern.search(header) for header in headers)
        for pattern in REQUIRED_HEADER_PATTERNS.values()
    )


def parse(content: str) -> ParseResult:
    headers, rows = split_csv(content, source_id=SOURCE_ID)

    columns = detect_columns(headers)
    missing = [concept for concept in REQUIRED_CONCEPTS if concept not in columns]
    if missing:
        raise StructuralParseError(
            message="Required columns could not be detected: " + ", ".join(missing) + ".",
            source_id=SOURCE_ID,
            errors=[
                HeaderErrorDetail(
                    code="required_concept_missing",
                    message="No header matches this required column.",
                    expected=concept,
                    context={"headers": list(headers)},
                )
                for concept in missing
            ],
        )

    def handle_row(row: RawRow, accumulator: ParseAccumulator) -> None:
        listing_name = row.at(columns.get("listing_name"))
        raw_usage_date = row.at(columns.get("usage_date"))
        if not listing_name or not raw_usage_date:
            accumulator.add_error(row.row_number, "Listing name or usage date is empty.")
            return

        raw_gross = row.at(columns.get("gross_amount"))
        if not is_numeric_amount(raw_gross):
            accumulator.add_error(
                row.row_number,
                "Amount is not numeric.",
                column=_header_at(headers, columns.get("gross_amount")),
                value=raw_gross,
            )
            return

        gross_amount = parse_amount(raw_gross)
        raw_net = row.at(columns.get("net_amount"))
        net_amount = (parse_amount(raw_net) or None) if raw_net else None
        commission = gross_amount - net_amount if net_amount is not None else None

        usage_date = normalize_date(raw_usage_date)
        start_time = _clock_time(row, accumulator, headers, columns.get("start_time"))
        end_time = _clock_time(row, accumulator, headers, columns.get("end_time"))
        accumulator.add_booking(
            make_booking(
                source_display_name=listing_name,
                usage_date=usage_date,
                booking_date=normalize_date(row.at(columns.get("booking_date"))) or usage_date,
                start_time=start_time,
                end_time=end_time,
                gross_amount=gross_amount,
                net_amount=net_amount,
                commission=commission or None,
                external_id=optional_text(row.at(columns.get("external_id"))),
                guest_name=optional_text(row.at(columns.get("guest_name"))),
                status=classify_status(
                    row.at(columns.get("status")),
                    cancelled=CANCELLED_KEYWORDS,
                    confirmed=CONFIRMED_KEYWORDS,
                    pending=PENDING_KEYWORDS,
                ),
                row_number=row.row_number,
            ),
            row_number=row.row_number,
        )

    return parse_rows(rows, handle_row, source_id=SOURCE_ID)


def _clock_time(
    row: RawRow,
    accumulator: ParseAccumulator,
    headers: Sequence[str],
    index: int | None,
) -> str | None:
    """
    Normalized ``HH:MM`` at ``index``; anything else is dropped with a warning.
    """

    raw = row.at(index)
    if not raw:
        return None
    value = normalize_time(raw)
    if is_canonical_time(value):
        return value
    accumulator.add_warning(
        row.row_number,
        f"Unrecognized time {raw!r} in column {_header_at(headers, index)!r}; value ignored.",
    )
    return None


def _header_at(headers: Sequence[str], index: int | None) -> str | None:
    if index is None or index >= len(headers):
        return None
    return headers[index]


generic_parser = SourceParser(
    source_id=SOURCE_ID,
    display_name=DISPLAY_NAME,
    validate_headers=validate_headers,
    parse=parse,
)
