"""
app/parsers/spacemarket.py

Parser for the Spacemarket sales export (20 columns).

The export may open with a decorative link line above the real header, and
it carries the ``スペース名`` label twice: the public long space name and,
near the end, the short internal name used for mapping. Both are read by
column position.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from app.domain.booking import BookingStatus, ParseResult
from app.normalizers.fields import normalize_date, parse_amount
from app.parsers.base import (
    ParseAccumulator,
    RawRow,
    SourceParser,
    classify_status,
    first_line,
    make_booking,
    missing_fragments,
    optional_text,
    parse_rows,
    read_header_line,
    require_fragments,
    split_csv,
)

SOURCE_ID = "spacemarket"
DISPLAY_NAME = "Spacemarket"

COL_RESERVATION_ID = "予約ID"
COL_REQUESTED_ON = "予約リクエスト日"
COL_HELD_ON = "実施日"
COL_CONTRACT_AMOUNT = "成約金額"
COL_PAYOUT = "振込予定金額"
COL_FACILITY = "施設名"
COL_SPACE = "スペース名"
COL_PLAN = "プラン名"
COL_GUEST = "ゲスト名"
COL_PURPOSE = "利用目的"
COL_FEE = "手数料"
COL_STATUS = "ステータス"

REQUIRED_HEADERS: tuple[str, ...] = (
    COL_RESERVATION_ID,
    COL_CONTRACT_AMOUNT,
    COL_HELD_ON,
    COL_STATUS,
)

CANCELLED_CODES: tuple[str, ...] = ("CL",)
CANCELLED_KEYWORDS: tuple[str, ...] = ("キャンセル",)
CONFIRMED_KEYWORDS: tuple[str, ...] = ("成約",)

_DIGITS = re.compile(r"^\d+$")
_BRACKETED_NAME = re.compile(r"「(.+?)」")
_BRANDED_NAME = re.compile(r"(ブルースペース[^\s/！!・【】※]+)")
_YEN_NOISE = re.compile(r"[¥￥,\s\"]")


@dataclass(frozen=True)
class _Columns:
    """
    Column positions resolved once per file.
    """

    facility: int | None
    public_space: int | None
    internal_name: int | None
    plan: int | None
    fee: int | None


def _positions(headers: Sequence[str], label: str) -> list[int]:
    return [index for index, header in enumerate(headers) if header == label]


def _first(headers: Sequence[str], label: str) -> int | None:
    positions = _positions(headers, label)
    return positions[0] if positions else None


def resolve_columns(headers: Sequence[str]) -> _Columns:
    space_positions = _positions(headers, COL_SPACE)
    return _Columns(
        facility=_first(headers, COL_FACILITY),
        public_space=space_positions[0] if space_positions else None,
        internal_name=space_positions[-1] if len(space_positions) > 1 else None,
        plan=_first(headers, COL_PLAN),
        fee=_first(headers, COL_FEE),
    )


def validate_headers(headers: Sequence[str]) -> bool:
    return not missing_fragments(headers, REQUIRED_HEADERS)


def extract_short_name(long_name: str) -> str:
    """
    Pull the listing name out of a long facility title.

    ``※2019年10月OPEN※神田東口徒歩1分「ブルースペース神田」...`` yields
    ``ブルースペース神田``.
    """

    bracketed = _BRACKETED_NAME.search(long_name)
    if bracketed:
        return bracketed.group(1)

    branded = _BRANDED_NAME.search(long_name)
    if branded:
        return branded.group(1)

    return long_name


def parse_yen_amount(raw: str) -> int:
    """
    Parse ``"¥7,833"`` style amounts.
    """

    return parse_amount(_YEN_NOISE.sub("", raw))


def _skip_lines(content: str) -> int:
    # Exactly one decorative line may precede the header.
    return 0 if validate_headers(read_header_line(first_line(content))) else 1


def parse(content: str) -> ParseResult:
    headers, rows = split_csv(content, source_id=SOURCE_ID, skip_lines=_skip_lines(content))
    require_fragments(headers, REQUIRED_HEADERS, source_id=SOURCE_ID, display_name=DISPLAY_NAME)
    columns = resolve_columns(headers)

    def handle_row(row: RawRow, accumulator: ParseAccumulator) -> None:
        reservation_id = row.get(COL_RESERVATION_ID)
        if not _DIGITS.match(reservation_id):
            # Totals and footer lines carry no numeric reservation ID.
            return

        listing_name = row.at(columns.internal_name) or extract_short_name(row.at(columns.facility))
        usage_date = normalize_date(row.get(COL_HELD_ON))
        if not usage_date:
            accumulator.add_warning(
                row.row_number,
                f"Event date is empty; row skipped (reservation {reservation_id}).",
            )
            return

        status = classify_status(
            row.get(COL_STATUS),
            cancelled=CANCELLED_KEYWORDS,
            confirmed=CONFIRMED_KEYWORDS,
            cancelled_codes=CANCELLED_CODES,
        )
        if status == BookingStatus.CANCELLED:
            accumulator.add_warning(row.row_number, f"Cancelled booking ({reservation_id}).")

        accumulator.add_booking(
            make_booking(
                source_display_name=listing_name,
                sub_space_label=optional_text(row.at(columns.public_space) or row.at(columns.plan)),
                external_id=reservation_id,
                usage_date=usage_date,
                booking_date=normalize_date(row.get(COL_REQUESTED_ON)),
                gross_amount=parse_yen_amount(row.get(COL_CONTRACT_AMOUNT)),
                net_amount=parse_yen_amount(row.get(COL_PAYOUT)) or None,
                commission=parse_yen_amount(row.at(columns.fee)) or None,
                guest_name=optional_text(row.get(COL_GUEST)),
                status=status,
                usage_purpose=optional_text(row.get(COL_PURPOSE)),
                row_number=row.row_number,
            ),
            row_number=row.row_number,
        )

    return parse_rows(rows, handle_row, source_id=SOURCE_ID)


spacemarket_parser = SourceParser(
    source_id=SOURCE_ID,
    display_name=DISPLAY_NAME,
    validate_headers=validate_headers,
    parse=parse,
    supports_sub_spaces=True,
)
