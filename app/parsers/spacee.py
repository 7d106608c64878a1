"""
app/parsers/spacee.py

Parser for the Spacee reservation export (19 columns).

Spacee exports only a long marketing title per listing, so the property
name is recovered with a prioritized rule list. Titles that match no rule
fall through truncated and surface as unmapped.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from app.domain.booking import BookingStatus, ParseResult
from app.normalizers.fields import normalize_date, parse_amount, split_datetime
from app.parsers.base import (
    ParseAccumulator,
    RawRow,
    SourceParser,
    classify_status,
    make_booking,
    missing_fragments,
    optional_text,
    parse_optional_int,
    parse_rows,
    require_fragments,
    split_csv,
)

SOURCE_ID = "spacee"
DISPLAY_NAME = "Spacee"

COL_RESERVATION_ID = "予約ID"
COL_TITLE = "スペース名"
COL_STATUS = "予約ステータス"
COL_GUEST = "予約者名"
COL_PURPOSE = "利用目的"
COL_GUEST_COUNT = "利用人数"
COL_APPLIED_ON = "予約申込日"
COL_START = "利用開始日時"
COL_END = "利用終了日時"
COL_DURATION_MINUTES = "利用時間（分）"
COL_GROSS = "差引合計売上金額（税込）"
COL_SYSTEM_FEE = "システム利用料（税抜。料率毎合計）"
COL_SYSTEM_FEE_TAX = "システム利用料消費税（合計）"
COL_SETTLEMENT = "精算額（合計）"

REQUIRED_HEADERS: tuple[str, ...] = (COL_RESERVATION_ID, COL_TITLE, COL_STATUS, COL_START)

CANCELLED_KEYWORDS: tuple[str, ...] = ("キャンセル", "期限切れ")
CONFIRMED_KEYWORDS: tuple[str, ...] = ("予約完了",)

BRAND = "ブルースペース"
TITLE_FALLBACK_LENGTH = 80

_BRANDED_NAME = re.compile(BRAND + r"(上野駅前4[AB]|上野御徒町|神田|白金高輪|西新宿\d*)")
_DIGITS = re.compile(r"^\d+$")

# Location substring -> canonical listing name. Leading rules are checked
# before the station-front rooms, the remaining rules after them.
LEADING_LOCATION_RULES: tuple[tuple[str, str], ...] = (
    ("西新宿", f"{BRAND}西新宿403"),
    ("白金高輪", f"{BRAND}白金高輪"),
)
LOCATION_RULES: tuple[tuple[str, str], ...] = (
    ("上野御徒町", f"{BRAND}上野御徒町"),
    ("神田", f"{BRAND}神田"),
)


def validate_headers(headers: Sequence[str]) -> bool:
    return not missing_fragments(headers, REQUIRED_HEADERS)


def extract_property_name(title: str) -> str:
    """
    Recover the property name from a Spacee listing title.
    """

    branded = _BRANDED_NAME.search(title)
    if branded:
        return BRAND + branded.group(1)

    for fragment, name in LEADING_LOCATION_RULES:
        if fragment in title:
            return name

    if "上野駅前" in title:
        # Station-front rooms share a title unless the room code is present.
        if "4A" in title:
            return f"{BRAND}上野駅前4A"
        if "4B" in title:
            return f"{BRAND}上野駅前4B"
        return f"{BRAND}上野駅前"

    for fragment, name in LOCATION_RULES:
        if fragment in title:
            return name

    return title[:TITLE_FALLBACK_LENGTH]


def _handle_row(row: RawRow, accumulator: ParseAccumulator) -> None:
    reservation_id = row.get(COL_RESERVATION_ID)
    if not _DIGITS.match(reservation_id):
        return

    usage_date, start_time = split_datetime(row.get(COL_START))
    _, end_time = split_datetime(row.get(COL_END))
    if not usage_date:
        accumulator.add_warning(
            row.row_number,
            f"Usage start is empty; row skipped (reservation {reservation_id}).",
        )
        return

    commission = parse_amount(row.get(COL_SYSTEM_FEE)) + parse_amount(row.get(COL_SYSTEM_FEE_TAX))
    status = classify_status(
        row.get(COL_STATUS),
        cancelled=CANCELLED_KEYWORDS,
        confirmed=CONFIRMED_KEYWORDS,
    )
    if status == BookingStatus.CANCELLED:
        accumulator.add_warning(
            row.row_number,
            f"Cancelled or expired booking ({reservation_id}).",
        )

    accumulator.add_booking(
        make_booking(
            source_display_name=extract_property_name(row.get(COL_TITLE)),
            external_id=reservation_id,
            usage_date=usage_date,
            booking_date=normalize_date(row.get(COL_APPLIED_ON)),
            start_time=start_time,
            end_time=end_time,
            duration_minutes=parse_optional_int(row.get(COL_DURATION_MINUTES)) or None,
            gross_amount=parse_amount(row.get(COL_GROSS)),
            net_amount=parse_amount(row.get(COL_SETTLEMENT)) or None,
            commission=commission or None,
            guest_name=optional_text(row.get(COL_GUEST)),
            status=status,
            usage_purpose=optional_text(row.get(COL_PURPOSE)),
            guest_count=parse_optional_int(row.get(COL_GUEST_COUNT)),
            row_number=row.row_number,
        ),
        row_number=row.row_number,
    )


def parse(content: str) -> ParseResult:
    headers, rows = split_csv(content, source_id=SOURCE_ID)
    require_fragments(headers, REQUIRED_HEADERS, source_id=SOURCE_ID, display_name=DISPLAY_NAME)
    return parse_rows(rows, _handle_row, source_id=SOURCE_ID)


spacee_parser = SourceParser(
    source_id=SOURCE_ID,
    display_name=DISPLAY_NAME,
    validate_headers=validate_headers,
    parse=parse,
)
