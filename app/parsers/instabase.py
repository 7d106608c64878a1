"""
app/parsers/instabase.py

Parser for the Instabase reservation export (18 columns).

Rows without a reservation ID or facility name are separator lines and are
skipped without a diagnostic. The space column is kept as the sub-space
label for multi-room listings.
"""

from __future__ import annotations

from collections.abc import Sequence

from app.domain.booking import BookingStatus, ParseResult
from app.normalizers.fields import parse_amount, split_datetime
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

SOURCE_ID = "instabase"
DISPLAY_NAME = "Instabase"

COL_RESERVATION_ID = "予約ID"
COL_FACILITY = "施設名"
COL_SPACE = "スペース名"
COL_STATUS = "ステータス"
COL_COMPANY = "予約者会社名・屋号"
COL_GUEST = "予約者名"
COL_PURPOSE = "利用用途"
COL_PURPOSE_DETAIL = "用途詳細"
COL_GUEST_COUNT = "利用人数"
COL_APPLIED_AT = "申込日時"
COL_START = "利用開始日時"
COL_END = "利用終了日時"
# Amount and duration labels vary between half- and full-width parentheses.
COL_DURATION_HOURS = "利用時間"
COL_GROSS = "予約金額"
COL_NET = "支払金額"

REQUIRED_HEADERS: tuple[str, ...] = (
    COL_RESERVATION_ID,
    COL_FACILITY,
    COL_SPACE,
    COL_STATUS,
    COL_START,
    COL_END,
    COL_GROSS,
    COL_NET,
)

CANCELLED_KEYWORDS: tuple[str, ...] = ("キャンセル",)
CONFIRMED_KEYWORDS: tuple[str, ...] = ("確定", "完了")
PENDING_KEYWORDS: tuple[str, ...] = ("仮予約", "保留")


def validate_headers(headers: Sequence[str]) -> bool:
    return not missing_fragments(headers, REQUIRED_HEADERS)


def build_guest_name(name: str, company: str) -> str:
    """
    Combine person and organisation as ``name（company）``.
    """

    if not name:
        return company
    if not company:
        return name
    return f"{name}（{company}）"


def _hours_to_minutes(raw: str) -> int | None:
    value = raw.strip()
    if not value:
        return None
    try:
        return round(float(value) * 60) or None
    except ValueError:
        return None


def _handle_row(row: RawRow, accumulator: ParseAccumulator) -> None:
    reservation_id = row.get(COL_RESERVATION_ID)
    facility_name = row.get(COL_FACILITY)
    if not reservation_id or not facility_name:
        return

    usage_date, start_time = split_datetime(row.get(COL_START))
    _, end_time = split_datetime(row.get(COL_END))
    booking_date, _ = split_datetime(row.get(COL_APPLIED_AT))

    if not usage_date:
        accumulator.add_error(
            row.row_number,
            "Usage start is empty.",
            column=COL_START,
            value=reservation_id,
        )
        return

    gross_amount = parse_amount(row.find(COL_GROSS))
    raw_net = row.find(COL_NET)
    net_amount = (parse_amount(raw_net) or None) if raw_net else None
    commission = gross_amount - net_amount if net_amount is not None else None

    status = classify_status(
        row.get(COL_STATUS),
        cancelled=CANCELLED_KEYWORDS,
        confirmed=CONFIRMED_KEYWORDS,
        pending=PENDING_KEYWORDS,
    )
    if status == BookingStatus.CANCELLED and gross_amount == 0:
        accumulator.add_warning(row.row_number, f"Cancelled booking ({reservation_id}).")

    accumulator.add_booking(
        make_booking(
            source_display_name=facility_name,
            sub_space_label=optional_text(row.get(COL_SPACE)),
            external_id=reservation_id,
            usage_date=usage_date,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=_hours_to_minutes(row.find(COL_DURATION_HOURS)),
            gross_amount=gross_amount,
            net_amount=net_amount,
            commission=commission or None,
            guest_name=build_guest_name(row.get(COL_GUEST), row.get(COL_COMPANY)) or None,
            status=status,
            usage_purpose=optional_text(row.get(COL_PURPOSE)),
            usage_detail=optional_text(row.get(COL_PURPOSE_DETAIL)),
            guest_count=parse_optional_int(row.get(COL_GUEST_COUNT)),
            row_number=row.row_number,
        ),
        row_number=row.row_number,
    )


def parse(content: str) -> ParseResult:
    headers, rows = split_csv(content, source_id=SOURCE_ID)
    require_fragments(headers, REQUIRED_HEADERS, source_id=SOURCE_ID, display_name=DISPLAY_NAME)
    return parse_rows(rows, _handle_row, source_id=SOURCE_ID)


instabase_parser = SourceParser(
    source_id=SOURCE_ID,
    display_name=DISPLAY_NAME,
    validate_headers=validate_headers,
    parse=parse,
    supports_sub_spaces=True,
)
