from __future__ import annotations

import pytest

from app.domain.booking import BookingStatus
from app.parsers.base import StructuralParseError
from app.parsers.spacee import extract_property_name, spacee_parser
from tests.support import build_csv

HEADERS = [
    "予約ID",
    "スペース名",
    "予約ステータス",
    "お支払い方法",
    "予約者名",
    "利用目的",
    "利用人数",
    "予約申込日",
    "予約確定日",
    "利用開始日時",
    "利用終了日時",
    "利用時間（分）",
    "スペース利用料（税込）",
    "オプション設備（税込）",
    "キャンセル予約金額（税込）",
    "差引合計売上金額（税込）",
    "システム利用料（税抜。料率毎合計）",
    "システム利用料消費税（合計）",
    "精算額（合計）",
]


def _row(
    reservation_id: str,
    title: str,
    *,
    status: str = "予約完了",
    start: str = "2024/01/15 09:00:00",
    end: str = "2024/01/15 12:00:00",
    minutes: str = "180",
    gross: str = "10000",
    fee: str = "2727",
    fee_tax: str = "272",
    settlement: str = "7001",
) -> list[str]:
    return [
        reservation_id,
        title,
        status,
        "クレジットカード",
        "佐藤",
        "会議",
        "8",
        "2024/01/05",
        "2024/01/05",
        start,
        end,
        minutes,
        gross,
        "0",
        "0",
        gross,
        fee,
        fee_tax,
        settlement,
    ]


def test_parses_rows_and_skips_non_data_lines() -> None:
    unknown_title = "X" * 100
    content = build_csv(
        HEADERS,
        [
            _row("1001", "?ブルースペース上野駅前4A最大20人・駅徒歩1分"),
            _row("合計", ""),
            _row(
                "1002",
                "【新宿】西新宿駅近くの会議室",
                status="利用者キャンセル",
                gross="0",
                fee="0",
                fee_tax="0",
                settlement="0",
            ),
            _row("1003", "どこかのスペース", start=""),
            _row("1004", unknown_title),
        ],
    )

    result = spacee_parser.parse(content)

    assert result.errors == []
    assert [booking.external_id for booking in result.bookings] == ["1001", "1002", "1004"]
    assert [warning.row_number for warning in result.warnings] == [4, 5]

    first = result.bookings[0]
    assert first.source_display_name == "ブルースペース上野駅前4A"
    assert first.usage_date == "2024-01-15"
    assert first.booking_date == "2024-01-05"
    assert first.start_time == "09:00"
    assert first.end_time == "12:00"
    assert first.duration_minutes == 180
    assert first.gross_amount == 10000
    assert first.commission == 2999
    assert first.net_amount == 7001
    assert first.guest_count == 8
    assert first.sub_space_label is None

    cancelled = result.bookings[1]
    assert cancelled.source_display_name == "ブルースペース西新宿403"
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.commission is None
    assert cancelled.net_amount is None

    assert result.bookings[2].source_display_name == "X" * 80


def test_expired_booking_counts_as_cancelled() -> None:
    content = build_csv(HEADERS, [_row("1005", "ブルースペース神田 駅前", status="振込期限切れ")])

    result = spacee_parser.parse(content)

    assert result.bookings[0].status == BookingStatus.CANCELLED
    assert len(result.warnings) == 1


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("?ブルースペース上野駅前4B最大10人", "ブルースペース上野駅前4B"),
        ("上野駅前のスペース 4A 会議室", "ブルースペース上野駅前4A"),
        ("上野駅前のスペース", "ブルースペース上野駅前"),
        ("【白金高輪】パーティールーム", "ブルースペース白金高輪"),
        ("御徒町駅 上野御徒町 貸会議室", "ブルースペース上野御徒町"),
        ("神田駅徒歩1分", "ブルースペース神田"),
        ("ブルースペース西新宿2 会議室", "ブルースペース西新宿2"),
        ("【西新宿駅4分】上野駅前にも系列あり", "ブルースペース西新宿403"),
        ("白金高輪 上野駅前からも近い", "ブルースペース白金高輪"),
        ("上野駅前 神田方面", "ブルースペース上野駅前"),
    ],
)
def test_extract_property_name(title: str, expected: str) -> None:
    assert extract_property_name(title) == expected


def test_settlement_far_from_gross_is_warned() -> None:
    content = build_csv(
        HEADERS,
        [
            _row("1006", "ブルースペース神田", settlement="5000"),
            _row("1007", "ブルースペース神田", settlement="7050"),
        ],
    )

    result = spacee_parser.parse(content)

    assert result.errors == []
    assert [booking.external_id for booking in result.bookings] == ["1006", "1007"]
    (warning,) = result.warnings
    assert warning.row_number == 2
    assert warning.message == "Net 5000 + commission 2999 differs from gross 10000 by -2001."


def test_missing_required_header_is_structural() -> None:
    headers = [header for header in HEADERS if header != "予約ステータス"]

    with pytest.raises(StructuralParseError):
        spacee_parser.parse(build_csv(headers, []))
