from __future__ import annotations

import unittest

from app.domain.booking import BookingStatus
from app.parsers.base import StructuralParseError
from app.parsers.generic import detect_columns, generic_parser
from tests.support import build_csv

HEADERS = ["予約ID", "施設名", "利用日", "開始", "終了", "金額", "ステータス", "ゲスト名"]


class TestGenericParser(unittest.TestCase):
    def test_detects_columns_from_japanese_synonyms(self) -> None:
        columns = detect_columns(HEADERS)

        self.assertEqual(columns["external_id"], 0)
        self.assertEqual(columns["listing_name"], 1)
        self.assertEqual(columns["usage_date"], 2)
        self.assertEqual(columns["start_time"], 3)
        self.assertEqual(columns["end_time"], 4)
        self.assertEqual(columns["gross_amount"], 5)
        self.assertEqual(columns["status"], 6)
        self.assertEqual(columns["guest_name"], 7)
        self.assertNotIn("net_amount", columns)

    def test_detects_columns_from_english_synonyms(self) -> None:
        columns = detect_columns(["Booking ID", "Space", "Date", "Amount"])

        self.assertEqual(columns["external_id"], 0)
        self.assertEqual(columns["listing_name"], 1)
        self.assertEqual(columns["usage_date"], 2)
        self.assertEqual(columns["gross_amount"], 3)

    def test_malformed_rows_do_not_abort_the_file(self) -> None:
        content = build_csv(
            HEADERS,
            [
                ["G-1", "ブルースペース神田", "2024/01/15", "9:00", "11:00", "5,500", "確定", "山田"],
                ["G-2", "ブルースペース神田", "2024/01/16", "", "", "abc", "", ""],
                ["G-3", "", "2024/01/17", "", "", "1000", "", ""],
                ["G-4", "ブルースペース神田", "2024-01-18", "", "", "", "キャンセル", ""],
            ],
        )

        result = generic_parser.parse(content)

        self.assertEqual(len(result.bookings), 2)
        self.assertEqual(len(result.errors), 2)
        self.assertEqual([error.row_number for error in result.errors], [3, 4])
        self.assertEqual(result.errors[0].message, "Amount is not numeric.")
        self.assertEqual(result.errors[0].column, "金額")
        self.assertFalse(result.success)

        first, last = result.bookings
        self.assertEqual(first.external_id, "G-1")
        self.assertEqual(first.usage_date, "2024-01-15")
        self.assertEqual(first.booking_date, "2024-01-15")
        self.assertEqual(first.start_time, "09:00")
        self.assertEqual(first.duration_minutes, 120)
        self.assertEqual(first.gross_amount, 5500)
        self.assertIsNone(first.commission)
        self.assertEqual(first.guest_name, "山田")
        self.assertEqual(first.source_row, 2)

        self.assertEqual(last.gross_amount, 0)
        self.assertEqual(last.status, BookingStatus.CANCELLED)

    def test_invalid_usage_date_is_a_row_error(self) -> None:
        content = build_csv(HEADERS, [["G-1", "A", "someday", "", "", "100", "", ""]])

        result = generic_parser.parse(content)

        self.assertEqual(result.bookings, [])
        self.assertEqual(result.errors[0].column, "usage_date")

    def test_missing_required_concept_rejects_the_file(self) -> None:
        content = build_csv(["施設名", "金額"], [["A", "100"]])

        with self.assertRaises(StructuralParseError) as ctx:
            generic_parser.parse(content)

        expected = {error.expected for error in ctx.exception.errors}
        self.assertEqual(expected, {"usage_date"})
        self.assertEqual(ctx.exception.to_dict()["source_id"], "generic")

    def test_status_matching_ignores_case(self) -> None:
        content = build_csv(
            ["Listing", "Date", "Amount", "Status"],
            [
                ["A", "2024-01-15", "1000", "Cancelled"],
                ["A", "2024-01-15", "1000", "CANCELLED"],
                ["A", "2024-01-15", "1000", "Confirmed"],
                ["A", "2024-01-15", "1000", "Pending"],
            ],
        )

        result = generic_parser.parse(content)

        self.assertEqual(
            [booking.status for booking in result.bookings],
            [
                BookingStatus.CANCELLED,
                BookingStatus.CANCELLED,
                BookingStatus.CONFIRMED,
                BookingStatus.PENDING,
            ],
        )

    def test_times_are_reduced_to_hours_and_minutes(self) -> None:
        content = build_csv(
            HEADERS,
            [
                ["G-1", "A", "2024-01-15", "09:00:00", "10:30:00", "1000", "", ""],
                ["G-2", "A", "2024-01-15", "9:00 AM", "25:00", "1000", "", ""],
            ],
        )

        result = generic_parser.parse(content)

        self.assertEqual(result.errors, [])
        first, second = result.bookings
        self.assertEqual(first.start_time, "09:00")
        self.assertEqual(first.end_time, "10:30")
        self.assertEqual(first.duration_minutes, 90)

        self.assertIsNone(second.start_time)
        self.assertIsNone(second.end_time)
        self.assertIsNone(second.duration_minutes)
        self.assertEqual([warning.row_number for warning in result.warnings], [3, 3])
        self.assertIn("'9:00 AM'", result.warnings[0].message)
        self.assertIn("'開始'", result.warnings[0].message)
        self.assertIn("'25:00'", result.warnings[1].message)

    def test_invalid_booking_date_is_a_row_error(self) -> None:
        content = build_csv(
            ["予約ID", "施設名", "利用日", "予約日", "金額"],
            [
                ["G-1", "A", "2024-01-15", "2024/13/45", "1000"],
                ["G-2", "A", "2024-01-15", "2024/01/10", "1000"],
            ],
        )

        result = generic_parser.parse(content)

        self.assertEqual([booking.external_id for booking in result.bookings], ["G-2"])
        self.assertEqual(result.bookings[0].booking_date, "2024-01-10")
        (error,) = result.errors
        self.assertEqual(error.row_number, 2)
        self.assertEqual(error.column, "booking_date")
        self.assertEqual(error.value, "2024-13-45")

    def test_negative_amount_is_a_row_error(self) -> None:
        content = build_csv(HEADERS, [["G-1", "A", "2024-01-15", "", "", "-500", "", ""]])

        result = generic_parser.parse(content)

        self.assertEqual(result.bookings, [])
        (error,) = result.errors
        self.assertEqual(error.column, "gross_amount")
        self.assertEqual(error.value, "-500")

    def test_validate_headers(self) -> None:
        self.assertTrue(generic_parser.validate_headers(HEADERS))
        self.assertFalse(generic_parser.validate_headers(["foo", "bar"]))

    def test_empty_file_is_structural(self) -> None:
        with self.assertRaises(StructuralParseError):
            generic_parser.parse("")


if __name__ == "__main__":
    unittest.main()
