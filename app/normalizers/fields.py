"""
app/normalizers/fields.py

Stateless normalizers for raw date, time, duration and amount tokens.

Date and time normalizers pass unrecognized input through unchanged; callers
decide whether the result is acceptable. Amount parsing never raises.
"""

from __future__ import annotations

import re

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLASH_DATE = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_JP_LONG_DATE = re.compile(r"(\d{4})年(\d{1,2})月(\d{1,2})日")

_CANONICAL_TIME = re.compile(r"^\d{2}:\d{2}$")
_SHORT_TIME = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")

_DATETIME = re.compile(
    r"^(?P<date>\d{4}[-/]\d{1,2}[-/]\d{1,2})\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::\d{2})?$"
)

# Thousands separators, yen markers, quotes and any whitespace.
_AMOUNT_NOISE = re.compile(r"[,、円¥￥\\\"\s]")
_LEADING_INTEGER = re.compile(r"^[+-]?\d+")

MINUTES_PER_DAY = 24 * 60


def _iso(year: str, month: str, day: str) -> str:
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def normalize_date(raw: str | None) -> str:
    """
    Normalize a date token to ``YYYY-MM-DD``.

    Accepts ISO, ``YYYY/M/D`` (padded or not), US ``M/D/YYYY`` and the
    ``2024年1月15日`` long form. Anything else is returned stripped but
    otherwise unchanged.
    """

    if not raw:
        return ""
    value = raw.strip()

    if _ISO_DATE.match(value):
        return value

    slash = _SLASH_DATE.match(value)
    if slash:
        return _iso(*slash.groups())

    us = _US_DATE.match(value)
    if us:
        month, day, year = us.groups()
        return _iso(year, month, day)

    long_form = _JP_LONG_DATE.search(value)
    if long_form:
        return _iso(*long_form.groups())

    return value


def normalize_time(raw: str | None) -> str:
    """
    Normalize ``H:MM`` and ``HH:MM:SS`` to ``HH:MM``. Other input passes
    through unchanged.
    """

    if not raw:
        return ""
    value = raw.strip()

    if _CANONICAL_TIME.match(value):
        return value

    short = _SHORT_TIME.match(value)
    if short:
        hour, minute = short.groups()
        return f"{hour.zfill(2)}:{minute}"

    return value


def is_canonical_time(value: str | None) -> bool:
    """
    True for a real ``HH:MM`` clock time (00:00 to 23:59).
    """

    if not value or not _CANONICAL_TIME.match(value):
        return False
    hour, minute = value.split(":")
    return int(hour) < 24 and int(minute) < 60


def split_datetime(raw: str | None) -> tuple[str, str]:
    """
    Split a ``<date> <H:MM[:SS]>`` token into a normalized (date, time) pair.

    A date-only token yields an empty time. Unrecognized input is returned as
    the date component so the caller's date gate can report it.
    """

    if not raw:
        return "", ""
    value = raw.strip()

    match = _DATETIME.match(value)
    if match:
        date_part = normalize_date(match.group("date").replace("-", "/"))
        time_part = f"{match.group('hour').zfill(2)}:{match.group('minute')}"
        return date_part, time_part

    return normalize_date(value), ""


def parse_amount(raw: str | None) -> int:
    """
    Parse an amount token into whole yen.

    Separators, currency symbols and whitespace are stripped first. A value
    with no leading integer maps to 0.
    """

    if not raw:
        return 0
    cleaned = _AMOUNT_NOISE.sub("", raw)
    match = _LEADING_INTEGER.match(cleaned)
    if match is None:
        return 0
    return int(match.group(0))


def is_numeric_amount(raw: str | None) -> bool:
    """
    Return True when ``raw`` is blank or parses to an integer amount.
    """

    if raw is None or not raw.strip():
        return True
    return _LEADING_INTEGER.match(_AMOUNT_NOISE.sub("", raw)) is not None


def _to_minutes(value: str) -> int | None:
    parts = value.split(":")
    if len(parts) < 2:
        return None
    try:
        return int(parts[0]) * 60 + int(parts[1])
    except ValueError:
        return None


def parse_duration(start: str | None, end: str | None) -> int:
    """
    Minutes between two ``HH:MM`` times.

    An end earlier than the start is taken to cross midnight. Returns 0 when
    either bound is missing or unreadable.
    """

    if not start or not end:
        return 0

    start_minutes = _to_minutes(start)
    end_minutes = _to_minutes(end)
    if start_minutes is None or end_minutes is None:
        return 0

    if end_minutes < start_minutes:
        end_minutes += MINUTES_PER_DAY
    return end_minutes - start_minutes
