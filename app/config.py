"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_list_env(name: str) -> tuple[str, ...]:
    """
    Read a comma-separated list, dropping blank items.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return ()
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class BookingImportSettings:
    """
    Runtime settings for booking CSV imports.
    """

    chunk_size: int = 100
    max_reported_errors: int = 500
    log_row_errors: bool = True
    ambiguous_listings: tuple[str, ...] = ()


@lru_cache(maxsize=1)
def get_booking_import_settings() -> BookingImportSettings:
    """
    Return cached booking import settings from environment variables.
    """

    return BookingImportSettings(
        chunk_size=max(1, _get_int_env("BOOKING_IMPORT_CHUNK_SIZE", 100)),
        max_reported_errors=max(1, _get_int_env("BOOKING_IMPORT_MAX_REPORTED_ERRORS", 500)),
        log_row_errors=_get_bool_env("BOOKING_IMPORT_LOG_ROW_ERRORS", True),
        ambiguous_listings=_get_list_env("BOOKING_IMPORT_AMBIGUOUS_LISTINGS"),
    )
