"""
Structured logging helpers for booking import runs.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one run lifecycle event as a single JSON line.

    Fields whose value is None are omitted. Japanese listing names are kept
    readable rather than escaped.
    """

    if not logger.isEnabledFor(level):
        return

    payload = {"event": event}
    payload.update((key, value) for key, value in fields.items() if value is not None)
    logger.log(level, json.dumps(payload, default=str, sort_keys=True, ensure_ascii=False))
