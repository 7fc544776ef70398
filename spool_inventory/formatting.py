"""Text formatting for weights and device timestamps."""

from __future__ import annotations

import math
from datetime import datetime, tzinfo
from typing import Optional


def format_weight(grams: float, use_kg: bool = False, decimals: bool = False) -> str:
    if use_kg and grams >= 1000:
        return f"{grams / 1000:.1f}kg"
    if decimals:
        return f"{grams:.1f}g"
    return f"{math.floor(grams + 0.5)}g"


def parse_timestamp(timestamp: Optional[str], tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Epoch-seconds string to a datetime; None when missing or malformed."""
    if not timestamp:
        return None
    try:
        return datetime.fromtimestamp(int(timestamp), tz=tz)
    except (ValueError, OverflowError, OSError):
        return None


def format_date(timestamp: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """dd/mm/yy in local time (or ``tz``), "-" when there is no timestamp."""
    moment = parse_timestamp(timestamp, tz)
    if moment is None:
        return "-"
    return moment.strftime("%d/%m/%y")


def format_datetime(timestamp: Optional[str], tz: Optional[tzinfo] = None) -> str:
    moment = parse_timestamp(timestamp, tz)
    if moment is None:
        return "-"
    return moment.strftime("%d/%m/%y, %H:%M")
