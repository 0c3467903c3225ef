from __future__ import annotations

from datetime import date
import re
from typing import Any

_TAG_PATTERN = re.compile(r"<[^>]+>")
_SCRIPT_BLOCK_PATTERN = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_CLOCK_PATTERN = re.compile(r"(\d{1,2}):(\d{1,2})", re.ASCII)
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

REQUIRED_FIELDS_MESSAGE = "Name, date, and time are required."


class ReservationInputError(ValueError):
    pass


def sanitize(text: str | None) -> str:
    """Strip angle-bracket tags from ``text``.

    Script and style elements are dropped with their contents; any other
    ``<...>`` substring is removed and the text between tags is kept. Other
    characters are left as-is, so this is not an HTML escaper.
    """
    if not text:
        return ""
    return _TAG_PATTERN.sub("", _SCRIPT_BLOCK_PATTERN.sub("", text))


def normalize_time(raw: str) -> str:
    """Convert ``"h:mm AM|PM"`` into ``"HH:MM:00"``."""
    parts = raw.strip().split(" ")
    if len(parts) != 2:
        raise ReservationInputError("Time must be in 'h:mm AM' or 'h:mm PM' format.")

    clock, meridiem = parts
    meridiem = meridiem.lower()
    if meridiem not in ("am", "pm"):
        raise ReservationInputError("Time must end with AM or PM.")

    match = _CLOCK_PATTERN.fullmatch(clock)
    if match is None:
        raise ReservationInputError("Time must be in 'h:mm AM' or 'h:mm PM' format.")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        raise ReservationInputError("Time is out of range for a 12-hour clock.")

    if meridiem == "pm" and hours < 12:
        hours += 12
    elif meridiem == "am" and hours == 12:
        hours = 0

    return f"{hours:02d}:{minutes:02d}:00"


def parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as error:
        raise ReservationInputError("Date must be in YYYY-MM-DD format.") from error


def parse_vip_flag(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ReservationInputError("is_vip must be a boolean.")
