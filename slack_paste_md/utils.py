"""Helpers for display names and message timestamps."""

import logging
import re
from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import dateparser

logger = logging.getLogger(__name__)

LINKED_TIMESTAMP = re.compile(r"^\[([^\]]+)\]\([^)]*\)$")
DOUBLED_NAME = re.compile(r"^(.{2,}?)\1$")


def clean_display_name(name: Optional[str]) -> str:
    """Collapse names pasted twice ("Alex MittellAlex Mittell") and trim."""
    if not name or not name.strip():
        return "Unknown user"
    stripped = name.strip()
    match = DOUBLED_NAME.match(stripped)
    return match.group(1).strip() if match else stripped


def clean_timestamp(timestamp: Optional[str]) -> str:
    """Unwrap linked timestamps such as ``[10:30 AM](https://...)``."""
    if not timestamp:
        return ""
    stripped = timestamp.strip()
    match = LINKED_TIMESTAMP.match(stripped)
    return match.group(1).strip() if match else stripped


def _resolve_zone(time_zone: str) -> Optional[ZoneInfo]:
    if not time_zone:
        return None
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown time zone %r, timestamps left unconverted", time_zone)
        return None


def parse_timestamp(
    timestamp: Optional[str], date: Optional[str] = None
) -> Optional[datetime]:
    """Parse a pasted timestamp, resolving bare times against date when given."""
    text = clean_timestamp(timestamp)
    if not text:
        return None

    dateparser_settings: Any = {}
    if date:
        base = dateparser.parse(date, settings={"RETURN_AS_TIMEZONE_AWARE": False})
        if base is not None:
            dateparser_settings["RELATIVE_BASE"] = base
    try:
        return dateparser.parse(text, settings=dateparser_settings)
    except (ValueError, OverflowError) as e:
        logger.debug("dateparser rejected %r: %s", text, e)
        return None


def format_timestamp(
    timestamp: Optional[str], date: Optional[str] = None, time_zone: str = ""
) -> str:
    """Format a message timestamp as ``h:mm AM/PM``.

    Only times that carry their own zone are converted to time_zone; naive times
    are shown as written. Timestamps that cannot be parsed come back as cleaned
    text.
    """
    text = clean_timestamp(timestamp)
    if not text:
        return ""

    parsed = parse_timestamp(text, date)
    if parsed is None:
        logger.debug("Could not parse timestamp %r", text)
        return text

    zone = _resolve_zone(time_zone)
    if zone is not None and parsed.tzinfo is not None:
        parsed = parsed.astimezone(zone)

    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return f"{hour}:{parsed.minute:02d} {meridiem}"
