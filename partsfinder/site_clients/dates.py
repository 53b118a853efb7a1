"""Date parsing helpers for listing timestamps.

Each source formats dates differently. The helpers here return ``None``
instead of raising so that every adapter can decide for itself whether an
unparseable date degrades the field or fails the fetch.
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence

# German relative phrases used by Kleinanzeigen
TODAY_PREFIX = "Heute, "
YESTERDAY_PREFIX = "Gestern, "

# Tried in order, first match wins. %d and %m also accept single digits.
DAY_FIRST_FORMATS = (
    "%d.%m.%Y",
    "%d.%m.%Y, %H:%M",
)

ENTER_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%d-%m-%Y",
    "%d/%m/%Y",
)


def parse_with_formats(text: str, formats: Sequence[str]) -> Optional[datetime]:
    """Try each strptime format in order and return the first successful parse."""
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _at_time_of_day(day: datetime, time_text: str) -> Optional[datetime]:
    try:
        parsed = datetime.strptime(time_text.strip(), "%H:%M")
    except ValueError:
        return None
    return day.replace(hour=parsed.hour, minute=parsed.minute, second=0, microsecond=0)


def parse_listing_date(text: str, now: datetime) -> Optional[datetime]:
    """
    Parse a Kleinanzeigen listing date.

    Recognized forms:
        "Heute, 14:05"     -> today at 14:05 (relative to ``now``)
        "Gestern, 09:30"   -> yesterday at 09:30
        "01.02.2023"       -> 1 February 2023 (day first)
        "1.2.2023, 10:00"  -> 1 February 2023 at 10:00

    Args:
        text: Raw date text from the listing
        now: Reference "now" for relative phrases

    Returns:
        Parsed naive local datetime, or None if the text is not recognized
    """
    text = text.strip()
    if not text:
        return None

    if text.startswith(TODAY_PREFIX):
        return _at_time_of_day(now, text[len(TODAY_PREFIX):])
    if text.startswith(YESTERDAY_PREFIX):
        return _at_time_of_day(now - timedelta(days=1), text[len(YESTERDAY_PREFIX):])
    if "." in text:
        return parse_with_formats(text, DAY_FIRST_FORMATS)
    return None


def parse_enter_date(text: Optional[str]) -> Optional[datetime]:
    """Parse a SchadeAutos ``enterDate`` value (None when empty or unknown)."""
    if not text or not isinstance(text, str):
        return None
    return parse_with_formats(text.strip(), ENTER_DATE_FORMATS)


def parse_iso_datetime(text: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp such as ``2024-05-01T10:15:00.000Z``."""
    if not text or not isinstance(text, str):
        return None
    value = text.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
