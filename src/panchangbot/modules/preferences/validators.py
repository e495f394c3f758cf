"""Input checks for the values a user types during the dialogue."""

from __future__ import annotations

import re
from datetime import date

from panchangbot.exceptions import ValidationError

# [0-9] rather than \d: \d also matches non-ASCII digits
_TIME_RE = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

MIN_CITY_LENGTH = 3


def is_valid_time(value: str) -> bool:
    """Whether ``value`` is a 24-hour ``HH:MM`` time of day."""
    return _TIME_RE.fullmatch(value) is not None


def parse_time(value: str) -> tuple[int, int]:
    """Split a valid ``HH:MM`` string into (hour, minute)."""
    if not is_valid_time(value):
        raise ValidationError("time", value)
    hour, minute = value.split(":")
    return int(hour), int(minute)


def is_valid_date(value: str) -> bool:
    """Whether ``value`` is literally ``YYYY-MM-DD`` and a real calendar date."""
    if _DATE_RE.fullmatch(value) is None:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_city(value: str) -> bool:
    return len(value.strip()) >= MIN_CITY_LENGTH


def parse_city_date(value: str) -> tuple[str, str]:
    """Parse ``"City, YYYY-MM-DD"`` into (city, date).

    Splits on the first comma only. Raises ``ValidationError`` with field
    ``city_date`` when either part is missing and ``date`` when the date part
    is malformed.
    """
    city, sep, raw_date = value.partition(",")
    city = city.strip()
    raw_date = raw_date.strip()
    if not sep or not city or not raw_date:
        raise ValidationError("city_date", value)
    if not is_valid_date(raw_date):
        raise ValidationError("date", raw_date)
    return city, raw_date
