"""Date/Time Normalizer — coerces free-form date and time input into canonical strings.

Invariants:
    - normalize_date output always matches YYYY-MM-DD
    - normalize_time output always matches HH:MM (24-hour, hour zero-padded, ASCII digits only)
    - Both are idempotent on their own output
    - Unparsable input raises InvalidDateError / InvalidTimeError, never returns raw input

Design Decisions:
    - Offset-aware datetimes converted to UTC before the date is taken; naive ones keep
      their calendar date (matches a UTC server parsing an ISO string)
    - Minutes passed through verbatim: range checks are not part of the canonical form
"""

import re
from datetime import datetime, timezone

from app.core.errors import InvalidDateError, InvalidTimeError

# Written forms accepted after ISO-8601 parsing fails. Month/day order is US-style.
_DATE_FORMATS: tuple[str, ...] = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%a %b %d %Y",
)

_TIME_PATTERN = re.compile(
    r"^(\d{1,2}):(\d{2})(?::\d{2})?(?:\s*(am|pm))?$", re.IGNORECASE | re.ASCII,
)


def _parse_datetime(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def normalize_date(value: str) -> str:
    """Parse a date string and return its YYYY-MM-DD form."""
    if not isinstance(value, str):
        raise InvalidDateError(value)
    parsed = _parse_datetime(value)
    if parsed is None:
        raise InvalidDateError(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def normalize_time(value: str) -> str:
    """Convert H:MM / HH:MM / HH:MM:SS with optional AM/PM to 24-hour HH:MM."""
    if not isinstance(value, str):
        raise InvalidTimeError(value)
    match = _TIME_PATTERN.fullmatch(value)
    if not match:
        raise InvalidTimeError(value)

    hours = int(match.group(1))
    minutes = match.group(2)
    meridiem = (match.group(3) or "").lower()

    if meridiem == "pm" and hours != 12:
        hours += 12
    elif meridiem == "am" and hours == 12:
        hours = 0

    return f"{hours:02d}:{minutes}"
