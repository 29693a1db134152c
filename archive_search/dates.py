"""
Date normalization.

Exported pages carry dates in many shapes: ISO attributes on <time>, Open
Graph meta tags, Unix epochs in data-utime, and human strings such as
"March 3, 2020 at 10:00pm". normalize_date() turns the first usable one into
a canonical UTC ISO-8601 string ("2020-03-03T22:00:00.000Z") or returns None.
It never raises.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as dateparser

from .logger import get_module_logger

logger = get_module_logger("dates")

_AT_WORD = re.compile(r'\bat\b', re.IGNORECASE)
_EPOCH = re.compile(r'^\d{9,14}$')
# "UTC+01" / "GMT-5:30". dateutil reads a sign after a zone name the POSIX
# way (inverted), so these are rewritten to a bare "+0100" offset first.
_NAMED_OFFSET = re.compile(r'\b(?:UTC|GMT)\s*([+-])(\d{1,2})(?::?(\d{2}))?\b', re.IGNORECASE)

# Two defaults that differ in every field; a string that parses to different
# years under each one never stated a year.
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def _to_utc(value: datetime) -> datetime:
    # Naive timestamps are read as UTC so a rebuild on another machine
    # produces the same index
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_iso(value: datetime) -> str:
    """Canonical form: UTC, millisecond precision, "Z" suffix."""
    value = _to_utc(value)
    return (f"{value.year:04d}-{value.month:02d}-{value.day:02d}T"
            f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}."
            f"{value.microsecond // 1000:03d}Z")


def _parse_epoch(raw: str) -> Optional[datetime]:
    seconds = int(raw)
    # 12+ digits are milliseconds
    if len(raw) >= 12:
        seconds = seconds / 1000
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _numeric_offset(match: re.Match) -> str:
    sign, hours, minutes = match.groups()
    return f"{sign}{int(hours):02d}{minutes or '00'}"


def try_parse(raw: str) -> Optional[datetime]:
    """
    One parse attempt. Returns None instead of raising.

    Strings without an explicit year are rejected rather than silently
    getting the current year.
    """
    raw = raw.strip()
    if not raw:
        return None
    if _EPOCH.match(raw):
        return _parse_epoch(raw)
    raw = _NAMED_OFFSET.sub(_numeric_offset, raw)
    try:
        first = dateparser.parse(raw, default=_DEFAULT_A)
        second = dateparser.parse(raw, default=_DEFAULT_B)
    except (ValueError, OverflowError, TypeError):
        # dateutil's ParserError subclasses ValueError
        return None
    if first.year != second.year:
        return None
    return first


def normalize_date(*candidates: Optional[str]) -> Optional[str]:
    """
    Normalize the first non-empty candidate to canonical ISO-8601.

    Attempt 1 parses the string as-is. Attempt 2 removes the word "at"
    ("March 3, 2020 at 10:00pm") and tries again. If both fail the date is
    absent (None).
    """
    raw = next((c.strip() for c in candidates if c and c.strip()), None)
    if raw is None:
        return None

    parsed = try_parse(raw)
    if parsed is None:
        stripped = ' '.join(_AT_WORD.sub(' ', raw).split())
        if stripped != raw:
            parsed = try_parse(stripped)

    if parsed is None:
        logger.debug(f"Unparseable date: {raw!r}")
        return None

    try:
        return format_iso(parsed)
    except (ValueError, OverflowError):
        # Aware datetimes near year 1 or 9999 can overflow on UTC conversion
        logger.debug(f"Date out of range: {raw!r}")
        return None


def year_of(iso_date: Optional[str]) -> Optional[int]:
    """Calendar year of a canonical date string."""
    if not iso_date:
        return None
    return int(iso_date[:4])
