"""Shared normalizers for times, weekdays, dates, ids, and addresses."""

import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional, Union

DAYS_OF_WEEK: tuple[str, ...] = (
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
)

ADDRESS_FIELDS: tuple[str, ...] = ("address", "city", "state", "zip")

_AMPM_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?(?::\d{2})?\s*([ap])\.?m\.?$", re.IGNORECASE)
_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_time(value: Optional[str]) -> str:
    """Normalize a 12-hour or 24-hour time to zero-padded ``HH:MM``.

    Returns an empty string for empty or unparseable input. An AM/PM
    suffix on an hour already past 12 is ignored.

    Examples:
        >>> normalize_time("2:00 PM")
        '14:00'
        >>> normalize_time("9:05")
        '09:05'
        >>> normalize_time("13:30 PM")
        '13:30'
    """
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""

    match = _AMPM_RE.match(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        meridiem = match.group(3).lower()
        if hours <= 12:
            if meridiem == "p" and hours != 12:
                hours += 12
            elif meridiem == "a" and hours == 12:
                hours = 0
    else:
        match = _HHMM_RE.match(text)
        if not match:
            return ""
        hours, minutes = int(match.group(1)), int(match.group(2))

    if hours == 24 and minutes == 0:
        return "24:00"
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return ""
    return f"{hours:02d}:{minutes:02d}"


def time_to_minutes(value: Optional[str]) -> int:
    """Convert a time string to minutes after midnight.

    An unparseable hour yields 0; an unparseable minute counts as 0.
    """
    text = normalize_time(value) or str(value or "").strip()
    hours_text, _, minutes_text = text.partition(":")
    try:
        hours = int(hours_text)
    except ValueError:
        return 0
    try:
        minutes = int(minutes_text[:2])
    except ValueError:
        minutes = 0
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Render minutes after midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_12_hour(value: Optional[str]) -> str:
    """Render a time as a 12-hour display string, e.g. ``'2:30 PM'``."""
    normalized = normalize_time(value)
    if not normalized:
        return ""
    hours, minutes = (int(part) for part in normalized.split(":"))
    hours %= 24
    meridiem = "PM" if hours >= 12 else "AM"
    display_hour = 12 if hours % 12 == 0 else hours % 12
    return f"{display_hour}:{minutes:02d} {meridiem}"


def normalize_day_of_week(value: Any) -> str:
    """Map a weekday spelling to its lowercase full English name.

    Accepts ``"0"``-``"6"`` (0 = Sunday), abbreviations and full names in
    any case. Unrecognized input is returned unchanged.

    Examples:
        >>> normalize_day_of_week("MON")
        'monday'
        >>> normalize_day_of_week("0")
        'sunday'
    """
    if value is None:
        return ""
    text = str(value).strip().lower()
    if not text:
        return ""
    if text.isdigit():
        index = int(text)
        return DAYS_OF_WEEK[index] if 0 <= index < len(DAYS_OF_WEEK) else str(value)
    if len(text) >= 3:
        for day in DAYS_OF_WEEK:
            if day.startswith(text):
                return day
    return str(value)


def day_of_week_for(target: date) -> str:
    """Return the canonical weekday name for a calendar date."""
    # date.weekday() counts from Monday
    return DAYS_OF_WEEK[(target.weekday() + 1) % 7]


def normalize_date(value: Union[date, datetime, str, None]) -> str:
    """Normalize a date or ISO date/datetime string to ``YYYY-MM-DD``."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return ""
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return ""


def normalize_id(value: Any) -> str:
    """Canonicalize a photographer id to a single string form.

    Numeric ids and their string spellings collapse to the same value.

    Examples:
        >>> normalize_id(42)
        '42'
        >>> normalize_id(" 042 ")
        '42'
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid photographer id: {value!r}")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    if not text:
        raise ValueError("Photographer id must not be empty")
    if text.isdigit():
        return str(int(text))
    return text


def _address_part(location: Any, name: str) -> str:
    if isinstance(location, Mapping):
        part = location.get(name)
    else:
        part = getattr(location, name, None)
    return str(part).strip() if part is not None else ""


def normalize_address_key(location: Any) -> str:
    """Fingerprint an address for zero-cost equality checks.

    Lowercases and trims each of address/city/state/zip, joins the
    non-empty parts, then strips everything but letters and digits.

    Examples:
        >>> normalize_address_key({"address": "123 Main St.", "city": "Springfield",
        ...                        "state": "IL", "zip": "62704"})
        '123mainstspringfieldil62704'
    """
    if location is None:
        return ""
    if isinstance(location, str):
        return _NON_ALNUM_RE.sub("", location.strip().lower())
    parts = [_address_part(location, name).lower() for name in ADDRESS_FIELDS]
    joined = " ".join(part for part in parts if part)
    return _NON_ALNUM_RE.sub("", joined)


def has_geocodable_address(location: Any) -> bool:
    """Street, city and state are all required before geocoding."""
    if location is None:
        return False
    return all(_address_part(location, name) for name in ("address", "city", "state"))
