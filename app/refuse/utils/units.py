"""Human-readable sizes and durations.

Sizes use decimal units ("10MB" is 10,000,000 bytes); durations accept
a whole number followed by an hour/day/week/month/year unit.
"""

import re
from datetime import datetime, timedelta

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?) ?([kKmMgGtTpP])?[iI]?[bB]?$")

_SIZE_MULTIPLIERS = {
    "": 1,
    "k": 1000,
    "m": 1000**2,
    "g": 1000**3,
    "t": 1000**4,
    "p": 1000**5,
}

_SIZE_UNITS = ["B", "kB", "MB", "GB", "TB", "PB"]

_DURATION_RE = re.compile(r"^(\d+)([a-z]+)$")

_DURATION_UNITS = {
    "h": "h",
    "hour": "h",
    "hours": "h",
    "d": "d",
    "day": "d",
    "days": "d",
    "w": "w",
    "week": "w",
    "weeks": "w",
    "m": "m",
    "month": "m",
    "months": "m",
    "y": "y",
    "year": "y",
    "years": "y",
}

_DURATION_LENGTHS = {
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(days=7),
    "m": timedelta(days=30),
    "y": timedelta(days=365),
}


def parse_size(value: str) -> int:
    """Parse a human-readable size such as "10MB", "1.5 GB" or "512".

    Args:
        value: Size string.

    Returns:
        Size in bytes.

    Raises:
        ValueError: If value is not a size.
    """
    match = _SIZE_RE.match(value.strip())
    if match is None:
        msg = f"invalid size: {value!r}"
        raise ValueError(msg)
    number, unit = match.groups()
    return int(float(number) * _SIZE_MULTIPLIERS[(unit or "").lower()])


def format_size(size: int) -> str:
    """Format a byte count with decimal units, e.g. 1500 -> "1.5 kB"."""
    value = float(size)
    for unit in _SIZE_UNITS:
        if abs(value) < 1000 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1000
    return f"{size} B"


def parse_duration(value: str) -> timedelta:
    """Parse an age such as "30d", "2 weeks" or "1year".

    A month counts as 30 days and a year as 365 days.

    Args:
        value: Duration string.

    Returns:
        Parsed duration.

    Raises:
        ValueError: If value is not a duration.
    """
    text = value.strip().lower().replace(" ", "")
    match = _DURATION_RE.match(text)
    if match is None:
        msg = f"invalid duration: {value!r}"
        raise ValueError(msg)
    number, unit = match.groups()
    canonical = _DURATION_UNITS.get(unit)
    if canonical is None:
        msg = f"unsupported duration unit: {unit!r}"
        raise ValueError(msg)
    return int(number) * _DURATION_LENGTHS[canonical]


def format_age(when: datetime, now: datetime | None = None) -> str:
    """Describe how long ago something happened, e.g. "3 days ago"."""
    now = now or datetime.now().astimezone()
    if when.tzinfo is None:
        when = when.astimezone()
    seconds = int((now - when).total_seconds())
    if seconds < 60:
        return "just now"
    for length, name in ((86400 * 365, "year"), (86400 * 30, "month"), (86400, "day"), (3600, "hour"), (60, "minute")):
        if seconds >= length:
            count = seconds // length
            return f"{count} {name}{'s' if count != 1 else ''} ago"
    return "just now"
