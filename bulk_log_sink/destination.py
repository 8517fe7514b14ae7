"""Destination resolver: renders a date pattern against a record timestamp."""

import re
from datetime import datetime, timezone

# Bracketed text is copied verbatim; longer tokens must precede their prefixes.
_TOKEN_RE = re.compile(r"\[([^\]]*)\]|YYYY|YY|MM|M|DD|D|HH|H|mm|m|ss|s")

_RENDERERS = {
    "YYYY": lambda dt: f"{dt.year:04d}",
    "YY": lambda dt: f"{dt.year % 100:02d}",
    "MM": lambda dt: f"{dt.month:02d}",
    "M": lambda dt: str(dt.month),
    "DD": lambda dt: f"{dt.day:02d}",
    "D": lambda dt: str(dt.day),
    "HH": lambda dt: f"{dt.hour:02d}",
    "H": lambda dt: str(dt.hour),
    "mm": lambda dt: f"{dt.minute:02d}",
    "m": lambda dt: str(dt.minute),
    "ss": lambda dt: f"{dt.second:02d}",
    "s": lambda dt: str(dt.second),
}


def parse_timestamp(value) -> datetime:
    """Interpret *value* as an aware UTC datetime.

    Accepts ISO-8601 strings (``Z`` suffix or explicit offset), ``datetime``
    objects and numeric epoch milliseconds. Naive values are taken as UTC.

    Raises:
        ValueError: if a string is not ISO-8601 or a number is out of range.
        TypeError: for any other type.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        raise TypeError("boolean is not a timestamp")
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"timestamp out of range: {value!r}") from exc
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise TypeError(f"unsupported timestamp type: {type(value).__name__}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def resolve_destination(timestamp, pattern: str) -> str:
    """Render *pattern* against the UTC calendar fields of *timestamp*.

    >>> resolve_destination("2024-03-07T00:00:00Z", "[idx-]YYYY[-]MM[-]DD")
    'idx-2024-03-07'
    """
    dt = parse_timestamp(timestamp)

    def _render(match: re.Match) -> str:
        literal = match.group(1)
        if literal is not None:
            return literal
        return _RENDERERS[match.group(0)](dt)

    return _TOKEN_RE.sub(_render, pattern)
