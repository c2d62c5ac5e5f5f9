"""Scalar formatting and parsing shared by both encodings."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime


OPEN_BOUND = ".."


def format_number(value: float) -> str:
    """Render a number in its shortest round-trip form."""
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        raise ValueError(f"Number is not finite: {value}")
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def json_number(value: float) -> int | float:
    """Return an int for integral values so JSON output has no trailing .0."""
    if isinstance(value, int):
        return value
    if not math.isfinite(value):
        raise ValueError(f"Number is not finite: {value}")
    if value.is_integer() and abs(value) < 2**53:
        return int(value)
    return value


def format_instant(value: datetime | date) -> str:
    """Render an instant as ISO 8601, using Z for UTC timestamps."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        text = value.isoformat()
        if text.endswith("+00:00"):
            return text[: -len("+00:00")] + "Z"
        return text
    return value.isoformat()


def parse_timestamp(text: str) -> datetime:
    """Parse an ISO 8601 date-time, raising ValueError when malformed."""
    if "T" not in text and "t" not in text and " " not in text:
        raise ValueError(f"Invalid timestamp: {text}")
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def parse_date(text: str) -> date:
    """Parse an ISO 8601 calendar date, raising ValueError when malformed."""
    return date.fromisoformat(text)


def parse_instant(text: str) -> datetime | date:
    """Parse a timestamp or a date, telling them apart by the time part."""
    if "T" in text or "t" in text or " " in text:
        return parse_timestamp(text)
    return parse_date(text)


def parse_bound(text: str) -> datetime | date | None:
    """Parse one interval bound; ``..`` is an open bound."""
    if text == OPEN_BOUND:
        return None
    return parse_instant(text)


def format_bound(value: datetime | date | None) -> str:
    if value is None:
        return OPEN_BOUND
    return format_instant(value)
