"""Calendar-date helpers. Everything here works on naive datetime.date values."""

from __future__ import annotations

import re
from datetime import date, timedelta

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(text: str) -> date:
    """Parse a strict YYYY-MM-DD string. Raises ValueError otherwise."""
    text = (text or "").strip()
    if not _ISO_DATE.match(text):
        raise ValueError(f"Expected YYYY-MM-DD, got {text!r}")
    return date.fromisoformat(text)


def inclusive_day_count(start: date, end: date) -> int:
    """Number of calendar days in [start, end], both ends included."""
    return (end - start).days + 1


def period_dates(start: date, end: date) -> list[date]:
    """Every date of [start, end] ascending. Empty if end < start."""
    return [start + timedelta(days=i) for i in range(max(0, inclusive_day_count(start, end)))]
