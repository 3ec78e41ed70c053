from __future__ import annotations

import calendar
import re
from datetime import date, datetime
from typing import Callable, Iterable, Optional, TypeVar

from finplat.domain.errors import ValidationError

UNKNOWN_MONTH = "Unknown"

T = TypeVar("T")

_STRICT_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LOOSE_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def parse_date(value: object) -> Optional[date]:
    """
    Calendar date of a stored value, or None when it cannot be read.

    Plain dates are taken as-is. Timezone-aware datetimes are moved to the
    local zone first, so an entry is bucketed by the local calendar day.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    m = _LOOSE_DATE.match(text)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date()


def month_key(value: object) -> str:
    day = parse_date(value)
    if day is None:
        return UNKNOWN_MONTH
    return f"{day.year:04d}-{day.month:02d}"


def months_of_year(year: int) -> list[str]:
    return [f"{int(year):04d}-{m:02d}" for m in range(1, 13)]


def parse_bound(value: object) -> Optional[date]:
    """Range bounds must be zero-padded YYYY-MM-DD; empty means unbounded."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if not _STRICT_DATE.match(text):
        raise ValidationError(f"Date bound must be YYYY-MM-DD. Received: {value!r}")
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Invalid date bound: {value!r}") from e


def check_bounds(from_date: object, to_date: object) -> tuple[Optional[date], Optional[date]]:
    start = parse_bound(from_date)
    end = parse_bound(to_date)
    if start and end and start > end:
        raise ValidationError("From date cannot be after To date.")
    return start, end


def in_range(day: Optional[date], start: Optional[date], end: Optional[date]) -> bool:
    if start is None and end is None:
        return True
    if day is None:
        return False
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def current_month_bounds(today: Optional[date] = None) -> tuple[str, str]:
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    start = today.replace(day=1)
    end = today.replace(day=last_day)
    return start.isoformat(), end.isoformat()


def is_canonical_date(value: object) -> bool:
    if not isinstance(value, str) or not _STRICT_DATE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def date_sort_key(value: object) -> tuple[bool, date]:
    """Chronological order on parsed dates; undated records sort last."""
    day = parse_date(value)
    return (day is None, day or date.min)


def records_in_range(
    records: Iterable[T],
    date_of: Callable[[T], object],
    from_date: object = None,
    to_date: object = None,
) -> list[T]:
    """Records whose date falls in the inclusive range, oldest first."""
    start, end = check_bounds(from_date, to_date)
    kept = [r for r in records if in_range(parse_date(date_of(r)), start, end)]
    return sorted(kept, key=lambda r: date_sort_key(date_of(r)))
