from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from myka.errors import ValidationError

_TIME_RE = re.compile(r"^(?:[01]?\d|2[0-3]):[0-5]\d$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_time_hhmm(text: str) -> tuple[int, int] | None:
    text = (text or "").strip()
    if not _TIME_RE.match(text):
        return None
    hh, mm = text.split(":")
    return int(hh), int(mm)


def require_time(text: str, field: str = "time") -> str:
    """Return ``text`` normalized to zero-padded HH:MM or raise ValidationError."""
    parsed = parse_time_hhmm(text) if isinstance(text, str) else None
    if parsed is None:
        raise ValidationError(f"Invalid {field}: expected HH:MM")
    return f"{parsed[0]:02d}:{parsed[1]:02d}"


def require_date(text: str, field: str = "date") -> str:
    if not isinstance(text, str) or not _DATE_RE.match(text):
        raise ValidationError(f"Invalid {field}: expected YYYY-MM-DD")
    try:
        date.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid {field}: expected YYYY-MM-DD")
    return text


def parse_date(text: str, field: str = "date") -> date:
    return date.fromisoformat(require_date(text, field))


def next_occurrence(hhmm: str, now: datetime) -> datetime:
    """Next instant strictly after ``now`` whose wall clock reads ``hhmm``.

    ``now`` should be timezone-aware; the result carries the same tzinfo.
    """
    hour, minute = parse_time_hhmm(hhmm) or (None, None)
    if hour is None:
        raise ValidationError("Invalid time: expected HH:MM")
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate
