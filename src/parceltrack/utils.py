from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def to_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware UTC.

    If the datetime is naive (no tzinfo), assume it is UTC and attach tzinfo=UTC.
    If it is aware, convert to UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def serialize_dt(dt: datetime) -> str:
    """Serialize datetime as ISO-8601 with trailing 'Z' for UTC."""
    return to_utc(dt).isoformat().replace("+00:00", "Z")


def parse_dt_iso(s: Optional[str]) -> Optional[datetime]:
    """Lenient ISO datetime parser that preserves timezone when present.

    Supports:
    - ...Z (UTC)
    - ...+HH:MM or ...+HHMM (inserts colon)
    - date-only (YYYY-MM-DD) -> midnight
    Returns None if parsing fails or the input is not a string.
    """
    if not s or not isinstance(s, str):
        return None
    t = s.strip()
    # Replace trailing Z with +00:00
    if t.endswith("Z"):
        t = t[:-1] + "+00:00"
    # Insert colon into timezone if missing (e.g., +1000 -> +10:00)
    if len(t) >= 5 and (t[-5] in ["+", "-"] and t[-3] != ":"):
        t = t[:-2] + ":" + t[-2:]
    try:
        return datetime.fromisoformat(t)
    except ValueError:
        for fmt in ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d"):
            try:
                return datetime.strptime(s.strip(), fmt)
            except ValueError:
                continue
    return None
