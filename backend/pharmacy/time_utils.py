from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form stored in sold_at)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today() -> date:
    """Business date used for expiration checks when the caller supplies none."""
    return date.today()


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a query-string timestamp into a UTC-naive datetime.

    Blank input gives None. Offsets (including a trailing "Z") are converted
    to UTC; a value without an offset is taken as UTC already.
    Raises ValueError on malformed input.
    """
    text = _blank_to_none(value)
    if text is None:
        return None

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse "YYYY-MM-DD". Blank input gives None; anything else malformed
    raises ValueError.
    """
    text = _blank_to_none(value)
    if text is None:
        return None
    return date.fromisoformat(text)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with a trailing 'Z', seconds precision. Naive values are UTC."""
    if dt is None:
        return None
    aware = dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)
    aware = aware.astimezone(timezone.utc).replace(microsecond=0)
    return aware.isoformat().replace("+00:00", "Z")


def to_iso_date(d: Optional[date]) -> Optional[str]:
    return None if d is None else d.isoformat()
