"""
UTC helpers.

Timestamps are stored UTC-naive (SQLite CURRENT_TIMESTAMP is UTC) and sent
to clients as ISO-8601 with a trailing 'Z'. Calendar dates in query strings
("today", ?date=, report ranges) are UTC dates.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_utc() -> date:
    return utcnow().date()


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2026-03-05T10:00", "...Z" or "...+07:00" -> UTC-naive datetime.
    Naive input is taken as UTC. Raises ValueError on garbage.
    """
    if _blank(value):
        return None
    s = value.strip()
    if s[-1] in "zZ":
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """"YYYY-MM-DD" -> date. A full datetime is accepted and cut to its UTC date."""
    if _blank(value):
        return None
    s = value.strip()
    if len(s) == 10:
        return date.fromisoformat(s)
    return parse_iso_datetime(s).date()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
