"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from typing import Optional


def utc_now_iso() -> str:
    """Current UTC timestamp in ISO-8601"""
    return datetime.now(timezone.utc).isoformat()


def parse_iso_date(value: str) -> Optional[date]:
    """Parse an ISO date or datetime string, None when unparseable"""
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    except (AttributeError, ValueError):
        return None


def months_between(start: date, end: date) -> int:
    """Calendar-month difference, ignoring days (Jan 31 -> Feb 1 is one month)"""
    return (end.year - start.year) * 12 + (end.month - start.month)
