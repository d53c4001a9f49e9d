"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Timezone-aware current time; token expiry math uses this as its clock"""
    return datetime.now(timezone.utc)


def expires_at(expires_in_seconds: Any, now: Optional[datetime] = None) -> datetime:
    """Absolute expiry instant for an OAuth ``expires_in`` value"""
    return (now or utcnow()) + timedelta(seconds=int(expires_in_seconds or 0))


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (``Z`` suffix accepted); None for anything else"""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_iso_date(value: Any) -> Optional[str]:
    """Format dates for query parameters (YYYY-MM-DD)"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)
