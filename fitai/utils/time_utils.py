"""
Timezone helpers

SQLite drops tzinfo on DateTime(timezone=True) columns, PostgreSQL keeps it.
Everything compared in services goes through ensure_utc first.
"""

from datetime import datetime, date, UTC
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(UTC)


def today_utc() -> date:
    return utcnow().date()


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes, convert aware ones to UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat() if value else None
