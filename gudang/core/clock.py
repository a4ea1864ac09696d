"""Time helpers. All stored timestamps are naive UTC."""
from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def today(now: Optional[datetime] = None) -> date:
    return (to_utc_naive(now) or utcnow()).date()
