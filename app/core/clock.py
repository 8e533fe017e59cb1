from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_date_key(now: Optional[datetime] = None) -> str:
    """Calendar date used to bucket the daily image counter, e.g. '2026-10-19'."""
    return (now or utcnow()).astimezone(timezone.utc).date().isoformat()
