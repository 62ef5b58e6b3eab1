"""Small helpers shared by both persistence backends."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def advance_timestamp(previous: Optional[datetime] = None) -> datetime:
    """
    Return "now" for an updated_at column.

    updated_at must strictly increase on every mutation, so when the clock
    has not moved past the previous value the result is bumped by 1µs.
    """
    now = utcnow()
    if previous is not None:
        previous = as_utc(previous)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
    return now


def new_id(prefix: Optional[str] = None) -> str:
    value = str(uuid.uuid4())
    return f"{prefix}-{value}" if prefix else value
