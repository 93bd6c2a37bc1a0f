"""UTC helpers; every timestamp stored or compared by the service is aware UTC."""

from __future__ import annotations

from datetime import UTC, datetime


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive values (as SQLite returns them) or convert aware ones."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def from_unix_timestamp(value: int | float | str) -> datetime:
    """Convert a Unix epoch in seconds, as quoted by rate providers, to UTC."""

    return datetime.fromtimestamp(float(value), tz=UTC)
