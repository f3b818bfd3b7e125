"""Datetime helpers shared by the entity classes."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as a UTC-aware datetime."""
    return datetime.now(UTC)


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt
