"""UTC helpers shared by models and services."""

from datetime import UTC, date, datetime


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (sqlite drops tzinfo); convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def as_date(value: datetime | date | None) -> date | None:
    """Calendar date of a datetime (UTC) or the date itself."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value
