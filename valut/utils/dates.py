"""Date and time helpers shared by the feed client and the scheduler."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

FEED_DATE_FORMAT = "%d/%m/%Y"


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Return the current UTC datetime."""

    return datetime.now(UTC)


def format_feed_date(day: date) -> str:
    """Render ``day`` the way the CBR feed expects it in ``date_req``."""

    return day.strftime(FEED_DATE_FORMAT)


def descending_dates(start: date, end: date) -> list[date]:
    """Return every date from ``end`` down to ``start`` inclusive.

    Raises:
        ValueError: If ``start`` is after ``end``.
    """

    if start > end:
        raise ValueError(f"Start date {start} must not be after end date {end}")

    span = (end - start).days
    return [end - timedelta(days=offset) for offset in range(span + 1)]
