"""
ecoreward.engine.calendar — Calendar-day helpers
=================================================

Streaks and scan quotas are counted in calendar days of the configured
community timezone.  SQLite hands timestamps back without tzinfo; those are
always UTC because every write goes through :func:`to_utc`.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, tzinfo

from ecoreward.constants import SCAN_DATE_FORMAT


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_aware(value: datetime) -> datetime:
    """Attach UTC to a naive timestamp read back from the store."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_utc(value: datetime) -> datetime:
    return as_aware(value).astimezone(UTC)


def local_date(moment: datetime, tz: tzinfo = UTC) -> date:
    """Calendar date of *moment* as seen in *tz*."""
    return as_aware(moment).astimezone(tz).date()


def day_key(day: date) -> str:
    """``YYYY-MM-DD`` string stored in ``users.last_scan_date``."""
    return day.strftime(SCAN_DATE_FORMAT)
