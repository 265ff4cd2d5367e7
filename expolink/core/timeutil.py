"""
Datetime helpers.

SQLite (tests) hands back naive datetimes for timezone-aware columns;
everything stored by the app is UTC, so naive values are read as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
