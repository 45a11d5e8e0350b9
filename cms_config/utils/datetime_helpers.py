"""Datetime utility functions for timezone handling."""
from datetime import datetime, UTC
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    ``DateTime(timezone=True)`` columns come back naive from SQLite and aware
    from Postgres; record snapshots pass through here so the cache and the
    API see one representation.

    Example:
        >>> ensure_utc(datetime(2025, 1, 1, 12, 0, 0)).tzinfo == UTC
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
