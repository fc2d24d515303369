"""Staleness rule for stored Steam profiles."""

from datetime import datetime, timedelta, timezone


def should_refresh(
    last_updated: datetime | None,
    refresh_window: timedelta,
    *,
    now: datetime | None = None,
) -> bool:
    """Decide whether a stored profile should be re-fetched from Steam.

    Args:
        last_updated: When the stored row was last touched, or None if unknown.
            Naive datetimes are taken as UTC.
        refresh_window: Maximum age before a refresh. Zero or negative disables
            refreshing entirely.
        now: Current time (defaults to the wall clock, UTC).

    Returns:
        True if the profile is older than the window or its age is unknown.
    """
    if refresh_window <= timedelta(0):
        return False
    if last_updated is None:
        return True

    if last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    return current - last_updated > refresh_window
