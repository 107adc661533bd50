"""Time utilities for run timestamps. All datetimes in UTC."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC datetime. Use for started_at/finished_at of a split run."""
    return datetime.now(timezone.utc)
