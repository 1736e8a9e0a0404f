"""Timestamp source shared by records, stores and models."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, as stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
