"""Timestamp helpers for stored documents."""

from datetime import datetime, timezone


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string, the format stored on documents."""
    return datetime.now(timezone.utc).isoformat()
