"""Timestamp helper shared by model defaults."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now with microseconds; message order depends on the precision."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
