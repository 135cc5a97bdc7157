"""Consensus timestamp helpers (mirror timestamps are "seconds.nanoseconds" strings)."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any


def timestamp_key(ts: Any) -> Decimal:
    """Return a numeric sort key for a consensus timestamp.

    Raises:
        ValueError: If ts is not numeric.
    """
    try:
        value = Decimal(str(ts).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid consensus timestamp: {ts!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid consensus timestamp: {ts!r}")
    return value


def later_timestamp(current: str | None, candidate: Any) -> str | None:
    """Return whichever of current/candidate is later (candidate kept verbatim as str)."""
    if candidate is None:
        return current
    candidate_s = str(candidate).strip()
    if current is None or timestamp_key(candidate_s) > timestamp_key(current):
        return candidate_s
    return current


def is_later(candidate: str | None, reference: str | None) -> bool:
    """True if candidate is set and strictly after reference (None reference is the origin)."""
    if candidate is None:
        return False
    if reference is None:
        return timestamp_key(candidate) > 0
    return timestamp_key(candidate) > timestamp_key(reference)


def to_utc_string(ts: str | None) -> str | None:
    """Render a consensus timestamp as ISO-8601 UTC for logs."""
    if ts is None:
        return None
    return datetime.fromtimestamp(float(timestamp_key(ts)), tz=UTC).isoformat()
