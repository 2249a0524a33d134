"""Clock helpers for lock markers, events and command timings."""

from __future__ import annotations

from datetime import UTC, datetime
from time import perf_counter


def utc_now_iso() -> str:
    """Return UTC timestamp in ISO-8601 format with Z suffix."""
    return datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def elapsed_ms(started: float) -> int:
    """Milliseconds since a ``perf_counter()`` reading."""
    return int((perf_counter() - started) * 1000)
