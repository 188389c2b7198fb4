"""
Domain: Timing (Clock and Durations)

All kernel timestamps are epoch milliseconds as floats.
"""
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


def to_datetime(timestamp_ms: float) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)


def to_iso(timestamp_ms: float) -> str:
    """Render epoch milliseconds as an ISO-8601 UTC string."""
    return to_datetime(timestamp_ms).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_duration(ms: float) -> str:
    """
    Human-readable duration.

    Examples:
        0.25 -> "250μs", 12.34 -> "12.3ms", 1500 -> "1.50s", 90000 -> "1m 30.0s"
    """
    if ms < 1:
        return f"{ms * 1000:.0f}μs"
    if ms < 1000:
        return f"{ms:.1f}ms"
    if ms < 60000:
        return f"{ms / 1000:.2f}s"
    minutes = int(ms // 60000)
    seconds = (ms % 60000) / 1000
    return f"{minutes}m {seconds:.1f}s"


def relative_time(timestamp_ms: float, now: Optional[float] = None) -> str:
    """Relative description such as "just now", "5s ago" or "2h ago"."""
    diff = (now_ms() if now is None else now) - timestamp_ms
    if diff < 1000:
        return "just now"
    if diff < 60000:
        return f"{int(diff // 1000)}s ago"
    if diff < 3600000:
        return f"{int(diff // 60000)}m ago"
    if diff < 86400000:
        return f"{int(diff // 3600000)}h ago"
    return f"{int(diff // 86400000)}d ago"
