"""Display formatting helpers for durations and file sizes."""

from __future__ import annotations

import math

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_time_s(seconds: float) -> str:
    """Format seconds as `m:ss`; unknown or non-finite values render `0:00`."""
    total = int(_coerce_seconds(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def format_time_pair_s(position_s: float, duration_s: float) -> tuple[str, str]:
    """Format a position/duration pair for the progress readout."""
    return format_time_s(position_s), format_time_s(duration_s)


def format_file_size(size_bytes: int | None) -> str:
    """Human readable size with up to two decimals, `Unknown` when missing."""
    if not size_bytes or size_bytes < 0:
        return "Unknown"
    exponent = 0
    scaled = float(size_bytes)
    while scaled >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        scaled /= 1024
        exponent += 1
    text = f"{round(scaled, 2):.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


def _coerce_seconds(value: float) -> float:
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(numeric):
        return 0.0
    return max(0.0, numeric)
