"""Tolerant coercion helpers for loosely typed slate payloads."""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    """Parse number-like input into a finite float, returning None when invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            parsed = float(raw)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def safe_int(value: Any) -> int | None:
    """Parse integer-like input, returning None when invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.startswith("+"):
            raw = raw[1:]
        try:
            return int(raw)
        except ValueError:
            parsed = safe_float(raw)
            return int(parsed) if parsed is not None else None
    return None


def safe_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def optional_str(value: Any) -> str | None:
    cleaned = safe_str(value)
    return cleaned or None


def safe_unit(value: Any) -> float | None:
    """Parse a 0-1 rate, clamping out-of-range values."""
    parsed = safe_float(value)
    if parsed is None:
        return None
    return max(0.0, min(1.0, parsed))


def normalize_side(value: Any) -> str:
    """Return `over`/`under`, or an empty string for anything else."""
    side = safe_str(value).lower()
    if side in {"over", "o"}:
        return "over"
    if side in {"under", "u"}:
        return "under"
    return ""
