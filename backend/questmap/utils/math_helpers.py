"""Math helpers — clamping and numeric coercion. No engine imports."""

from __future__ import annotations

import math
from typing import Any


def to_float(value: Any) -> float | None:
    """Coerce a JSON-ish scalar to float. None for anything non-numeric.

    Booleans are rejected (``True`` is not a coordinate). Numeric strings are
    accepted, as they are after a JSON round-trip through a sloppy model.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    elif not isinstance(value, (int, float)):
        return None
    try:
        return float(value)
    except (ValueError, OverflowError):
        return None


def to_finite_float(value: Any) -> float | None:
    """Like ``to_float`` but also rejects NaN and ±inf."""
    f = to_float(value)
    if f is None or not math.isfinite(f):
        return None
    return f


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp01(value: float) -> float:
    """Clamp into [0, 1]. NaN maps to the centre of the canvas."""
    if math.isnan(value):
        return 0.5
    return clamp(value, 0.0, 1.0)
