"""Numeric guards used by the physics models."""

import math


def finite_or(value: float, fallback: float) -> float:
    """Return value as a float, or fallback if it is NaN, infinite or not a number."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return float(fallback)
    if math.isfinite(result):
        return result
    return float(fallback)


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value to the closed interval [lower, upper]."""
    return max(lower, min(upper, value))
