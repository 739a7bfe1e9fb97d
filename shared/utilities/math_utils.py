"""
Numeric helpers shared by the indicator calculator and the scorers.
"""
import math
from typing import Sequence

import numpy as np


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def normalize(x: float, min_value: float, max_value: float) -> float:
    """
    Map x linearly onto [0, 1] using the given anchor range.

    Args:
        x: Value to normalize
        min_value: Value mapped to 0
        max_value: Value mapped to 1

    Returns:
        Normalized value clamped to [0, 1]; 0.5 for a degenerate range
    """
    if max_value == min_value:
        return 0.5
    return clamp((x - min_value) / (max_value - min_value))


def standard_deviation(values: Sequence[float]) -> float:
    """
    Sample standard deviation (n - 1 divisor).

    The divisor is floored at 1 so a single observation yields 0.0
    instead of dividing by zero.

    Args:
        values: Numeric observations

    Returns:
        Sample standard deviation, 0.0 for an empty sequence
    """
    arr = np.asarray(values, dtype=float)
    n = arr.size
    if n == 0:
        return 0.0
    variance = float(np.sum((arr - arr.mean()) ** 2)) / max(n - 1, 1)
    return math.sqrt(variance)


def is_positive_finite(value: float) -> bool:
    """True when value is a finite number greater than zero."""
    return value is not None and math.isfinite(value) and value > 0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))
