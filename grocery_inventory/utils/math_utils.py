# grocery_inventory/utils/math_utils.py
from typing import List, Sequence, Tuple

import numpy as np


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` instead of raising on a zero denominator.

    Args:
        numerator: Dividend
        denominator: Divisor
        default: Value returned when the divisor is zero

    Returns:
        Quotient or default
    """
    if denominator == 0:
        return default
    return numerator / denominator


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.std(values))


def sample_std(values: Sequence[float]) -> float:
    """Sample standard deviation (n - 1); 0.0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=1))


def weighted_average(values: List[float], weights: List[float]) -> float:
    """Calculate weighted average.

    Args:
        values: List of values
        weights: List of weights

    Returns:
        Weighted average
    """
    if len(values) != len(weights):
        raise ValueError("Length of values and weights must be the same")

    if not values:
        return 0.0

    if sum(weights) == 0:
        return sum(values) / len(values)

    weighted_sum = sum(v * w for v, w in zip(values, weights))
    return weighted_sum / sum(weights)


def linear_regression(
    x: Sequence[float],
    y: Sequence[float]
) -> Tuple[float, float]:
    """Calculate least-squares slope and intercept.

    Args:
        x: List of x values (typically day numbers)
        y: List of y values (typically consumption)

    Returns:
        Tuple with slope and intercept
    """
    if len(x) != len(y) or len(x) < 2:
        raise ValueError("Invalid input for linear regression")

    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)

    mean_x = x_arr.mean()
    mean_y = y_arr.mean()

    denominator = float(((x_arr - mean_x) ** 2).sum())
    if denominator == 0:
        slope = 0.0
    else:
        slope = float(((x_arr - mean_x) * (y_arr - mean_y)).sum()) / denominator

    intercept = float(mean_y - slope * mean_x)

    return (slope, intercept)


def r_squared(x: Sequence[float], y: Sequence[float], slope: float, intercept: float) -> float:
    """Coefficient of determination of a fitted line, clipped to 0..1."""
    y_arr = np.asarray(y, dtype=float)
    predicted = slope * np.asarray(x, dtype=float) + intercept

    ss_res = float(((y_arr - predicted) ** 2).sum())
    ss_tot = float(((y_arr - y_arr.mean()) ** 2).sum())

    if ss_tot == 0:
        return 0.0

    return max(0.0, min(1.0, 1 - ss_res / ss_tot))
