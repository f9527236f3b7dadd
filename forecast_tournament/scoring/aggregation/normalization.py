"""Cohort ranking and normalization utilities.

Turns raw loss metrics into comparable [0, 1] or [0, 100] values for the
phase filters and the final composite score. Every metric here is a loss:
lower raw values are better.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy import stats


def percentile_rank(value: float, cohort_values: Sequence[float]) -> float:
    """Percentile rank of a loss within a cohort, inverted so lower is better.

    pct = 100 * worse / (worse + better)

    where ``worse`` counts cohort values strictly higher than ``value`` and
    ``better`` counts values strictly lower. Values equal to ``value`` (the
    model itself included) count for neither side. A value with nothing to
    compare against ranks at 100.

    Args:
        value: The model's loss
        cohort_values: Losses of the cohort (may include the model)

    Returns:
        Percentile in [0, 100]
    """
    cohort = np.asarray(cohort_values, dtype=np.float64)
    worse = int(np.sum(cohort > value))
    better = int(np.sum(cohort < value))
    if worse + better == 0:
        return 100.0
    return 100.0 * worse / (worse + better)


def cohort_percentile_ranks(values: NDArray[np.float64]) -> NDArray[np.float64]:
    """Percentile rank of every member of a cohort against the others.

    Vectorized form of percentile_rank using scipy.stats.rankdata:
    min rank - 1 is the number strictly better, n - max rank the number
    strictly worse.

    Args:
        values: Array of losses

    Returns:
        Array of percentiles in [0, 100]
    """
    values = np.asarray(values, dtype=np.float64)
    n = len(values)
    if n == 0:
        return values.copy()

    better = stats.rankdata(values, method="min") - 1
    worse = n - stats.rankdata(values, method="max")
    compared = better + worse

    result = np.full(n, 100.0)
    mask = compared > 0
    result[mask] = 100.0 * worse[mask] / compared[mask]
    return result


def winsorize_bounds(
    values: Sequence[float],
    lower: float = 0.05,
    upper: float = 0.95,
) -> Tuple[float, float]:
    """Order-statistic clip bounds for winsorizing.

    The lower bound is the value at index floor(n * lower) of the sorted
    cohort, the upper bound the value at index max(0, floor(n * upper) - 1).

    Args:
        values: Cohort values (non-empty)
        lower: Lower quantile
        upper: Upper quantile

    Returns:
        (low, high) clip bounds
    """
    ordered = np.sort(np.asarray(values, dtype=np.float64))
    n = len(ordered)
    if n == 0:
        raise ValueError("cannot winsorize an empty cohort")

    lo_idx = min(int(math.floor(n * lower)), n - 1)
    hi_idx = max(0, int(math.floor(n * upper)) - 1)
    lo, hi = float(ordered[lo_idx]), float(ordered[hi_idx])
    if lo > hi:
        lo, hi = hi, lo
    return lo, hi


def winsorize(
    values: NDArray[np.float64],
    lower: float = 0.05,
    upper: float = 0.95,
) -> NDArray[np.float64]:
    """Clip values to the cohort's winsorize bounds."""
    values = np.asarray(values, dtype=np.float64)
    if len(values) == 0:
        return values.copy()
    lo, hi = winsorize_bounds(values, lower, upper)
    return np.clip(values, lo, hi)


def normalize_to_range(value: float, lo: float, hi: float) -> float:
    """Scale a value into [0, 1] against a (lo, hi) range.

    Values outside the range are clamped. A degenerate range maps to 0.5.
    """
    span = hi - lo
    if span <= 0 or not math.isfinite(span):
        return 0.5
    return min(1.0, max(0.0, (value - lo) / span))


__all__ = [
    "percentile_rank",
    "cohort_percentile_ranks",
    "winsorize_bounds",
    "winsorize",
    "normalize_to_range",
]
