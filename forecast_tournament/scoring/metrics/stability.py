"""Stability metrics over a model's per-round log loss series.

- Rolling windows: mean loss over each run of consecutive rounds
- Best/worst window: lowest/highest of those window means
- Stability: population variance (lower = steadier)
- Regret: how much worse a model's worst stretch is than the cohort's typical one
"""

from __future__ import annotations

from typing import Literal, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from numpy.typing import NDArray


DEFAULT_WINDOW_SIZE = 3

# Variances below this are rounding noise from a constant series
VARIANCE_FLOOR = 1e-12

WindowAgg = Literal["best", "worst"]


def rolling_window_means(
    series: Sequence[float] | NDArray[np.float64],
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> NDArray[np.float64]:
    """Mean of each contiguous window of the series.

    A series shorter than the window collapses to a single window covering
    the whole series.

    Args:
        series: Per-round losses in round order
        window_size: Window length in rounds

    Returns:
        Array of window means (empty for an empty series)

    Raises:
        ValueError: If window_size < 1
    """
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")

    values = np.asarray(series, dtype=np.float64)
    if len(values) == 0:
        return np.array([], dtype=np.float64)
    if len(values) < window_size:
        return np.array([values.mean()])

    return sliding_window_view(values, window_size).mean(axis=1)


def rolling_window_stat(
    series: Sequence[float] | NDArray[np.float64],
    window_size: int = DEFAULT_WINDOW_SIZE,
    agg: WindowAgg = "best",
) -> float:
    """Best (min) or worst (max) rolling window mean.

    Args:
        series: Per-round losses in round order
        window_size: Window length in rounds
        agg: "best" for the lowest window mean, "worst" for the highest

    Returns:
        Window statistic, NaN for an empty series
    """
    means = rolling_window_means(series, window_size)
    if len(means) == 0:
        return float("nan")
    if agg == "best":
        return float(means.min())
    if agg == "worst":
        return float(means.max())
    raise ValueError(f"Unknown window aggregation: {agg}")


def best_window(series: Sequence[float], window_size: int = DEFAULT_WINDOW_SIZE) -> float:
    return rolling_window_stat(series, window_size, "best")


def worst_window(series: Sequence[float], window_size: int = DEFAULT_WINDOW_SIZE) -> float:
    return rolling_window_stat(series, window_size, "worst")


def stability_variance(series: Sequence[float] | NDArray[np.float64]) -> float:
    """Population variance of a series; NaN when empty."""
    values = np.asarray(series, dtype=np.float64)
    if len(values) == 0:
        return float("nan")
    var = float(np.var(values))
    return 0.0 if var < VARIANCE_FLOOR else var


def window_stability(
    series: Sequence[float],
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> float:
    """Stability of a loss series measured over its rolling window means."""
    return stability_variance(rolling_window_means(series, window_size))


def regret(worst_window_value: float, cohort_median_worst: float) -> float:
    """Worst-window regret relative to the cohort.

    Positive when the model's worst stretch is worse than the cohort's
    typical worst stretch.
    """
    return worst_window_value - cohort_median_worst


def cohort_median(values: Sequence[float]) -> float:
    """Median of the finite values; NaN if there are none."""
    arr = np.asarray(values, dtype=np.float64)
    arr = arr[np.isfinite(arr)]
    if len(arr) == 0:
        return float("nan")
    return float(np.median(arr))


__all__ = [
    "DEFAULT_WINDOW_SIZE",
    "VARIANCE_FLOOR",
    "rolling_window_means",
    "rolling_window_stat",
    "best_window",
    "worst_window",
    "stability_variance",
    "window_stability",
    "regret",
    "cohort_median",
]
