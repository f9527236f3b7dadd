"""Prediction-pattern diagnostics.

Cheap checks on a model's raw probabilities that catch forecasters which
are technically valid but not actually forecasting: always saying the
same thing, always shouting extreme values, or being confidently wrong.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray


def is_degenerate(
    probs: NDArray[np.float64],
    high: float = 0.9,
    low: float = 0.1,
) -> bool:
    """True if every prediction is above high, or every one is below low."""
    probs = np.asarray(probs, dtype=np.float64)
    if len(probs) == 0:
        return False
    return bool(np.all(probs > high) or np.all(probs < low))


def confident_error_rate(
    probs: NDArray[np.float64],
    labels: Sequence[bool],
    high: float = 0.8,
    low: float = 0.2,
) -> float:
    """Share of predictions that were confident and wrong.

    Confident wrong: p > high on a false label, or p < low on a true label.
    """
    probs = np.asarray(probs, dtype=np.float64)
    outcomes = np.asarray(labels, dtype=bool)
    if len(probs) == 0:
        return 0.0
    if len(probs) != len(outcomes):
        raise ValueError(f"got {len(probs)} predictions for {len(outcomes)} labels")

    wrong = ((probs > high) & ~outcomes) | ((probs < low) & outcomes)
    return float(wrong.mean())


def extreme_prediction_rate(
    probs: NDArray[np.float64],
    high: float = 0.9,
    low: float = 0.1,
) -> float:
    """Share of predictions at or beyond the extreme thresholds."""
    probs = np.asarray(probs, dtype=np.float64)
    if len(probs) == 0:
        return 0.0
    return float(((probs >= high) | (probs <= low)).mean())


def unique_prediction_count(probs: NDArray[np.float64], decimals: int = 6) -> int:
    """Number of distinct predictions after rounding."""
    probs = np.asarray(probs, dtype=np.float64)
    return int(len(np.unique(np.round(probs, decimals))))


def prediction_std(probs: NDArray[np.float64]) -> float:
    """Population standard deviation of the predictions (0 when empty)."""
    probs = np.asarray(probs, dtype=np.float64)
    if len(probs) == 0:
        return 0.0
    return float(np.std(probs))


__all__ = [
    "is_degenerate",
    "confident_error_rate",
    "extreme_prediction_rate",
    "unique_prediction_count",
    "prediction_std",
]
