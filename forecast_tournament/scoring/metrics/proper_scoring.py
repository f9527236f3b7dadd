"""Proper scoring rules for binary forecasts: log loss and Brier score.

Proper scoring rules reward honest, calibrated probability forecasts.
They are "proper" in the sense that the best expected score is achieved
by reporting your true beliefs.

- Log loss: Negative log-likelihood of the realized outcome
- Brier score: Squared error between probability and outcome

Both are losses: lower is better.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray


# Clip bound that keeps log(0) out of the log loss
EPS = 1e-15

# Log loss of a maximally wrong (clipped) forecast
MAX_LOG_LOSS = -math.log(EPS)


def log_loss(p: float, actual: bool) -> float:
    """Compute log loss for a single binary forecast.

    LogLoss = -(y*ln(p) + (1-y)*ln(1-p)), with the realized probability
    clipped to [EPS, 1-EPS].

    Symmetric: log_loss(p, True) == log_loss(1 - p, False).

    Args:
        p: Forecast probability that the event happens
        actual: Realized outcome

    Returns:
        Log loss (non-negative; MAX_LOG_LOSS for non-finite input)
    """
    if not math.isfinite(p):
        return MAX_LOG_LOSS

    p_realized = p if actual else 1.0 - p
    p_clamped = min(max(p_realized, EPS), 1.0 - EPS)
    return -math.log(p_clamped)


def brier_score(p: float, actual: bool) -> float:
    """Compute Brier score for a single binary forecast.

    Brier = (p - y)²

    Range [0, 1]; 0 only when the forecast equals the outcome.

    Args:
        p: Forecast probability that the event happens
        actual: Realized outcome

    Returns:
        Brier score (1.0 = worst, also returned for non-finite input)
    """
    if not math.isfinite(p):
        return 1.0

    p_clamped = min(max(p, 0.0), 1.0)
    y = 1.0 if actual else 0.0
    return (p_clamped - y) ** 2


def log_loss_batch(
    probs: NDArray[np.float64],
    outcomes: NDArray[np.bool_],
) -> NDArray[np.float64]:
    """Compute log loss for a batch of binary forecasts.

    Args:
        probs: Shape (N,) array of forecast probabilities
        outcomes: Shape (N,) array of realized outcomes

    Returns:
        Shape (N,) array of log loss values
    """
    probs = np.asarray(probs, dtype=np.float64)
    outcomes = np.asarray(outcomes, dtype=bool)

    p_realized = np.where(outcomes, probs, 1.0 - probs)
    p_clamped = np.clip(p_realized, EPS, 1.0 - EPS)
    losses = -np.log(p_clamped)
    return np.where(np.isfinite(probs), losses, MAX_LOG_LOSS)


def brier_score_batch(
    probs: NDArray[np.float64],
    outcomes: NDArray[np.bool_],
) -> NDArray[np.float64]:
    """Compute Brier scores for a batch of binary forecasts.

    Args:
        probs: Shape (N,) array of forecast probabilities
        outcomes: Shape (N,) array of realized outcomes

    Returns:
        Shape (N,) array of Brier scores
    """
    probs = np.asarray(probs, dtype=np.float64)
    outcomes = np.asarray(outcomes, dtype=np.float64)

    scores = (np.clip(probs, 0.0, 1.0) - outcomes) ** 2
    return np.where(np.isfinite(probs), scores, 1.0)


def mean_log_loss(losses: NDArray[np.float64]) -> float:
    """Mean of a log loss series; NaN for an empty series."""
    if len(losses) == 0:
        return float("nan")
    return float(np.mean(losses))


__all__ = [
    "EPS",
    "MAX_LOG_LOSS",
    "log_loss",
    "brier_score",
    "log_loss_batch",
    "brier_score_batch",
    "mean_log_loss",
]
