"""Baseline log losses from label counts.

A baseline is the loss of a forecaster that has learned nothing:

- random: always predicts 0.5, loss ln(2) on every label
- always_true: always predicts ~1, pays MAX_LOG_LOSS on every false label
- always_false: always predicts ~0, pays MAX_LOG_LOSS on every true label
- trivial_best: the better of the two constant predictors

Baselines are a function of the label history only. They are recomputed
from counts whenever a phase needs them and never stored on their own.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from .proper_scoring import MAX_LOG_LOSS


RANDOM_LOG_LOSS = math.log(2.0)


@dataclass(frozen=True)
class BaselineLogLoss:
    """Baseline log loss family for one horizon."""

    random: float
    always_true: float
    always_false: float
    trivial_best: float
    n: int
    count_true: int

    @property
    def count_false(self) -> int:
        return self.n - self.count_true


def baseline_from_counts(count_true: int, count_false: int) -> BaselineLogLoss:
    """Compute baselines from label counts.

    With no labels there is nothing sharper to claim than a coin flip, so
    every member of the family equals the random baseline.

    Args:
        count_true: Number of true labels
        count_false: Number of false labels

    Returns:
        BaselineLogLoss for the given counts

    Raises:
        ValueError: If a count is negative
    """
    if count_true < 0 or count_false < 0:
        raise ValueError("label counts must be non-negative")

    n = count_true + count_false
    if n == 0:
        return BaselineLogLoss(
            random=RANDOM_LOG_LOSS,
            always_true=RANDOM_LOG_LOSS,
            always_false=RANDOM_LOG_LOSS,
            trivial_best=RANDOM_LOG_LOSS,
            n=0,
            count_true=0,
        )

    always_true = MAX_LOG_LOSS * count_false / n
    always_false = MAX_LOG_LOSS * count_true / n
    return BaselineLogLoss(
        random=RANDOM_LOG_LOSS,
        always_true=always_true,
        always_false=always_false,
        trivial_best=min(always_true, always_false),
        n=n,
        count_true=count_true,
    )


def baseline_log_loss(labels: Iterable[bool]) -> BaselineLogLoss:
    """Compute baselines by scanning a label history."""
    count_true = 0
    count_false = 0
    for label in labels:
        if label:
            count_true += 1
        else:
            count_false += 1
    return baseline_from_counts(count_true, count_false)


@dataclass
class LabelCounts:
    """Running label counts for incremental baseline computation.

    Produces the same values as baseline_log_loss over the same labels.
    """

    count_true: int = 0
    count_false: int = 0

    @property
    def n(self) -> int:
        return self.count_true + self.count_false

    def add(self, label: bool) -> None:
        if label:
            self.count_true += 1
        else:
            self.count_false += 1

    @property
    def minority_count(self) -> int:
        return min(self.count_true, self.count_false)

    @property
    def prevalence(self) -> float:
        """Share of true labels (NaN when empty)."""
        if self.n == 0:
            return float("nan")
        return self.count_true / self.n

    def baseline(self) -> BaselineLogLoss:
        return baseline_from_counts(self.count_true, self.count_false)


def prevalence_log_loss(p_true: float) -> float:
    """Log loss of always predicting the observed prevalence.

    Binary entropy -(p ln p + (1-p) ln(1-p)); 0 for single-class labels.
    """
    if not math.isfinite(p_true) or p_true <= 0.0 or p_true >= 1.0:
        return 0.0
    return -(p_true * math.log(p_true) + (1.0 - p_true) * math.log(1.0 - p_true))


__all__ = [
    "RANDOM_LOG_LOSS",
    "BaselineLogLoss",
    "baseline_from_counts",
    "baseline_log_loss",
    "LabelCounts",
    "prevalence_log_loss",
]
