"""Run-level invariants on the label distribution.

A horizon whose labels are nearly all one class cannot separate skilled
forecasters from constant ones, so rankings on it are flagged. The flag
is informational: it is attached to the rankings, it never eliminates.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Collection, List, Optional, Tuple

from forecast_tournament.config.tournament_params import InvariantParams, get_tournament_params
from forecast_tournament.scoring.metrics.baselines import prevalence_log_loss

from .horizons import Horizon, HorizonRecord
from .ledger import LabelLedger


@dataclass(frozen=True)
class HorizonRankability:
    """Whether a horizon's labels support a meaningful ranking."""

    horizon: Horizon
    rankable: bool
    reasons: Tuple[str, ...]
    n: int
    minority_count: int
    prevalence: float
    prevalence_log_loss: float


def check_horizon_rankability(
    ledger: LabelLedger,
    horizon: Horizon,
    params: Optional[InvariantParams] = None,
    phases: Optional[Collection[int]] = None,
) -> HorizonRankability:
    """Check minority-count and prevalence bounds for one horizon."""
    params = params or get_tournament_params().invariants
    counts = ledger.counts(horizon, phases)

    reasons: List[str] = []
    if counts.minority_count < params.min_minority_count:
        reasons.append(
            f"minority label count {counts.minority_count} below {params.min_minority_count}"
        )
    prevalence = counts.prevalence
    if not math.isfinite(prevalence):
        reasons.append("no labels")
    elif prevalence < params.prevalence_low or prevalence > params.prevalence_high:
        reasons.append(
            f"prevalence {prevalence:.2f} outside [{params.prevalence_low:g}, {params.prevalence_high:g}]"
        )

    return HorizonRankability(
        horizon=horizon,
        rankable=not reasons,
        reasons=tuple(reasons),
        n=counts.n,
        minority_count=counts.minority_count,
        prevalence=prevalence,
        prevalence_log_loss=prevalence_log_loss(prevalence),
    )


def check_rankability(
    ledger: LabelLedger,
    params: Optional[InvariantParams] = None,
) -> HorizonRecord[HorizonRankability]:
    return HorizonRecord.build(lambda h: check_horizon_rankability(ledger, h, params))


__all__ = ["HorizonRankability", "check_horizon_rankability", "check_rankability"]
