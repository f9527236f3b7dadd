"""Phase 1: relative performance filter.

For each horizon, the cohort is every active model still qualified on it.
Each member's mean log loss over all its rounds so far is ranked against
the cohort; the bottom tier is disqualified.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List

import numpy as np

from forecast_tournament.config.tournament_params import TournamentParams, get_tournament_params
from forecast_tournament.scoring.aggregation.normalization import cohort_percentile_ranks

from ..horizons import ALL_HORIZONS
from ..state import ModelState
from .base import HorizonDecision, Phase, PhaseOutcome, apply_decisions, decide


logger = logging.getLogger(__name__)


def run_relative_phase(
    states: Iterable[ModelState],
    params: TournamentParams | None = None,
    *,
    apply: bool = True,
) -> PhaseOutcome:
    """Run the phase 1 percentile filter.

    Args:
        states: Every model state; eliminated ones are skipped
        params: Tournament parameters
        apply: If False, report would-be decisions without mutating state

    Returns:
        PhaseOutcome with per-horizon decisions
    """
    params = params or get_tournament_params()
    threshold = params.qualification.percentile_threshold
    states = list(states)
    active = [s for s in states if s.active]

    decisions: List[HorizonDecision] = []
    for horizon in ALL_HORIZONS:
        cohort = [s for s in active if s.is_qualified(horizon)]

        ranked: List[ModelState] = []
        means: List[float] = []
        for state in cohort:
            losses = state.log_losses(horizon)
            mean_loss = float(losses.mean()) if len(losses) else math.nan
            if not math.isfinite(mean_loss):
                decisions.append(decide(state.model_id, horizon, ["no scored rounds"], {}))
                continue
            ranked.append(state)
            means.append(mean_loss)

        if not ranked:
            continue

        percentiles = cohort_percentile_ranks(np.array(means))
        for state, mean_loss, pct in zip(ranked, means, percentiles):
            reasons = []
            if pct < threshold:
                reasons.append(f"bottom {threshold:g}% percentile ({pct:.1f})")
            decisions.append(
                decide(
                    state.model_id,
                    horizon,
                    reasons,
                    {
                        "mean_log_loss": mean_loss,
                        "percentile": float(pct),
                        "cohort_size": float(len(ranked)),
                    },
                )
            )

    eliminated = apply_decisions(states, Phase.RELATIVE, decisions, apply=apply)
    if eliminated:
        logger.info(f"Relative filter {'eliminated' if apply else 'would eliminate'}: {eliminated}")

    return PhaseOutcome(
        phase=Phase.RELATIVE,
        applied=apply,
        decisions=decisions,
        eliminated=eliminated,
    )


__all__ = ["run_relative_phase"]
