"""Phase 2: stability and regret filter.

For each horizon still qualified, two cohort-relative checks run over the
model's full log loss series:

- stability: variance of the rolling window means, against the cohort median
- regret: worst window mean minus the cohort median worst window

A cohort median of zero gives no usable scale and disqualifies no one.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from forecast_tournament.config.tournament_params import StabilityParams, TournamentParams, get_tournament_params
from forecast_tournament.scoring.metrics.stability import (
    cohort_median,
    regret,
    window_stability,
    worst_window,
)

from ..horizons import ALL_HORIZONS
from ..state import ModelState
from .base import HorizonDecision, Phase, PhaseOutcome, apply_decisions, decide


logger = logging.getLogger(__name__)


def _stability_reasons(
    stability: float,
    model_regret: float,
    median_stability: float,
    median_worst: float,
    params: StabilityParams,
) -> List[str]:
    reasons = []
    if median_worst > 0 and model_regret > params.regret_tolerance * median_worst:
        reasons.append(
            f"high regret {model_regret:.4f} vs cohort worst window {median_worst:.4f}"
        )
    if median_stability > 0 and stability > params.stability_multiplier * median_stability:
        reasons.append(
            f"instability {stability:.4f} above {params.stability_multiplier:g}x cohort median {median_stability:.4f}"
        )
    return reasons


def run_stability_phase(
    states: Iterable[ModelState],
    params: TournamentParams | None = None,
    *,
    apply: bool = True,
) -> PhaseOutcome:
    """Run the phase 2 stability and regret filter.

    Args:
        states: Every model state; eliminated ones are skipped
        params: Tournament parameters
        apply: If False, report would-be decisions without mutating state

    Returns:
        PhaseOutcome with per-horizon decisions
    """
    params = params or get_tournament_params()
    window = params.stability.window_size
    states = list(states)
    active = [s for s in states if s.active]

    decisions: List[HorizonDecision] = []
    for horizon in ALL_HORIZONS:
        cohort = []
        for state in active:
            if not state.is_qualified(horizon):
                continue
            losses = state.log_losses(horizon)
            if len(losses) == 0:
                decisions.append(decide(state.model_id, horizon, ["no scored rounds"], {}))
                continue
            cohort.append((state, worst_window(losses, window), window_stability(losses, window)))

        if not cohort:
            continue

        median_worst = cohort_median([w for _, w, _ in cohort])
        median_stability = cohort_median([s for _, _, s in cohort])

        for state, worst, stability in cohort:
            model_regret = regret(worst, median_worst)
            reasons = _stability_reasons(
                stability, model_regret, median_stability, median_worst, params.stability
            )
            decisions.append(
                decide(
                    state.model_id,
                    horizon,
                    reasons,
                    {
                        "worst_window": worst,
                        "stability": stability,
                        "regret": model_regret,
                        "median_worst_window": median_worst,
                        "median_stability": median_stability,
                    },
                )
            )

    eliminated = apply_decisions(states, Phase.STABILITY, decisions, apply=apply)
    if eliminated:
        logger.info(f"Stability filter {'eliminated' if apply else 'would eliminate'}: {eliminated}")

    return PhaseOutcome(
        phase=Phase.STABILITY,
        applied=apply,
        decisions=decisions,
        eliminated=eliminated,
    )


__all__ = ["run_stability_phase"]
