"""Phase 0: sanity filter.

Uses only the labels and scores from phase 0 rounds. A horizon fails when
the model's mean log loss is worse than what a forecaster with no skill
would achieve, when its predictions are degenerate, or when it is too
often confidently wrong. Sanity is forgiving: the model is eliminated
only if every horizon fails.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from forecast_tournament.config.tournament_params import SanityParams, TournamentParams, get_tournament_params
from forecast_tournament.scoring.metrics.baselines import BaselineLogLoss
from forecast_tournament.scoring.metrics.diagnostics import confident_error_rate, is_degenerate

from ..horizons import Horizon
from ..ledger import LabelLedger
from ..state import ModelState
from .base import HorizonDecision, Phase, PhaseOutcome, apply_decisions, decide


logger = logging.getLogger(__name__)

SANITY_PHASES = (int(Phase.SANITY),)


def sanity_threshold(baseline: BaselineLogLoss, params: SanityParams) -> float:
    """Highest mean log loss a horizon may have and still pass.

    threshold = min(random * random_multiplier, trivial_best + skill_margin)
    """
    return min(
        baseline.random * params.random_multiplier,
        baseline.trivial_best + params.skill_margin,
    )


def check_horizon(
    state: ModelState,
    horizon: Horizon,
    baseline: BaselineLogLoss,
    coverage: float,
    params: SanityParams,
) -> HorizonDecision:
    """Run every sanity check for one (model, horizon)."""
    losses = state.log_losses(horizon, SANITY_PHASES)
    if len(losses) == 0:
        return decide(state.model_id, horizon, ["no scored rounds"], {"coverage": coverage})

    reasons: List[str] = []
    if coverage < params.min_coverage:
        reasons.append(f"coverage {coverage:.2f} below {params.min_coverage:.2f}")

    mean_loss = float(losses.mean())
    threshold = sanity_threshold(baseline, params)
    if mean_loss > threshold + params.tolerance:
        reasons.append(f"mean log loss {mean_loss:.4f} exceeds sanity threshold {threshold:.4f}")

    probs = state.predictions(horizon, SANITY_PHASES)
    if params.reject_degenerate and is_degenerate(probs, params.degenerate_high, params.degenerate_low):
        reasons.append("degenerate predictions")

    error_rate = confident_error_rate(
        probs,
        state.labels(horizon, SANITY_PHASES),
        params.confident_high,
        params.confident_low,
    )
    if error_rate > params.max_confident_error_rate:
        reasons.append(
            f"confident error rate {error_rate:.2f} above {params.max_confident_error_rate:.2f}"
        )

    return decide(
        state.model_id,
        horizon,
        reasons,
        {
            "mean_log_loss": mean_loss,
            "threshold": threshold,
            "random": baseline.random,
            "trivial_best": baseline.trivial_best,
            "confident_error_rate": error_rate,
            "coverage": coverage,
        },
    )


def run_sanity_phase(
    states: Iterable[ModelState],
    ledger: LabelLedger,
    params: TournamentParams | None = None,
    *,
    apply: bool = True,
) -> PhaseOutcome:
    """Run the phase 0 sanity filter over all active models.

    Args:
        states: Every model state; eliminated ones are skipped
        ledger: Round labels; only phase 0 rounds are read
        params: Tournament parameters
        apply: If False, report would-be decisions without mutating state

    Returns:
        PhaseOutcome with per-horizon decisions and baselines
    """
    params = params or get_tournament_params()
    states = list(states)

    baselines = ledger.baselines(SANITY_PHASES)
    total_rounds = ledger.round_count(SANITY_PHASES)

    decisions: List[HorizonDecision] = []
    for state in states:
        if state.eliminated:
            continue
        scored = state.effective_rounds(SANITY_PHASES)
        coverage = scored / total_rounds if total_rounds else 0.0
        for horizon in state.qualified_horizons:
            decisions.append(check_horizon(state, horizon, baselines[horizon], coverage, params.sanity))

    eliminated = apply_decisions(states, Phase.SANITY, decisions, apply=apply)
    if eliminated:
        logger.info(f"Sanity filter {'eliminated' if apply else 'would eliminate'}: {eliminated}")

    return PhaseOutcome(
        phase=Phase.SANITY,
        applied=apply,
        decisions=decisions,
        eliminated=eliminated,
        baselines=baselines,
    )


__all__ = ["sanity_threshold", "check_horizon", "run_sanity_phase"]
