"""Validity gates: diagnostics reported next to the final rankings.

These checks flag models whose record is technically scoreable but
suspicious (low coverage, frequent call failures, constant or extreme
predictions, confident mistakes). They are reported only; qualification
is decided by the phase pipeline alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from forecast_tournament.config.tournament_params import ValidityParams, get_tournament_params
from forecast_tournament.scoring.metrics.diagnostics import (
    confident_error_rate,
    extreme_prediction_rate,
    prediction_std,
    unique_prediction_count,
)

from .horizons import Horizon, HorizonRecord
from .state import ModelState


class ValidityFailure(str, Enum):
    COVERAGE = "coverage"
    FAILURE_RATE = "failure_rate"
    CONSTANT_PREDICTOR = "constant_predictor"
    EXTREME_PREDICTIONS = "extreme_predictions"
    CONFIDENT_WRONG_RATE = "confident_wrong_rate"


@dataclass(frozen=True)
class HorizonValidity:
    horizon: Horizon
    failures: Tuple[ValidityFailure, ...]
    effective_n: int
    total_n: int
    coverage: float
    failure_rate: float
    unique_p: int
    p_std: float
    extreme_rate: float
    confident_wrong_rate: float

    @property
    def is_valid(self) -> bool:
        return not self.failures


def check_horizon_validity(
    state: ModelState,
    horizon: Horizon,
    params: ValidityParams,
) -> HorizonValidity:
    """Compute validity metrics for one (model, horizon)."""
    effective_n = state.effective_rounds()
    total_n = effective_n + len(state.failed_rounds)
    coverage = effective_n / total_n if total_n else 0.0
    failure_rate = len(state.failed_rounds) / total_n if total_n else 0.0

    probs = state.predictions(horizon)
    unique_p = unique_prediction_count(probs)
    p_std = prediction_std(probs)
    extreme_rate = extreme_prediction_rate(probs, params.extreme_high, params.extreme_low)
    wrong_rate = confident_error_rate(probs, state.labels(horizon))

    failures: List[ValidityFailure] = []
    if coverage < params.min_coverage:
        failures.append(ValidityFailure.COVERAGE)
    if failure_rate > params.max_failure_rate:
        failures.append(ValidityFailure.FAILURE_RATE)
    if effective_n > 0 and unique_p <= params.constant_max_unique and p_std <= params.constant_max_std:
        failures.append(ValidityFailure.CONSTANT_PREDICTOR)
    if extreme_rate > params.max_extreme_rate:
        failures.append(ValidityFailure.EXTREME_PREDICTIONS)
    if wrong_rate > params.max_confident_wrong_rate:
        failures.append(ValidityFailure.CONFIDENT_WRONG_RATE)

    return HorizonValidity(
        horizon=horizon,
        failures=tuple(failures),
        effective_n=effective_n,
        total_n=total_n,
        coverage=coverage,
        failure_rate=failure_rate,
        unique_p=unique_p,
        p_std=p_std,
        extreme_rate=extreme_rate,
        confident_wrong_rate=wrong_rate,
    )


def check_validity(
    states: Iterable[ModelState],
    params: Optional[ValidityParams] = None,
) -> Dict[str, HorizonRecord[HorizonValidity]]:
    """Validity report for every model, keyed by model id."""
    params = params or get_tournament_params().validity
    return {
        state.model_id: HorizonRecord.build(lambda h, s=state: check_horizon_validity(s, h, params))
        for state in states
    }


__all__ = [
    "ValidityFailure",
    "HorizonValidity",
    "check_horizon_validity",
    "check_validity",
]
