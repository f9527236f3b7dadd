"""Phase 3: final per-horizon ranking.

No model is eliminated here. For each horizon, every model still
qualified on it is listed; those with enough scored rounds and finite
metrics are ranked by a composite score:

    composite = w_pct    * percentile / 100
              + w_best   * (1 - norm(best_window))
              + w_stab   * (1 - norm(stability))
              + w_timing * (1 - timing)

best_window and stability are normalized against the winsorized range of
the ranked cohort. timing is an external early-call ratio in [0, 1] when
every ranked model on the horizon has one, otherwise the normalized
worst-window regret for the whole cohort.

Rank order is composite descending, then model id. The model id only
orders exact ties for display; it never changes a score.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from forecast_tournament.config.tournament_params import RankingParams, TournamentParams, get_tournament_params
from forecast_tournament.scoring.aggregation.normalization import (
    cohort_percentile_ranks,
    normalize_to_range,
    winsorize_bounds,
)
from forecast_tournament.scoring.metrics.stability import (
    best_window,
    cohort_median,
    regret,
    window_stability,
    worst_window,
)
from forecast_tournament.scoring.types import RankingEntryDict

from ..horizons import ALL_HORIZONS, Horizon, HorizonRecord
from ..invariants import HorizonRankability, check_horizon_rankability
from ..ledger import LabelLedger
from ..state import ModelState


logger = logging.getLogger(__name__)

TimingRatios = Mapping[str, Mapping[Horizon, float]]


@dataclass(frozen=True)
class RankingEntry:
    """One model's line in a horizon's final ranking."""

    model_id: str
    rankable: bool
    effective_rounds: int
    rank: Optional[int] = None
    composite_score: Optional[float] = None
    in_arena: bool = False
    reason: Optional[str] = None
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> RankingEntryDict:
        return {
            "model_id": self.model_id,
            "rank": self.rank,
            "composite_score": self.composite_score,
            "rankable": self.rankable,
            "in_arena": self.in_arena,
            "reason": self.reason,
            "effective_rounds": self.effective_rounds,
        }


@dataclass(frozen=True)
class HorizonRanking:
    """Final ranking for one horizon."""

    horizon: Horizon
    entries: Tuple[RankingEntry, ...]
    rankability: HorizonRankability

    @property
    def ranked(self) -> Tuple[RankingEntry, ...]:
        return tuple(e for e in self.entries if e.rankable)

    @property
    def non_rankable(self) -> Tuple[RankingEntry, ...]:
        return tuple(e for e in self.entries if not e.rankable)

    @property
    def arena(self) -> Tuple[RankingEntry, ...]:
        return tuple(e for e in self.entries if e.in_arena)

    def entry(self, model_id: str) -> Optional[RankingEntry]:
        for e in self.entries:
            if e.model_id == model_id:
                return e
        return None


PerHorizonRankings = HorizonRecord[HorizonRanking]


@dataclass(frozen=True)
class CompositeInputs:
    """Raw cohort metrics for one candidate."""

    model_id: str
    effective_rounds: int
    mean_log_loss: float
    best_window: float
    stability: float
    worst_window: float
    regret: float = 0.0
    timing: Optional[float] = None

    def is_finite(self) -> bool:
        return all(
            math.isfinite(v)
            for v in (self.mean_log_loss, self.best_window, self.stability, self.worst_window)
        )


def composite_score(
    percentile: float,
    best_window_norm: float,
    stability_norm: float,
    timing: float,
    params: RankingParams,
) -> float:
    """Weighted composite; every input is in [0, 1] except percentile (0-100)."""
    return (
        params.weight_percentile * (percentile / 100.0)
        + params.weight_best_window * (1.0 - best_window_norm)
        + params.weight_stability * (1.0 - stability_norm)
        + params.weight_timing * (1.0 - timing)
    )


def score_cohort(
    candidates: List[CompositeInputs],
    params: RankingParams,
) -> List[Tuple[CompositeInputs, float, Dict[str, float]]]:
    """Compute composite scores for a rankable cohort.

    Returns:
        (candidate, score, normalized components) per candidate, input order
    """
    if not candidates:
        return []

    percentiles = cohort_percentile_ranks(np.array([c.mean_log_loss for c in candidates]))
    lo, hi = params.winsorize_lower, params.winsorize_upper
    bw_range = winsorize_bounds([c.best_window for c in candidates], lo, hi)
    stab_range = winsorize_bounds([c.stability for c in candidates], lo, hi)
    regret_range = winsorize_bounds([c.regret for c in candidates], lo, hi)
    # One timing source per cohort; a partial external ratio set falls back to regret
    use_timing = all(c.timing is not None for c in candidates)

    scored = []
    for candidate, pct in zip(candidates, percentiles):
        bw_norm = normalize_to_range(candidate.best_window, *bw_range)
        stab_norm = normalize_to_range(candidate.stability, *stab_range)
        if use_timing:
            timing = min(1.0, max(0.0, candidate.timing))
        else:
            timing = normalize_to_range(candidate.regret, *regret_range)
        score = composite_score(float(pct), bw_norm, stab_norm, timing, params)
        scored.append(
            (
                candidate,
                score,
                {
                    "percentile": float(pct),
                    "best_window_norm": bw_norm,
                    "stability_norm": stab_norm,
                    "timing": timing,
                },
            )
        )
    return scored


def rank_horizon(
    states: Iterable[ModelState],
    horizon: Horizon,
    rankability: HorizonRankability,
    params: TournamentParams | None = None,
    timing: Optional[TimingRatios] = None,
) -> HorizonRanking:
    """Rank every model still qualified on a horizon."""
    params = params or get_tournament_params()
    ranking = params.ranking
    window = params.stability.window_size

    entries: List[RankingEntry] = []
    candidates: List[CompositeInputs] = []
    for state in states:
        if not state.is_qualified(horizon):
            continue
        n = state.effective_rounds()
        if n < ranking.min_effective_rounds:
            entries.append(
                RankingEntry(
                    model_id=state.model_id,
                    rankable=False,
                    effective_rounds=n,
                    reason=f"insufficient effective rounds ({n} < {ranking.min_effective_rounds})",
                )
            )
            continue

        losses = state.log_losses(horizon)
        model_timing = None
        if timing is not None and state.model_id in timing:
            model_timing = timing[state.model_id].get(horizon)
        candidate = CompositeInputs(
            model_id=state.model_id,
            effective_rounds=n,
            mean_log_loss=float(losses.mean()),
            best_window=best_window(losses, window),
            stability=window_stability(losses, window),
            worst_window=worst_window(losses, window),
            timing=model_timing,
        )
        if not candidate.is_finite():
            entries.append(
                RankingEntry(
                    model_id=state.model_id,
                    rankable=False,
                    effective_rounds=n,
                    reason="non-finite metrics",
                )
            )
            continue
        candidates.append(candidate)

    # Regret is relative to the ranked cohort's median worst window
    median_worst = cohort_median([c.worst_window for c in candidates])
    candidates = [replace(c, regret=regret(c.worst_window, median_worst)) for c in candidates]

    scored = score_cohort(candidates, ranking)
    scored.sort(key=lambda item: (-item[1], item[0].model_id))

    ranked_entries = []
    for position, (candidate, score, components) in enumerate(scored, start=1):
        ranked_entries.append(
            RankingEntry(
                model_id=candidate.model_id,
                rankable=True,
                effective_rounds=candidate.effective_rounds,
                rank=position,
                composite_score=score,
                in_arena=position <= ranking.arena_size,
                metrics={
                    "mean_log_loss": candidate.mean_log_loss,
                    "best_window": candidate.best_window,
                    "stability": candidate.stability,
                    "regret": candidate.regret,
                    **components,
                },
            )
        )

    entries.sort(key=lambda e: e.model_id)
    return HorizonRanking(
        horizon=horizon,
        entries=tuple(ranked_entries + entries),
        rankability=rankability,
    )


def run_ranking_phase(
    states: Iterable[ModelState],
    ledger: LabelLedger,
    params: TournamentParams | None = None,
    timing: Optional[TimingRatios] = None,
) -> PerHorizonRankings:
    """Rank each horizon independently.

    Args:
        states: Every model state
        ledger: Full label history, used for horizon rankability flags
        params: Tournament parameters
        timing: Optional early-call ratios per model and horizon

    Returns:
        HorizonRecord of HorizonRanking
    """
    params = params or get_tournament_params()
    states = list(states)

    def _rank(horizon: Horizon) -> HorizonRanking:
        rankability = check_horizon_rankability(ledger, horizon, params.invariants)
        result = rank_horizon(states, horizon, rankability, params, timing)
        if not rankability.rankable:
            logger.warning(
                f"Horizon {horizon.value} rankings are not reliable: {'; '.join(rankability.reasons)}"
            )
        return result

    return HorizonRecord({h: _rank(h) for h in ALL_HORIZONS})


__all__ = [
    "RankingEntry",
    "HorizonRanking",
    "PerHorizonRankings",
    "CompositeInputs",
    "composite_score",
    "score_cohort",
    "rank_horizon",
    "run_ranking_phase",
]
