"""Shared types for the phase pipeline.

Every filtering phase produces one HorizonDecision per (model, horizon) it
looked at. Decisions are computed against a fixed view of the cohort and
only then applied, so the order models are visited in never matters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, List, Optional

from forecast_tournament.scoring.metrics.baselines import BaselineLogLoss

from ..horizons import Horizon, HorizonRecord
from ..state import ModelState


class Phase(IntEnum):
    SANITY = 0
    RELATIVE = 1
    STABILITY = 2
    RANKING = 3


# Model-level reasons recorded when a phase leaves no horizon qualified
ELIMINATION_REASONS: Dict[Phase, str] = {
    Phase.SANITY: "Failed sanity check on all horizons",
    Phase.RELATIVE: "No qualified horizons after relative performance filter",
    Phase.STABILITY: "No qualified horizons after stability filter",
}


@dataclass(frozen=True)
class HorizonDecision:
    """Outcome of one phase check for one (model, horizon)."""

    model_id: str
    horizon: Horizon
    passed: bool
    reason: Optional[str] = None
    metrics: Dict[str, float] = field(default_factory=dict)


@dataclass
class PhaseOutcome:
    """Result of running one filtering phase over the cohort."""

    phase: Phase
    applied: bool
    decisions: List[HorizonDecision] = field(default_factory=list)
    eliminated: List[str] = field(default_factory=list)
    baselines: Optional[HorizonRecord[BaselineLogLoss]] = None

    def failures(self) -> List[HorizonDecision]:
        return [d for d in self.decisions if not d.passed]

    def decisions_for(self, model_id: str) -> List[HorizonDecision]:
        return [d for d in self.decisions if d.model_id == model_id]


def decide(model_id: str, horizon: Horizon, reasons: List[str], metrics: Dict[str, float]) -> HorizonDecision:
    return HorizonDecision(
        model_id=model_id,
        horizon=horizon,
        passed=not reasons,
        reason="; ".join(reasons) if reasons else None,
        metrics=metrics,
    )


def apply_decisions(
    states: Iterable[ModelState],
    phase: Phase,
    decisions: List[HorizonDecision],
    apply: bool = True,
) -> List[str]:
    """Apply failed decisions to model states and record eliminations.

    With apply=False nothing is mutated and the returned list names the
    models that would have been eliminated.

    Returns:
        Model ids eliminated (or that would be) by this phase
    """
    by_model: Dict[str, List[HorizonDecision]] = {}
    for decision in decisions:
        if not decision.passed:
            by_model.setdefault(decision.model_id, []).append(decision)

    eliminated: List[str] = []
    reason = ELIMINATION_REASONS[phase]
    for state in states:
        if state.eliminated:
            continue
        failed = by_model.get(state.model_id, [])
        if not apply:
            failed_horizons = {d.horizon for d in failed}
            if set(state.qualified_horizons) <= failed_horizons:
                eliminated.append(state.model_id)
            continue
        for decision in failed:
            state.disqualify(decision.horizon, int(phase), decision.reason or "failed")
        if state.record_elimination(int(phase), reason):
            eliminated.append(state.model_id)
    return eliminated


__all__ = [
    "Phase",
    "ELIMINATION_REASONS",
    "HorizonDecision",
    "PhaseOutcome",
    "decide",
    "apply_decisions",
]
