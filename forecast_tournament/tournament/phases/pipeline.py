"""Phase pipeline: runs each phase against the registry and audits it."""

from __future__ import annotations

import logging
from typing import Optional

from forecast_tournament.audit.hashing import compute_rankings_hash, compute_snapshot_hash
from forecast_tournament.audit.logging import TournamentAuditLogger, get_audit_logger
from forecast_tournament.config.tournament_params import TournamentParams, get_tournament_params

from ..ledger import LabelLedger
from ..state import ModelStateRegistry
from .base import Phase, PhaseOutcome
from .ranking import PerHorizonRankings, TimingRatios, run_ranking_phase
from .relative import run_relative_phase
from .sanity import run_sanity_phase
from .stability import run_stability_phase


logger = logging.getLogger(__name__)


class PhasePipeline:
    """Applies the filtering phases and the final ranking in order.

    In quick mode phase 0 reports what it would disqualify without
    applying it, and phases 1 and 2 are skipped.
    """

    def __init__(
        self,
        registry: ModelStateRegistry,
        ledger: LabelLedger,
        params: TournamentParams | None = None,
        audit: Optional[TournamentAuditLogger] = None,
    ):
        self.registry = registry
        self.ledger = ledger
        self.params = params or get_tournament_params()
        self.audit = audit or get_audit_logger()

    def run_phase(self, phase: Phase) -> Optional[PhaseOutcome]:
        """Run one filtering phase (0, 1 or 2).

        Returns:
            The PhaseOutcome, or None if the phase is skipped in quick mode
        """
        quick = self.params.quick_mode
        states = list(self.registry)

        if phase == Phase.SANITY:
            outcome = run_sanity_phase(states, self.ledger, self.params, apply=not quick)
        elif phase in (Phase.RELATIVE, Phase.STABILITY):
            if quick:
                logger.info(f"Quick mode: skipping phase {int(phase)}")
                return None
            runner = run_relative_phase if phase == Phase.RELATIVE else run_stability_phase
            outcome = runner(states, self.params)
        else:
            raise ValueError(f"phase {phase!r} is not a filtering phase; use rank()")

        self._audit_outcome(outcome)
        return outcome

    def rank(self, timing: Optional[TimingRatios] = None) -> PerHorizonRankings:
        """Run phase 3 and log the final rankings."""
        rankings = run_ranking_phase(list(self.registry), self.ledger, self.params, timing)
        self.audit.log_rankings(
            {h.value: [e.model_id for e in r.ranked] for h, r in rankings.items()},
            compute_rankings_hash(rankings),
        )
        return rankings

    def _audit_outcome(self, outcome: PhaseOutcome) -> None:
        phase = int(outcome.phase)
        for decision in outcome.decisions:
            self.audit.log_phase_decision(
                phase,
                decision.model_id,
                decision.horizon.value,
                decision.passed,
                decision.reason,
                outcome.applied,
            )
        if outcome.applied:
            for model_id in outcome.eliminated:
                state = self.registry[model_id]
                self.audit.log_elimination(model_id, phase, state.elimination_reason)

        self.audit.log_phase_complete(
            phase,
            len(outcome.failures()),
            outcome.eliminated,
            outcome.applied,
            compute_snapshot_hash(self.registry.snapshot()),
        )


__all__ = ["PhasePipeline"]
