"""Tournament driver: sequences rounds and phases.

    phase0_rounds rounds → phase 0
    phase1_rounds rounds → phase 1
    phase2_rounds rounds → phase 2
    phase 3 (ranking, no rounds)

Rounds are strictly sequential and numbered globally from 1. Labels
accumulate across every round; phase 0 reads only its own rounds, later
phases read the whole history. Eliminated models are skipped by all
later rounds and cohorts but kept in the registry for reporting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from forecast_tournament.audit.hashing import (
    compute_params_hash,
    compute_rankings_hash,
    compute_snapshot_hash,
)
from forecast_tournament.audit.logging import TournamentAuditLogger, get_audit_logger
from forecast_tournament.config.tournament_params import TournamentParams, get_tournament_params

from .horizons import HorizonRecord
from .ledger import LabelLedger
from .orchestrator import LabelResolver, ModelCaller, RoundOrchestrator, RoundResult
from .phases.base import Phase, PhaseOutcome
from .phases.pipeline import PhasePipeline
from .phases.ranking import PerHorizonRankings, TimingRatios
from .state import ModelStateRegistry, ModelStateSnapshot
from .validity import HorizonValidity, check_validity


logger = logging.getLogger(__name__)


@dataclass
class TournamentResult:
    """Everything a reporter needs after a run."""

    rankings: PerHorizonRankings
    outcomes: List[PhaseOutcome] = field(default_factory=list)
    snapshots: Dict[Phase, Tuple[ModelStateSnapshot, ...]] = field(default_factory=dict)
    rounds: List[RoundResult] = field(default_factory=list)
    validity: Dict[str, HorizonRecord[HorizonValidity]] = field(default_factory=dict)
    params_hash: str = ""
    snapshot_hash: str = ""
    rankings_hash: str = ""

    def outcome(self, phase: Phase) -> Optional[PhaseOutcome]:
        for o in self.outcomes:
            if o.phase == phase:
                return o
        return None


class TournamentDriver:
    """Runs a full tournament over a fixed set of models."""

    def __init__(
        self,
        model_ids: Iterable[str],
        resolve_labels: LabelResolver,
        invoke: ModelCaller,
        params: TournamentParams | None = None,
        *,
        audit: Optional[TournamentAuditLogger] = None,
    ):
        """Set up registry, ledger, orchestrator and pipeline.

        Raises:
            ConfigurationError: With zero models or duplicate ids
        """
        self.params = params or get_tournament_params()
        self.audit = audit or get_audit_logger()
        self.registry = ModelStateRegistry(model_ids)
        self.ledger = LabelLedger()
        self.orchestrator = RoundOrchestrator(
            self.registry,
            self.ledger,
            resolve_labels,
            invoke,
            self.params,
            audit=self.audit,
        )
        self.pipeline = PhasePipeline(self.registry, self.ledger, self.params, self.audit)
        self._next_round = 1

    async def run_rounds(self, phase: Phase, count: int) -> List[RoundResult]:
        """Play count rounds tagged with phase."""
        results = []
        for _ in range(count):
            if not self.registry.active():
                logger.info(f"No active models left; skipping remaining phase {int(phase)} rounds")
                break
            results.append(await self.orchestrator.run_round(self._next_round, int(phase)))
            self._next_round += 1
        return results

    async def run(self, timing: Optional[TimingRatios] = None) -> TournamentResult:
        """Run every round and phase, then rank.

        Args:
            timing: Optional early-call ratios for the phase 3 timing term

        Returns:
            TournamentResult with rankings, phase outcomes and snapshots
        """
        params_hash = compute_params_hash(self.params)
        self.audit.log_tournament_start(len(self.registry), params_hash, self.params.quick_mode)

        rounds = self.params.rounds
        schedule = (
            (Phase.SANITY, rounds.phase0_rounds),
            (Phase.RELATIVE, rounds.phase1_rounds),
            (Phase.STABILITY, rounds.phase2_rounds),
        )

        played: List[RoundResult] = []
        outcomes: List[PhaseOutcome] = []
        snapshots: Dict[Phase, Tuple[ModelStateSnapshot, ...]] = {}
        for phase, count in schedule:
            played.extend(await self.run_rounds(phase, count))
            outcome = self.pipeline.run_phase(phase)
            if outcome is not None:
                outcomes.append(outcome)
            snapshots[phase] = self.registry.snapshot()

        rankings = self.pipeline.rank(timing)
        snapshots[Phase.RANKING] = self.registry.snapshot()

        survivors = [s.model_id for s in self.registry.active()]
        logger.info(f"Tournament complete: {len(survivors)}/{len(self.registry)} models survived")

        return TournamentResult(
            rankings=rankings,
            outcomes=outcomes,
            snapshots=snapshots,
            rounds=played,
            validity=check_validity(self.registry, self.params.validity),
            params_hash=params_hash,
            snapshot_hash=compute_snapshot_hash(snapshots[Phase.RANKING]),
            rankings_hash=compute_rankings_hash(rankings),
        )


__all__ = ["TournamentResult", "TournamentDriver"]
