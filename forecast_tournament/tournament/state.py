"""Per-model tournament state.

Each forecaster owns one ModelState for the whole tournament. It is
appended to once per round (scores or a failure) and updated once per
phase (qualification). It is never removed; elimination is a derived
flag so eliminated models remain available for reporting.

Qualification is a one-way state machine per (model, horizon):

    QUALIFIED ──disqualify(phase, reason)──▶ DISQUALIFIED

A model is eliminated exactly when no horizon is still qualified.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Collection, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from forecast_tournament.scoring.metrics.proper_scoring import brier_score, log_loss
from forecast_tournament.scoring.types import (
    ConfigurationError,
    IllegalTransitionError,
    ModelStateDict,
)

from .horizons import ALL_HORIZONS, Horizon, HorizonRecord


class QualificationStatus(str, Enum):
    QUALIFIED = "qualified"
    DISQUALIFIED = "disqualified"


@dataclass(frozen=True)
class HorizonQualification:
    """Qualification state of one (model, horizon)."""

    status: QualificationStatus = QualificationStatus.QUALIFIED
    phase: Optional[int] = None
    reason: Optional[str] = None

    @property
    def is_qualified(self) -> bool:
        return self.status == QualificationStatus.QUALIFIED

    def disqualify(self, phase: int, reason: str) -> "HorizonQualification":
        if not self.is_qualified:
            raise IllegalTransitionError(
                f"horizon already disqualified in phase {self.phase}: {self.reason}"
            )
        return HorizonQualification(QualificationStatus.DISQUALIFIED, phase, reason)


@dataclass(frozen=True)
class HorizonScore:
    """Score of one prediction against its label."""

    probability: float
    label: bool
    log_loss: float
    brier: float


@dataclass(frozen=True)
class RoundScore:
    """Scores for one (model, round). Immutable once computed."""

    round_index: int
    phase: int
    scores: HorizonRecord[HorizonScore]

    @classmethod
    def compute(
        cls,
        round_index: int,
        phase: int,
        predictions: HorizonRecord[float],
        labels: HorizonRecord[bool],
    ) -> "RoundScore":
        """Score validated predictions against the round's labels."""
        scores = HorizonRecord.build(
            lambda h: HorizonScore(
                probability=predictions[h],
                label=labels[h],
                log_loss=log_loss(predictions[h], labels[h]),
                brier=brier_score(predictions[h], labels[h]),
            )
        )
        return cls(round_index=round_index, phase=phase, scores=scores)


def _initial_qualification() -> HorizonRecord[HorizonQualification]:
    return HorizonRecord.filled(HorizonQualification())


@dataclass
class ModelState:
    """Accumulated scores and qualification for one forecaster."""

    model_id: str
    rounds: List[RoundScore] = field(default_factory=list)
    failed_rounds: List[int] = field(default_factory=list)
    qualification: HorizonRecord[HorizonQualification] = field(
        default_factory=_initial_qualification
    )
    eliminated_in_phase: Optional[int] = None
    elimination_reason: Optional[str] = None

    # ─────────────────────────────────────────────────────────────────────
    # Round history
    # ─────────────────────────────────────────────────────────────────────

    def record_round(self, score: RoundScore) -> None:
        if self.eliminated:
            raise IllegalTransitionError(f"{self.model_id} is eliminated and takes no rounds")
        self.rounds.append(score)

    def record_failure(self, round_index: int) -> None:
        if self.eliminated:
            raise IllegalTransitionError(f"{self.model_id} is eliminated and takes no rounds")
        self.failed_rounds.append(round_index)

    def rounds_in(self, phases: Optional[Collection[int]] = None) -> List[RoundScore]:
        if phases is None:
            return list(self.rounds)
        return [r for r in self.rounds if r.phase in phases]

    def _horizon_series(
        self,
        horizon: Horizon,
        attr: str,
        phases: Optional[Collection[int]],
    ) -> list:
        return [getattr(r.scores[horizon], attr) for r in self.rounds_in(phases)]

    def log_losses(
        self,
        horizon: Horizon,
        phases: Optional[Collection[int]] = None,
    ) -> NDArray[np.float64]:
        """Log loss series for a horizon in round order."""
        return np.array(self._horizon_series(horizon, "log_loss", phases), dtype=np.float64)

    def brier_scores(
        self,
        horizon: Horizon,
        phases: Optional[Collection[int]] = None,
    ) -> NDArray[np.float64]:
        return np.array(self._horizon_series(horizon, "brier", phases), dtype=np.float64)

    def predictions(
        self,
        horizon: Horizon,
        phases: Optional[Collection[int]] = None,
    ) -> NDArray[np.float64]:
        return np.array(self._horizon_series(horizon, "probability", phases), dtype=np.float64)

    def labels(
        self,
        horizon: Horizon,
        phases: Optional[Collection[int]] = None,
    ) -> List[bool]:
        """Labels of the rounds this model was scored on."""
        return self._horizon_series(horizon, "label", phases)

    def effective_rounds(self, phases: Optional[Collection[int]] = None) -> int:
        """Number of successfully scored rounds (same for every horizon)."""
        return len(self.rounds_in(phases))

    # ─────────────────────────────────────────────────────────────────────
    # Qualification
    # ─────────────────────────────────────────────────────────────────────

    def is_qualified(self, horizon: Horizon) -> bool:
        return self.qualification[horizon].is_qualified

    @property
    def qualified_horizons(self) -> Tuple[Horizon, ...]:
        return tuple(h for h in ALL_HORIZONS if self.qualification[h].is_qualified)

    @property
    def eliminated(self) -> bool:
        return not self.qualified_horizons

    @property
    def active(self) -> bool:
        return not self.eliminated

    def disqualify(self, horizon: Horizon, phase: int, reason: str) -> bool:
        """Disqualify a horizon.

        Returns:
            True if the horizon moved to disqualified, False if it already was
        """
        current = self.qualification[horizon]
        if not current.is_qualified:
            return False
        self.qualification = self.qualification.replace(horizon, current.disqualify(phase, reason))
        return True

    def record_elimination(self, phase: int, reason: str) -> bool:
        """Stamp the phase and reason of elimination once it has happened.

        Returns:
            True if this call recorded the elimination
        """
        if not self.eliminated or self.eliminated_in_phase is not None:
            return False
        self.eliminated_in_phase = phase
        self.elimination_reason = reason
        return True

    def snapshot(self) -> "ModelStateSnapshot":
        return ModelStateSnapshot(
            model_id=self.model_id,
            rounds_scored=len(self.rounds),
            failed_rounds=tuple(self.failed_rounds),
            qualification=self.qualification,
            eliminated=self.eliminated,
            eliminated_in_phase=self.eliminated_in_phase,
            elimination_reason=self.elimination_reason,
        )


@dataclass(frozen=True)
class ModelStateSnapshot:
    """Read-only view of a ModelState at a point in time."""

    model_id: str
    rounds_scored: int
    failed_rounds: Tuple[int, ...]
    qualification: HorizonRecord[HorizonQualification]
    eliminated: bool
    eliminated_in_phase: Optional[int]
    elimination_reason: Optional[str]

    @property
    def qualified_horizons(self) -> Tuple[Horizon, ...]:
        return tuple(h for h, q in self.qualification.items() if q.is_qualified)

    def to_dict(self) -> ModelStateDict:
        return {
            "model_id": self.model_id,
            "rounds_scored": self.rounds_scored,
            "failed_rounds": list(self.failed_rounds),
            "qualification": {
                h.value: {"status": q.status.value, "phase": q.phase, "reason": q.reason}
                for h, q in self.qualification.items()
            },
            "eliminated": self.eliminated,
            "eliminated_in_phase": self.eliminated_in_phase,
            "elimination_reason": self.elimination_reason,
        }


class ModelStateRegistry:
    """All ModelStates of a tournament, in registration order."""

    def __init__(self, model_ids: Iterable[str]):
        ids = list(model_ids)
        if not ids:
            raise ConfigurationError("tournament needs at least one model")
        seen: set[str] = set()
        for model_id in ids:
            if not isinstance(model_id, str) or not model_id:
                raise ConfigurationError(f"invalid model id: {model_id!r}")
            if model_id in seen:
                raise ConfigurationError(f"duplicate model id: {model_id}")
            seen.add(model_id)
        self._states: Dict[str, ModelState] = {m: ModelState(model_id=m) for m in ids}

    def __getitem__(self, model_id: str) -> ModelState:
        return self._states[model_id]

    def __iter__(self) -> Iterator[ModelState]:
        return iter(self._states.values())

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._states

    def active(self) -> List[ModelState]:
        return [s for s in self._states.values() if s.active]

    def eliminated(self) -> List[ModelState]:
        return [s for s in self._states.values() if s.eliminated]

    def snapshot(self) -> Tuple[ModelStateSnapshot, ...]:
        return tuple(s.snapshot() for s in self._states.values())


__all__ = [
    "QualificationStatus",
    "HorizonQualification",
    "HorizonScore",
    "RoundScore",
    "ModelState",
    "ModelStateSnapshot",
    "ModelStateRegistry",
]
