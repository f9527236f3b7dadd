"""Type definitions and errors for the tournament scoring system."""

from __future__ import annotations

from typing import Dict, List, Optional, TypedDict


class TournamentError(Exception):
    """Base class for tournament errors."""

    pass


class ConfigurationError(TournamentError):
    """Raised before any round runs when the tournament setup is invalid.

    Covers zero models, duplicate model ids and conflicting thresholds.
    """

    pass


class ForecastSchemaError(TournamentError):
    """Raised when a forecaster returns predictions that cannot be scored."""

    pass


class ForecasterCallError(TournamentError):
    """Raised for a failed forecaster call in a single round."""

    def __init__(self, model_id: str, round_index: int, cause: BaseException):
        self.model_id = model_id
        self.round_index = round_index
        self.cause = cause
        super().__init__(f"{model_id} failed in round {round_index}: {cause!r}")


class IllegalTransitionError(TournamentError):
    """Raised when a qualification state would move backwards."""

    pass


class GroundTruthError(TournamentError):
    """Raised when the label resolver does not return one boolean per horizon.

    Labels are shared by every model in the round, so this aborts the run.
    """

    pass


# ─────────────────────────────────────────────────────────────────────────────
# TypedDicts for data transfer
# ─────────────────────────────────────────────────────────────────────────────


class RawPrediction(TypedDict, total=False):
    """Structured forecaster output for one horizon.

    Either ``believes_event`` + ``confidence`` or a direct ``probability``.
    """

    believes_event: bool
    confidence: float
    probability: float


class HorizonQualificationDict(TypedDict):
    """Serialized qualification state of one horizon."""

    status: str
    phase: Optional[int]
    reason: Optional[str]


class ModelStateDict(TypedDict):
    """Serialized model state for reporting and hashing."""

    model_id: str
    rounds_scored: int
    failed_rounds: List[int]
    qualification: Dict[str, HorizonQualificationDict]
    eliminated: bool
    eliminated_in_phase: Optional[int]
    elimination_reason: Optional[str]


class RankingEntryDict(TypedDict):
    """Serialized phase 3 ranking entry."""

    model_id: str
    rank: Optional[int]
    composite_score: Optional[float]
    rankable: bool
    in_arena: bool
    reason: Optional[str]
    effective_rounds: int


__all__ = [
    "TournamentError",
    "ConfigurationError",
    "ForecastSchemaError",
    "ForecasterCallError",
    "IllegalTransitionError",
    "GroundTruthError",
    "RawPrediction",
    "HorizonQualificationDict",
    "ModelStateDict",
    "RankingEntryDict",
]
