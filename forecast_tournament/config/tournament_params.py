"""Tournament hyperparameters and configuration.

All tournament thresholds live here to ensure:
1. Single source of truth for every qualification constant
2. Reproducibility across runs (same params = same decisions)
3. Easy switching between full and quick runs

Changes to these parameters change which forecasters survive. Record the
params hash alongside any published ranking.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from forecast_tournament.scoring.types import ConfigurationError


class RoundParams(BaseModel):
    """Round counts per phase and forecaster call limits."""

    phase0_rounds: int = Field(
        default=4,
        ge=1,
        le=1000,
        description="Rounds played before the phase 0 sanity filter.",
    )
    phase1_rounds: int = Field(
        default=4,
        ge=0,
        le=1000,
        description="Rounds played before the phase 1 relative performance filter.",
    )
    phase2_rounds: int = Field(
        default=4,
        ge=0,
        le=1000,
        description="Rounds played before the phase 2 stability filter.",
    )
    max_concurrent_calls: int = Field(
        default=10,
        ge=1,
        le=256,
        description="Batch size for concurrent forecaster calls within a round.",
    )
    call_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Per-call timeout. A timed out call counts as a failed round for that model.",
    )


class SanityParams(BaseModel):
    """Phase 0 sanity filter thresholds."""

    random_multiplier: float = Field(
        default=1.1,
        ge=1.0,
        le=10.0,
        description="Mean log loss above random * multiplier fails the horizon.",
    )
    skill_margin: float = Field(
        default=0.0,
        ge=0.0,
        le=10.0,
        description="Allowed slack above the trivial-best baseline.",
    )
    tolerance: float = Field(
        default=1e-9,
        ge=0.0,
        le=1e-3,
        description="Numerical slack so clipped perfect forecasts match a zero baseline.",
    )
    reject_degenerate: bool = Field(
        default=True,
        description="Fail horizons where every prediction sits above degenerate_high or below degenerate_low.",
    )
    degenerate_high: float = Field(default=0.9, ge=0.5, le=1.0)
    degenerate_low: float = Field(default=0.1, ge=0.0, le=0.5)
    confident_high: float = Field(
        default=0.8,
        ge=0.5,
        le=1.0,
        description="p above this with a false label counts as a confident error.",
    )
    confident_low: float = Field(
        default=0.2,
        ge=0.0,
        le=0.5,
        description="p below this with a true label counts as a confident error.",
    )
    max_confident_error_rate: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Confident error rate above this fails the horizon.",
    )
    min_coverage: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum share of phase 0 rounds a model must have scored.",
    )


class QualificationParams(BaseModel):
    """Phase 1 relative performance filter."""

    percentile_threshold: float = Field(
        default=30.0,
        ge=0.0,
        le=100.0,
        description="Horizons ranked below this percentile of the cohort are disqualified.",
    )


class StabilityParams(BaseModel):
    """Phase 2 stability and regret filter."""

    window_size: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Rolling window length (rounds) for best/worst window averages.",
    )
    stability_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        le=100.0,
        description="Stability above multiplier * cohort median stability fails the horizon.",
    )
    regret_tolerance: float = Field(
        default=0.5,
        ge=0.0,
        le=100.0,
        description="Regret above tolerance * cohort median worst window fails the horizon.",
    )


class RankingParams(BaseModel):
    """Phase 3 composite ranking.

    composite = w_pct * pct/100
              + w_best * (1 - norm(best_window))
              + w_stab * (1 - norm(stability))
              + w_timing * (1 - timing)
    """

    min_effective_rounds: int = Field(
        default=10,
        ge=1,
        le=10000,
        description="Scored rounds required on a horizon before a model can be ranked.",
    )
    weight_percentile: float = Field(default=0.4, ge=0.0, le=1.0)
    weight_best_window: float = Field(default=0.3, ge=0.0, le=1.0)
    weight_stability: float = Field(default=0.2, ge=0.0, le=1.0)
    weight_timing: float = Field(default=0.1, ge=0.0, le=1.0)
    arena_size: int = Field(
        default=8,
        ge=1,
        le=1000,
        description="Number of top ranked models per horizon flagged as arena entrants.",
    )
    winsorize_lower: float = Field(default=0.05, ge=0.0, le=0.5)
    winsorize_upper: float = Field(default=0.95, ge=0.5, le=1.0)

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "RankingParams":
        total = (
            self.weight_percentile
            + self.weight_best_window
            + self.weight_stability
            + self.weight_timing
        )
        if abs(total - 1.0) > 1e-6:
            raise ConfigurationError(f"composite weights must sum to 1, got {total:.6f}")
        return self


class InvariantParams(BaseModel):
    """Label-distribution requirements for a horizon to be rankable."""

    min_minority_count: int = Field(
        default=5,
        ge=0,
        le=10000,
        description="Minimum count of the rarer label on a horizon.",
    )
    prevalence_low: float = Field(default=0.1, ge=0.0, le=0.5)
    prevalence_high: float = Field(default=0.9, ge=0.5, le=1.0)


class ValidityParams(BaseModel):
    """Diagnostic validity gates reported next to the final rankings."""

    min_coverage: float = Field(default=0.8, ge=0.0, le=1.0)
    max_failure_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    constant_max_unique: int = Field(
        default=2,
        ge=1,
        le=100,
        description="A predictor with at most this many distinct p values...",
    )
    constant_max_std: float = Field(
        default=0.02,
        ge=0.0,
        le=0.5,
        description="...and a p standard deviation at or below this is constant.",
    )
    extreme_high: float = Field(default=0.9, ge=0.5, le=1.0)
    extreme_low: float = Field(default=0.1, ge=0.0, le=0.5)
    max_extreme_rate: float = Field(default=0.9, ge=0.0, le=1.0)
    max_confident_wrong_rate: float = Field(default=0.2, ge=0.0, le=1.0)


class TournamentParams(BaseModel):
    """Master configuration for a tournament run."""

    rounds: RoundParams = Field(default_factory=RoundParams)
    sanity: SanityParams = Field(default_factory=SanityParams)
    qualification: QualificationParams = Field(default_factory=QualificationParams)
    stability: StabilityParams = Field(default_factory=StabilityParams)
    ranking: RankingParams = Field(default_factory=RankingParams)
    invariants: InvariantParams = Field(default_factory=InvariantParams)
    validity: ValidityParams = Field(default_factory=ValidityParams)
    quick_mode: bool = Field(
        default=False,
        description="Phase 0 reports without applying; phases 1 and 2 are skipped.",
    )

    @model_validator(mode="after")
    def _check_bounds(self) -> "TournamentParams":
        if self.sanity.degenerate_low >= self.sanity.degenerate_high:
            raise ConfigurationError("sanity.degenerate_low must be below degenerate_high")
        if self.sanity.confident_low >= self.sanity.confident_high:
            raise ConfigurationError("sanity.confident_low must be below confident_high")
        if self.ranking.winsorize_lower >= self.ranking.winsorize_upper:
            raise ConfigurationError("ranking.winsorize_lower must be below winsorize_upper")
        if self.invariants.prevalence_low >= self.invariants.prevalence_high:
            raise ConfigurationError("invariants.prevalence_low must be below prevalence_high")
        if self.validity.extreme_low >= self.validity.extreme_high:
            raise ConfigurationError("validity.extreme_low must be below extreme_high")
        return self

    @classmethod
    def quick(cls, **overrides) -> "TournamentParams":
        """Preset for smoke runs: one round per phase, filters report only."""
        rounds = RoundParams(phase0_rounds=1, phase1_rounds=1, phase2_rounds=1)
        return cls(rounds=rounds, quick_mode=True, **overrides)


# Default instance for easy import
DEFAULT_TOURNAMENT_PARAMS = TournamentParams()


def get_tournament_params() -> TournamentParams:
    """Get tournament parameters."""
    return DEFAULT_TOURNAMENT_PARAMS


__all__ = [
    "RoundParams",
    "SanityParams",
    "QualificationParams",
    "StabilityParams",
    "RankingParams",
    "InvariantParams",
    "ValidityParams",
    "TournamentParams",
    "DEFAULT_TOURNAMENT_PARAMS",
    "get_tournament_params",
]
