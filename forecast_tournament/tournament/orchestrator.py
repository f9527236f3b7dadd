"""Round orchestration: resolve labels, call forecasters, fold results.

One round runs as:

1. Resolve the label for every horizon. Labels are round-global and are
   fixed before any forecaster is called.
2. Split the active models into batches of ``max_concurrent_calls``.
3. Call every model in a batch concurrently. Each call captures its own
   error or timeout, so one failure never cancels its siblings. Sync
   callers run in worker threads so the timeout still applies to them.
4. Once the batch has settled, fold each outcome into its ModelState in
   turn: a RoundScore on success, the round index in ``failed_rounds``
   otherwise.

A failed call never eliminates a model. Only the phase pipeline does.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

from forecast_tournament.audit.logging import TournamentAuditLogger, get_audit_logger
from forecast_tournament.config.tournament_params import TournamentParams, get_tournament_params
from forecast_tournament.scoring.types import ForecasterCallError, GroundTruthError
from forecast_tournament.scoring.validation import PredictionValidator

from .horizons import ALL_HORIZONS, Horizon, HorizonRecord, parse_horizon
from .ledger import LabelLedger
from .state import ModelState, ModelStateRegistry, RoundScore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundContext:
    """What a forecaster is told about the round it is called for."""

    round_index: int
    phase: int
    horizons: Tuple[Horizon, ...] = ALL_HORIZONS


LabelsLike = Union[Mapping[Any, bool], HorizonRecord]

# resolve_labels(horizons, round_index) -> labels, sync or async
LabelResolver = Callable[[Tuple[Horizon, ...], int], Union[LabelsLike, Awaitable[LabelsLike]]]

# invoke(model_id, context) -> raw predictions by horizon, sync or async
ModelCaller = Callable[[str, RoundContext], Union[Any, Awaitable[Any]]]


@dataclass
class CallOutcome:
    """Settled result of one forecaster call."""

    model_id: str
    predictions: Optional[HorizonRecord[float]] = None
    error: Optional[ForecasterCallError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RoundResult:
    """Summary of one completed round."""

    round_index: int
    phase: int
    labels: HorizonRecord[bool]
    scored: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    duration_seconds: float = 0.0


def batched(items: List[ModelState], size: int) -> List[List[ModelState]]:
    """Split items into consecutive batches of at most size."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _is_async_callable(fn: Any) -> bool:
    return inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(
        getattr(fn, "__call__", None)
    )


class RoundOrchestrator:
    """Runs single rounds against the model registry."""

    def __init__(
        self,
        registry: ModelStateRegistry,
        ledger: LabelLedger,
        resolve_labels: LabelResolver,
        invoke: ModelCaller,
        params: TournamentParams | None = None,
        *,
        validator: Optional[PredictionValidator] = None,
        audit: Optional[TournamentAuditLogger] = None,
    ):
        self.registry = registry
        self.ledger = ledger
        self.params = params or get_tournament_params()
        self.validator = validator or PredictionValidator()
        self.audit = audit or get_audit_logger()
        self._resolve_labels = resolve_labels
        self._invoke = invoke

    async def resolve_labels(self, round_index: int) -> HorizonRecord[bool]:
        """Resolve and check the labels for a round.

        Raises:
            GroundTruthError: If the resolver fails or returns a partial label set
        """
        try:
            raw = await _maybe_await(self._resolve_labels(ALL_HORIZONS, round_index))
        except Exception as e:
            raise GroundTruthError(f"label resolution failed for round {round_index}: {e}") from e

        if isinstance(raw, HorizonRecord):
            raw = dict(raw.items())
        if not isinstance(raw, Mapping):
            raise GroundTruthError(f"labels must be a mapping, got {type(raw).__name__}")

        labels: Dict[Horizon, bool] = {}
        for key, value in raw.items():
            try:
                horizon = parse_horizon(key)
            except KeyError as e:
                raise GroundTruthError(str(e)) from None
            if not isinstance(value, bool):
                raise GroundTruthError(f"label for {horizon.value} must be a boolean, got {value!r}")
            labels[horizon] = value

        missing = [h.value for h in ALL_HORIZONS if h not in labels]
        if missing:
            raise GroundTruthError(f"no label for horizons {missing} in round {round_index}")
        return HorizonRecord(labels)

    async def _invoke_once(self, model_id: str, context: RoundContext) -> Any:
        if _is_async_callable(self._invoke):
            raw = self._invoke(model_id, context)
        else:
            # Blocking callers run in worker threads so a batch stays concurrent
            raw = await asyncio.to_thread(self._invoke, model_id, context)
        return await _maybe_await(raw)

    async def call_model(self, model_id: str, context: RoundContext) -> CallOutcome:
        """Call one forecaster and validate its output.

        Never raises for forecaster-side problems: errors, timeouts and
        schema failures come back as a failed CallOutcome.
        """
        timeout = self.params.rounds.call_timeout_seconds
        try:
            pending = self._invoke_once(model_id, context)
            if timeout is not None:
                raw = await asyncio.wait_for(pending, timeout)
            else:
                raw = await pending
            predictions = self.validator.validate_predictions(raw)
        except Exception as e:
            # Timeouts, transport errors and schema failures alike
            return CallOutcome(
                model_id=model_id,
                error=ForecasterCallError(model_id, context.round_index, e),
            )
        return CallOutcome(model_id=model_id, predictions=predictions)

    def fold(self, result: RoundResult, outcome: CallOutcome) -> None:
        """Fold one settled call into its model's state."""
        state = self.registry[outcome.model_id]
        if outcome.ok and outcome.predictions is not None:
            state.record_round(
                RoundScore.compute(result.round_index, result.phase, outcome.predictions, result.labels)
            )
            result.scored.append(outcome.model_id)
            return

        state.record_failure(result.round_index)
        error = str(outcome.error) if outcome.error is not None else "no predictions"
        result.failed[outcome.model_id] = error
        self.audit.log_forecaster_failure(outcome.model_id, result.round_index, error)

    async def run_round(self, round_index: int, phase: int) -> RoundResult:
        """Run one round over every active model.

        Args:
            round_index: Global round number (strictly increasing)
            phase: Phase the round belongs to

        Returns:
            RoundResult listing scored and failed models

        Raises:
            GroundTruthError: If labels cannot be resolved
        """
        started = time.monotonic()
        labels = await self.resolve_labels(round_index)
        self.ledger.record(round_index, phase, labels)

        active = self.registry.active()
        self.audit.log_round_start(round_index, phase, len(active), labels.to_dict())

        result = RoundResult(round_index=round_index, phase=phase, labels=labels)
        context = RoundContext(round_index=round_index, phase=phase)

        for batch in batched(active, self.params.rounds.max_concurrent_calls):
            outcomes = await asyncio.gather(
                *(self.call_model(state.model_id, context) for state in batch)
            )
            for outcome in outcomes:
                self.fold(result, outcome)

        result.duration_seconds = time.monotonic() - started
        if result.failed:
            logger.warning(f"Round {round_index}: {len(result.failed)} forecaster call(s) failed")
        self.audit.log_round_complete(
            round_index,
            len(result.scored),
            sorted(result.failed),
            result.duration_seconds,
        )
        return result


__all__ = [
    "RoundContext",
    "LabelResolver",
    "ModelCaller",
    "CallOutcome",
    "RoundResult",
    "batched",
    "RoundOrchestrator",
]
