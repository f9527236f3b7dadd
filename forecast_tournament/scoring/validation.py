"""Input validation for forecaster output.

All validation happens BEFORE predictions enter the scoring pipeline.
Invalid output is rejected as a whole; a model that omits a horizon or
returns an unusable value is treated as having failed the round.

This module rejects:
- Missing or unknown horizons
- NaN, Inf and non-numeric confidences or probabilities
- Confidences outside [0.5, 1] and probabilities outside [0, 1]
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from forecast_tournament.tournament.horizons import ALL_HORIZONS, Horizon, HorizonRecord, parse_horizon

from .types import ForecastSchemaError


def _to_float(value: object, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ForecastSchemaError(f"{name} must be a number, got {type(value).__name__}")
    result = float(value)
    if not math.isfinite(result):
        raise ForecastSchemaError(f"{name} must be finite, got {result}")
    return result


class PredictionValidator:
    """Validate and map raw forecaster output to per-horizon probabilities.

    All validation is stateless and deterministic.
    """

    def validate_confidence(self, believes_event: object, confidence: object) -> float:
        """Map a (belief, confidence) pair to the probability of the event.

        p = confidence if the model believes the event happens, else 1 - confidence.

        Raises:
            ForecastSchemaError: If the pair is malformed
        """
        if not isinstance(believes_event, bool):
            raise ForecastSchemaError("believes_event must be a boolean")
        c = _to_float(confidence, "confidence")
        if c < 0.5 or c > 1.0:
            raise ForecastSchemaError(f"confidence {c} outside [0.5, 1]")
        return c if believes_event else 1.0 - c

    def validate_probability(self, prob: object) -> float:
        """Validate a direct probability.

        Raises:
            ForecastSchemaError: If the probability is invalid
        """
        p = _to_float(prob, "probability")
        if p < 0.0 or p > 1.0:
            raise ForecastSchemaError(f"probability {p} outside [0, 1]")
        return p

    def validate_prediction(self, raw: Any) -> float:
        """Validate one horizon's raw prediction.

        Accepts a bare number (probability) or a mapping with either
        ``probability`` or ``believes_event`` + ``confidence``.
        """
        if isinstance(raw, Mapping):
            if "probability" in raw:
                return self.validate_probability(raw["probability"])
            if "believes_event" in raw and "confidence" in raw:
                return self.validate_confidence(raw["believes_event"], raw["confidence"])
            raise ForecastSchemaError(
                "prediction needs 'probability' or 'believes_event' + 'confidence'"
            )
        return self.validate_probability(raw)

    def validate_predictions(self, raw: Any) -> HorizonRecord[float]:
        """Validate a full set of predictions, one per horizon.

        Args:
            raw: Mapping of horizon (enum or string value) to raw prediction,
                or an already-built HorizonRecord

        Returns:
            HorizonRecord of probabilities

        Raises:
            ForecastSchemaError: On missing/unknown horizons or bad values
        """
        if isinstance(raw, HorizonRecord):
            raw = dict(raw.items())
        if not isinstance(raw, Mapping):
            raise ForecastSchemaError(
                f"predictions must be a mapping of horizon to prediction, got {type(raw).__name__}"
            )

        parsed: dict[Horizon, Any] = {}
        for key, value in raw.items():
            try:
                horizon = parse_horizon(key)
            except KeyError as e:
                raise ForecastSchemaError(str(e)) from None
            parsed[horizon] = value

        missing = [h.value for h in ALL_HORIZONS if h not in parsed]
        if missing:
            raise ForecastSchemaError(f"missing predictions for horizons: {missing}")

        probs: dict[Horizon, float] = {}
        for horizon in ALL_HORIZONS:
            try:
                probs[horizon] = self.validate_prediction(parsed[horizon])
            except ForecastSchemaError as e:
                raise ForecastSchemaError(f"{horizon.value}: {e}") from None
        return HorizonRecord(probs)


__all__ = ["PredictionValidator"]
