"""Tests for forecaster output validation."""

import math

import pytest

from forecast_tournament.scoring.types import ForecastSchemaError
from forecast_tournament.scoring.validation import PredictionValidator
from forecast_tournament.tournament.horizons import Horizon, HorizonRecord


@pytest.fixture
def validator():
    """Create a validator instance."""
    return PredictionValidator()


def _full(value):
    return {h.value: value for h in Horizon}


class TestValidateConfidence:
    """Tests for (believes_event, confidence) mapping."""

    def test_believes_event(self, validator):
        """Belief in the event should map confidence straight to p."""
        assert validator.validate_confidence(True, 0.8) == pytest.approx(0.8)

    def test_disbelieves_event(self, validator):
        """Disbelief should map to 1 - confidence."""
        assert validator.validate_confidence(False, 0.8) == pytest.approx(0.2)

    def test_confidence_below_half(self, validator):
        """Confidence below 0.5 should be rejected."""
        with pytest.raises(ForecastSchemaError):
            validator.validate_confidence(True, 0.4)

    def test_confidence_above_one(self, validator):
        """Confidence above 1 should be rejected."""
        with pytest.raises(ForecastSchemaError):
            validator.validate_confidence(True, 1.2)

    def test_non_boolean_belief(self, validator):
        """A non-boolean belief should be rejected."""
        with pytest.raises(ForecastSchemaError):
            validator.validate_confidence("yes", 0.8)


class TestValidateProbability:
    """Tests for direct probabilities."""

    def test_valid(self, validator):
        """Probabilities in [0, 1] pass through."""
        assert validator.validate_probability(0.0) == 0.0
        assert validator.validate_probability(1) == 1.0

    @pytest.mark.parametrize("bad", [-0.1, 1.5, math.nan, math.inf, "0.5", None, True])
    def test_rejects(self, validator, bad):
        """Out-of-range, non-finite and non-numeric values are rejected."""
        with pytest.raises(ForecastSchemaError):
            validator.validate_probability(bad)


class TestValidatePredictions:
    """Tests for full prediction sets."""

    def test_structured_predictions(self, validator):
        """Structured output for every horizon should map to a record."""
        raw = _full({"believes_event": False, "confidence": 0.7})
        result = validator.validate_predictions(raw)
        assert isinstance(result, HorizonRecord)
        assert result[Horizon.H1] == pytest.approx(0.3)

    def test_enum_keys(self, validator):
        """Horizon enum keys are accepted."""
        raw = {h: 0.6 for h in Horizon}
        assert validator.validate_predictions(raw)[Horizon.M15] == pytest.approx(0.6)

    def test_missing_horizon(self, validator):
        """Omitting a horizon is a schema failure."""
        raw = _full(0.5)
        del raw[Horizon.H24.value]
        with pytest.raises(ForecastSchemaError, match="24h"):
            validator.validate_predictions(raw)

    def test_unknown_horizon(self, validator):
        """An unknown horizon key is a schema failure."""
        raw = _full(0.5)
        raw["1w"] = 0.5
        with pytest.raises(ForecastSchemaError):
            validator.validate_predictions(raw)

    def test_one_bad_value_fails_all(self, validator):
        """A single invalid horizon should reject the whole set."""
        raw = _full(0.5)
        raw[Horizon.H4.value] = 2.0
        with pytest.raises(ForecastSchemaError, match="4h"):
            validator.validate_predictions(raw)

    def test_not_a_mapping(self, validator):
        """Non-mapping output is a schema failure."""
        with pytest.raises(ForecastSchemaError):
            validator.validate_predictions([0.5, 0.5, 0.5, 0.5])

    def test_incomplete_structured_prediction(self, validator):
        """A mapping without usable keys is a schema failure."""
        raw = _full({"confidence": 0.9})
        with pytest.raises(ForecastSchemaError):
            validator.validate_predictions(raw)
