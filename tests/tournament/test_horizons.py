"""Tests for horizons and HorizonRecord."""

import pytest

from forecast_tournament.scoring.types import IllegalTransitionError
from forecast_tournament.tournament.horizons import (
    ALL_HORIZONS,
    Horizon,
    HorizonRecord,
    parse_horizon,
)


class TestHorizon:
    """Tests for the Horizon enumeration."""

    def test_closed_set(self):
        """There are exactly four horizons in a fixed order."""
        assert [h.value for h in ALL_HORIZONS] == ["15m", "1h", "4h", "24h"]

    def test_parse(self):
        """String values and members both parse."""
        assert parse_horizon("4h") is Horizon.H4
        assert parse_horizon(Horizon.H1) is Horizon.H1

    def test_parse_unknown(self):
        """Unknown values raise KeyError."""
        with pytest.raises(KeyError):
            parse_horizon("1w")


class TestHorizonRecord:
    """Tests for the fixed-size per-horizon record."""

    def test_requires_every_horizon(self):
        """A record missing a horizon cannot be built."""
        with pytest.raises(KeyError):
            HorizonRecord({Horizon.M15: 1, Horizon.H1: 2})

    def test_rejects_unknown_horizon(self):
        """A record with an unknown key cannot be built."""
        values = {h: 0 for h in Horizon}
        values["1w"] = 0
        with pytest.raises(KeyError):
            HorizonRecord(values)

    def test_build_and_lookup(self):
        """build should call the factory once per horizon."""
        record = HorizonRecord.build(lambda h: h.value.upper())
        assert record[Horizon.H24] == "24H"
        assert record["15m"] == "15M"
        assert len(record) == 4

    def test_iteration_order(self):
        """Iteration follows enumeration order."""
        record = HorizonRecord.filled(0)
        assert list(record) == list(ALL_HORIZONS)

    def test_replace_returns_copy(self):
        """replace should leave the original untouched."""
        original = HorizonRecord.filled(0)
        updated = original.replace(Horizon.H4, 9)
        assert original[Horizon.H4] == 0
        assert updated[Horizon.H4] == 9
        assert updated[Horizon.H1] == 0

    def test_immutable(self):
        """Attributes cannot be reassigned."""
        record = HorizonRecord.filled(0)
        with pytest.raises(IllegalTransitionError):
            record._values = (1, 1, 1, 1)

    def test_equality_and_dict(self):
        """Records compare by value and serialize by horizon string."""
        a = HorizonRecord.filled(True)
        b = HorizonRecord({h.value: True for h in Horizon})
        assert a == b
        assert a.to_dict() == {"15m": True, "1h": True, "4h": True, "24h": True}

    def test_map(self):
        """map should transform every value."""
        doubled = HorizonRecord.filled(2).map(lambda h, v: v * 2)
        assert set(doubled.values()) == {4}
