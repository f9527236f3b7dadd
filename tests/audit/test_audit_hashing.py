"""Tests for audit hashing utilities."""

from datetime import datetime, timezone

from forecast_tournament.audit.hashing import (
    compute_hash,
    compute_params_hash,
    compute_rankings_hash,
    compute_snapshot_hash,
)
from forecast_tournament.config.tournament_params import SanityParams, TournamentParams
from forecast_tournament.tournament.horizons import Horizon, HorizonRecord
from forecast_tournament.tournament.ledger import LabelLedger
from forecast_tournament.tournament.phases.ranking import run_ranking_phase
from forecast_tournament.tournament.state import ModelState


class TestComputeHash:
    """Tests for generic compute_hash function."""

    def test_deterministic(self):
        """Same input should produce same hash."""
        data = {"a": 1, "b": [1.5, None]}
        assert compute_hash(data) == compute_hash(data)

    def test_key_order_independent(self):
        """Key order should not affect hash."""
        assert compute_hash({"b": 2, "a": 1}) == compute_hash({"a": 1, "b": 2})

    def test_sha256_format(self):
        """Should return 64-character hex string."""
        result = compute_hash({"test": "data"})
        assert len(result) == 64
        assert all(c in "0123456789abcdef" for c in result)

    def test_handles_non_finite(self):
        """NaN and infinity hash without error and stay distinct."""
        assert compute_hash({"x": float("nan")}) != compute_hash({"x": float("inf")})

    def test_handles_enums_and_records(self):
        """Enums hash by value; horizon records by their dict form."""
        record = HorizonRecord.filled(0.5)
        assert compute_hash(record) == compute_hash({h.value: 0.5 for h in Horizon})
        assert compute_hash(Horizon.H1) == compute_hash("1h")

    def test_handles_datetime(self):
        """Should serialize datetime values."""
        result = compute_hash({"time": datetime(2024, 1, 1, tzinfo=timezone.utc)})
        assert len(result) == 64


class TestComputeParamsHash:
    """Tests for compute_params_hash."""

    def test_defaults_stable(self):
        assert compute_params_hash(TournamentParams()) == compute_params_hash(TournamentParams())

    def test_changes_with_params(self):
        changed = TournamentParams(sanity=SanityParams(random_multiplier=1.2))
        assert compute_params_hash(changed) != compute_params_hash(TournamentParams())


class TestComputeSnapshotHash:
    """Tests for compute_snapshot_hash."""

    def test_order_independent(self):
        """Snapshot order does not change the hash."""
        a, b = ModelState(model_id="a"), ModelState(model_id="b")
        assert compute_snapshot_hash([a.snapshot(), b.snapshot()]) == compute_snapshot_hash(
            [b.snapshot(), a.snapshot()]
        )

    def test_detects_state_change(self):
        state = ModelState(model_id="a")
        before = compute_snapshot_hash([state.snapshot()])
        state.disqualify(Horizon.H4, 1, "bottom 30% percentile")
        assert compute_snapshot_hash([state.snapshot()]) != before


class TestComputeRankingsHash:
    """Tests for compute_rankings_hash."""

    def test_stable_and_sensitive(self):
        """Same cohort gives the same hash; a different cohort does not."""
        ledger = LabelLedger()
        states = [ModelState(model_id="a"), ModelState(model_id="b")]

        first = run_ranking_phase(states, ledger)
        second = run_ranking_phase(states, ledger)
        other = run_ranking_phase(states[:1], ledger)

        assert compute_rankings_hash(first) == compute_rankings_hash(second)
        assert compute_rankings_hash(first) != compute_rankings_hash(other)
