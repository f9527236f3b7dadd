"""Tests for the phase pipeline and its audit trail."""

import pytest

from forecast_tournament.config.tournament_params import TournamentParams
from forecast_tournament.tournament.horizons import Horizon
from forecast_tournament.tournament.phases.base import Phase
from forecast_tournament.tournament.phases.pipeline import PhasePipeline
from forecast_tournament.tournament.state import ModelStateRegistry


LABELS = [True, False, True, False]


def _toward(confidence):
    return [confidence if y else 1 - confidence for y in LABELS]


def _events(audit, level="info"):
    return [c.args[0]["event"] for c in getattr(audit.logger, level).call_args_list]


@pytest.fixture
def registry(ledger, play):
    """Three reasonable models and one that is always confidently wrong."""
    registry = ModelStateRegistry(["a", "b", "c", "d"])
    play(
        ledger,
        list(registry),
        LABELS,
        {"a": _toward(0.8), "b": _toward(0.7), "c": _toward(0.01), "d": _toward(0.6)},
    )
    return registry


class TestPhasePipeline:
    """Tests for PhasePipeline.run_phase and rank."""

    def test_sanity_applied(self, registry, ledger, audit):
        """Phase 0 eliminates the failing model and audits it."""
        pipeline = PhasePipeline(registry, ledger, TournamentParams(), audit)
        outcome = pipeline.run_phase(Phase.SANITY)

        assert outcome.applied
        assert outcome.eliminated == ["c"]
        assert registry["c"].eliminated
        assert registry["c"].elimination_reason == "Failed sanity check on all horizons"
        assert [s.model_id for s in registry.active()] == ["a", "b", "d"]

        events = _events(audit)
        assert events.count("elimination") == 1
        assert events[-1] == "phase_complete"
        assert _events(audit, "debug").count("phase_decision") == 16

    def test_quick_mode_reports_only(self, registry, ledger, audit):
        """Quick mode reports phase 0 failures without applying them."""
        pipeline = PhasePipeline(registry, ledger, TournamentParams.quick(), audit)
        outcome = pipeline.run_phase(Phase.SANITY)

        assert not outcome.applied
        assert outcome.eliminated == ["c"]
        assert not registry["c"].eliminated
        assert registry["c"].is_qualified(Horizon.H1)
        assert "elimination" not in _events(audit)

        complete = audit.logger.info.call_args_list[-1].args[0]
        assert complete["applied"] is False
        assert complete["eliminated"] == ["c"]

    def test_quick_mode_skips_filters(self, registry, ledger, audit):
        """Phases 1 and 2 do nothing in quick mode."""
        pipeline = PhasePipeline(registry, ledger, TournamentParams.quick(), audit)

        assert pipeline.run_phase(Phase.RELATIVE) is None
        assert pipeline.run_phase(Phase.STABILITY) is None
        assert not registry.eliminated()
        audit.logger.info.assert_not_called()

    def test_relative_after_sanity(self, registry, ledger, audit):
        """Phase 1 ranks only the survivors of phase 0."""
        pipeline = PhasePipeline(registry, ledger, TournamentParams(), audit)
        pipeline.run_phase(Phase.SANITY)
        outcome = pipeline.run_phase(Phase.RELATIVE)

        assert {d.model_id for d in outcome.decisions} == {"a", "b", "d"}
        assert outcome.eliminated == ["d"]

    def test_ranking_is_not_a_filter(self, registry, ledger, audit):
        """run_phase refuses phase 3."""
        pipeline = PhasePipeline(registry, ledger, TournamentParams(), audit)
        with pytest.raises(ValueError):
            pipeline.run_phase(Phase.RANKING)

    def test_rank_logs_rankings(self, registry, ledger, audit):
        """rank() returns per-horizon rankings and logs them with a hash."""
        pipeline = PhasePipeline(registry, ledger, TournamentParams(), audit)
        rankings = pipeline.rank()

        payload = audit.logger.info.call_args_list[-1].args[0]
        assert payload["event"] == "final_rankings"
        assert len(payload["rankings_hash"]) == 64
        # Four rounds is below the default effective-round floor
        assert payload["rankings"]["1h"] == []
        assert len(rankings[Horizon.H1].non_rankable) == 4
