"""Tests for the phase 0 sanity filter."""

import math

import pytest

from forecast_tournament.config.tournament_params import SanityParams, TournamentParams
from forecast_tournament.scoring.metrics.baselines import baseline_log_loss
from forecast_tournament.tournament.horizons import ALL_HORIZONS, Horizon
from forecast_tournament.tournament.phases.base import Phase
from forecast_tournament.tournament.phases.sanity import run_sanity_phase, sanity_threshold


ALTERNATING = [True, False, True, False]


class TestSanityThreshold:
    """Tests for the sanity threshold."""

    def test_balanced_labels_use_random(self):
        """With balanced labels the random multiple is the binding limit."""
        baseline = baseline_log_loss(ALTERNATING)
        assert sanity_threshold(baseline, SanityParams()) == pytest.approx(math.log(2) * 1.1)

    def test_single_class_uses_trivial_best(self):
        """With single-class labels the trivial baseline is the binding limit."""
        baseline = baseline_log_loss([True] * 4)
        assert sanity_threshold(baseline, SanityParams(skill_margin=0.05)) == pytest.approx(0.05)


class TestEndToEndScenario:
    """Perfect model versus coin-flip model over four sanity rounds."""

    def test_perfect_and_coin_flip(self, ledger, make_states, play):
        """Perfect model passes everywhere; the coin flip scores ln(2)."""
        a, b = make_states("A", "B")
        play(
            ledger,
            [a, b],
            ALTERNATING,
            {"A": [1.0, 0.0, 1.0, 0.0], "B": [0.5] * 4},
        )

        outcome = run_sanity_phase([a, b], ledger)

        assert a.qualified_horizons == ALL_HORIZONS
        for h in ALL_HORIZONS:
            assert float(b.log_losses(h).mean()) == pytest.approx(math.log(2))
            trivial_best = outcome.baselines[h].trivial_best
            assert b.is_qualified(h) == (trivial_best >= math.log(2))
        assert outcome.eliminated == []

    def test_coin_flip_fails_where_trivial_beats_random(self, ledger, make_states, play):
        """A horizon with single-class labels disqualifies the coin flip."""
        a, b = make_states("A", "B")
        labels = [
            {Horizon.M15: True, Horizon.H1: y, Horizon.H4: y, Horizon.H24: y}
            for y in ALTERNATING
        ]
        a_preds = [
            {Horizon.M15: 1.0, Horizon.H1: float(y), Horizon.H4: float(y), Horizon.H24: float(y)}
            for y in ALTERNATING
        ]
        play(ledger, [a, b], labels, {"A": a_preds, "B": [0.5] * 4})

        outcome = run_sanity_phase([a, b], ledger, TournamentParams(sanity=SanityParams(reject_degenerate=False)))

        assert outcome.baselines[Horizon.M15].trivial_best == 0.0
        assert not b.is_qualified(Horizon.M15)
        assert b.qualified_horizons == (Horizon.H1, Horizon.H4, Horizon.H24)
        assert a.qualified_horizons == ALL_HORIZONS


class TestElimination:
    """Tests for phase 0 elimination."""

    def test_three_of_four_not_eliminated(self, ledger, make_states, play):
        """Failing three horizons leaves the model alive."""
        (m,) = make_states("m")
        preds = [
            {Horizon.M15: float(y), Horizon.H1: 1.0 - y, Horizon.H4: 1.0 - y, Horizon.H24: 1.0 - y}
            for y in ALTERNATING
        ]
        play(ledger, [m], ALTERNATING, {"m": preds})

        outcome = run_sanity_phase([m], ledger)

        assert m.qualified_horizons == (Horizon.M15,)
        assert not m.eliminated
        assert outcome.eliminated == []

    def test_four_of_four_eliminated(self, ledger, make_states, play):
        """Failing every horizon eliminates the model in phase 0."""
        (m,) = make_states("m")
        play(ledger, [m], ALTERNATING, {"m": [0.0, 1.0, 0.0, 1.0]})

        outcome = run_sanity_phase([m], ledger)

        assert m.eliminated
        assert m.eliminated_in_phase == 0
        assert m.elimination_reason == "Failed sanity check on all horizons"
        assert outcome.eliminated == ["m"]
        for h in ALL_HORIZONS:
            assert m.qualification[h].phase == Phase.SANITY

    def test_no_scored_rounds(self, ledger, make_states, play):
        """A model that failed every sanity round is eliminated."""
        good, broken = make_states("good", "broken")
        play(ledger, [good, broken], ALTERNATING, {"good": [0.6, 0.4, 0.6, 0.4], "broken": [None] * 4})

        run_sanity_phase([good, broken], ledger)

        assert broken.eliminated
        assert broken.qualification[Horizon.H1].reason == "no scored rounds"
        assert not good.eliminated


class TestChecks:
    """Tests for individual sanity checks."""

    def test_degenerate_predictions(self, ledger, make_states, play):
        """Always-high predictions fail as degenerate."""
        (m,) = make_states("m")
        play(ledger, [m], [True, True, True, False], {"m": [0.95] * 4})

        outcome = run_sanity_phase([m], ledger)

        reasons = [d.reason for d in outcome.decisions_for("m")]
        assert all("degenerate predictions" in r for r in reasons)

    def test_confident_errors(self, ledger, make_states, play):
        """Too many confident misses fail the horizon."""
        (m,) = make_states("m")
        play(ledger, [m], ALTERNATING, {"m": [0.6, 0.85, 0.6, 0.4]})

        run_sanity_phase([m], ledger)

        assert "confident error rate" in m.qualification[Horizon.H1].reason

    def test_low_coverage(self, ledger, make_states, play):
        """Scoring too few sanity rounds fails every horizon."""
        (m,) = make_states("m")
        play(ledger, [m], ALTERNATING, {"m": [0.6, None, None, None]})

        run_sanity_phase([m], ledger)

        assert "coverage" in m.qualification[Horizon.H4].reason

    def test_report_only(self, ledger, make_states, play):
        """apply=False reports decisions without changing state."""
        (m,) = make_states("m")
        play(ledger, [m], ALTERNATING, {"m": [0.0, 1.0, 0.0, 1.0]})

        outcome = run_sanity_phase([m], ledger, apply=False)

        assert not outcome.applied
        assert outcome.eliminated == ["m"]
        assert len(outcome.failures()) == 4
        assert m.qualified_horizons == ALL_HORIZONS

    def test_ignores_later_phase_rounds(self, ledger, make_states, play):
        """Only phase 0 rounds are considered."""
        (m,) = make_states("m")
        play(ledger, [m], ALTERNATING, {"m": [0.7, 0.3, 0.7, 0.3]}, phase=0)
        play(ledger, [m], ALTERNATING, {"m": [0.0, 1.0, 0.0, 1.0]}, phase=1)

        outcome = run_sanity_phase([m], ledger)

        assert outcome.baselines[Horizon.H1].n == 4
        assert m.qualified_horizons == ALL_HORIZONS
