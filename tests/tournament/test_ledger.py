"""Tests for the round-global label ledger."""

import pytest

from forecast_tournament.scoring.metrics.baselines import baseline_log_loss
from forecast_tournament.tournament.horizons import Horizon, HorizonRecord


def _labels(value):
    return HorizonRecord.filled(value)


class TestLabelLedger:
    """Tests for LabelLedger."""

    def test_rounds_must_increase(self, ledger):
        """Rounds must be recorded in increasing order."""
        ledger.record(1, 0, _labels(True))
        with pytest.raises(ValueError):
            ledger.record(1, 0, _labels(False))

    def test_phase_filter(self, ledger):
        """Labels can be read for selected phases or the whole history."""
        ledger.record(1, 0, _labels(True))
        ledger.record(2, 0, _labels(False))
        ledger.record(3, 1, _labels(True))
        assert ledger.labels(Horizon.H1, [0]) == [True, False]
        assert ledger.labels(Horizon.H1) == [True, False, True]
        assert ledger.round_count([1]) == 1
        assert len(ledger) == 3

    def test_counts_match_scan(self, ledger):
        """Incremental baselines equal a rescan of the same labels."""
        sequence = [True, True, False, True, False]
        for i, label in enumerate(sequence, start=1):
            ledger.record(i, 0 if i <= 2 else 1, _labels(label))

        assert ledger.baselines()[Horizon.H4] == baseline_log_loss(sequence)
        assert ledger.baselines([0])[Horizon.H4] == baseline_log_loss(sequence[:2])

    def test_per_horizon_labels(self, ledger):
        """Each horizon keeps its own labels."""
        labels = HorizonRecord({Horizon.M15: True, Horizon.H1: False, Horizon.H4: True, Horizon.H24: False})
        ledger.record(1, 0, labels)
        assert ledger.counts(Horizon.M15).count_true == 1
        assert ledger.counts(Horizon.H1).count_false == 1

    def test_empty_baselines_are_random(self, ledger):
        """No labels yet means random baselines everywhere."""
        baseline = ledger.baselines()[Horizon.H24]
        assert baseline.trivial_best == baseline.random
