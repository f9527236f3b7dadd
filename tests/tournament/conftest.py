"""Shared fixtures for tournament tests."""

from unittest.mock import MagicMock

import pytest

from forecast_tournament.audit.logging import TournamentAuditLogger
from forecast_tournament.tournament.horizons import Horizon, HorizonRecord
from forecast_tournament.tournament.ledger import LabelLedger
from forecast_tournament.tournament.state import ModelState, RoundScore


def _record(value):
    if isinstance(value, HorizonRecord):
        return value
    if isinstance(value, dict):
        return HorizonRecord(value)
    return HorizonRecord.filled(value)


@pytest.fixture
def play():
    """Append rounds to a ledger and a set of model states.

    play(ledger, states, labels, predictions, phase) where labels is one
    entry per round (bool or {horizon: bool}) and predictions maps model
    id to one entry per round (float, {horizon: float} or None for a
    failed round).
    """

    def _play(ledger, states, labels, predictions, phase=0):
        by_id = {s.model_id: s for s in states}
        for i, round_labels in enumerate(labels):
            round_index = len(ledger) + 1
            label_record = _record(round_labels)
            ledger.record(round_index, phase, label_record)
            for model_id, series in predictions.items():
                p = series[i]
                if p is None:
                    by_id[model_id].record_failure(round_index)
                    continue
                by_id[model_id].record_round(
                    RoundScore.compute(round_index, phase, _record(p), label_record)
                )

    return _play


@pytest.fixture
def ledger():
    """Empty label ledger."""
    return LabelLedger()


@pytest.fixture
def make_states():
    """Build fresh model states by id."""

    def _make(*model_ids):
        return [ModelState(model_id=m) for m in model_ids]

    return _make


@pytest.fixture
def audit():
    """Audit logger writing to a mock."""
    return TournamentAuditLogger(logger=MagicMock())


@pytest.fixture
def all_horizons():
    return list(Horizon)
