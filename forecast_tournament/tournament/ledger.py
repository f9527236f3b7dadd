"""Round-global label history.

Labels belong to the round, not to a model: every model scored in a round
sees the same labels, including rounds where some models failed. The
ledger keeps running counts per phase so baselines can be produced without
rescanning the history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Dict, List, Optional

from forecast_tournament.scoring.metrics.baselines import BaselineLogLoss, LabelCounts

from .horizons import Horizon, HorizonRecord


@dataclass(frozen=True)
class RoundLabels:
    round_index: int
    phase: int
    labels: HorizonRecord[bool]


class LabelLedger:
    """Append-only record of each round's labels, tagged with its phase."""

    def __init__(self) -> None:
        self._rounds: List[RoundLabels] = []
        self._counts: Dict[int, HorizonRecord[LabelCounts]] = {}

    def record(self, round_index: int, phase: int, labels: HorizonRecord[bool]) -> RoundLabels:
        """Append a round's labels.

        Raises:
            ValueError: If round_index does not increase
        """
        if self._rounds and round_index <= self._rounds[-1].round_index:
            raise ValueError(
                f"round {round_index} recorded after round {self._rounds[-1].round_index}"
            )
        entry = RoundLabels(round_index=round_index, phase=phase, labels=labels)
        self._rounds.append(entry)

        counts = self._counts.get(phase)
        if counts is None:
            counts = HorizonRecord.build(lambda _: LabelCounts())
            self._counts[phase] = counts
        for horizon, label in labels.items():
            counts[horizon].add(label)
        return entry

    def __len__(self) -> int:
        return len(self._rounds)

    def rounds(self, phases: Optional[Collection[int]] = None) -> List[RoundLabels]:
        if phases is None:
            return list(self._rounds)
        return [r for r in self._rounds if r.phase in phases]

    def round_count(self, phases: Optional[Collection[int]] = None) -> int:
        return len(self.rounds(phases))

    def labels(self, horizon: Horizon, phases: Optional[Collection[int]] = None) -> List[bool]:
        return [r.labels[horizon] for r in self.rounds(phases)]

    def counts(self, horizon: Horizon, phases: Optional[Collection[int]] = None) -> LabelCounts:
        """Label counts for a horizon, summed over the selected phases."""
        total = LabelCounts()
        for phase, counts in self._counts.items():
            if phases is not None and phase not in phases:
                continue
            total.count_true += counts[horizon].count_true
            total.count_false += counts[horizon].count_false
        return total

    def baselines(self, phases: Optional[Collection[int]] = None) -> HorizonRecord[BaselineLogLoss]:
        """Baseline log losses per horizon from the selected history."""
        return HorizonRecord.build(lambda h: self.counts(h, phases).baseline())


__all__ = ["RoundLabels", "LabelLedger"]
