"""Scoring primitives for evaluating probabilistic forecasters.

This package contains the stateless building blocks of the tournament:
- Proper scoring rules (log loss, Brier score)
- Baseline log losses from label counts
- Rolling-window stability and regret
- Cohort percentile ranks and normalization
- Validation of raw forecaster output
"""

from __future__ import annotations

__all__: list[str] = []
