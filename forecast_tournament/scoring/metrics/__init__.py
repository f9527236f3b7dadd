"""Scoring metrics module.

Contains implementations of:
- Proper scoring rules (log loss, Brier)
- Baseline log losses (random, always-true, always-false)
- Rolling-window stability and regret
"""

from __future__ import annotations

__all__: list[str] = []
