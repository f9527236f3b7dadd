"""Forecast tournament engine.

This package contains the tournament itself:
- Horizons and per-horizon records
- Per-model state and the qualification state machine
- Round orchestration with bounded concurrency
- The four-phase pipeline and the driver that sequences it
"""

from __future__ import annotations

__all__: list[str] = []
