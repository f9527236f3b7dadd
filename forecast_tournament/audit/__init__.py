"""Audit module for tournament reproducibility.

Provides tools for:
- Hashing state snapshots and rankings so two runs can be compared
- Structured logging of rounds, phase decisions and eliminations
"""

from __future__ import annotations

__all__: list[str] = []
