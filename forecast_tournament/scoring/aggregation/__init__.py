"""Cohort aggregation: percentile ranks and normalization."""

from __future__ import annotations

__all__: list[str] = []
