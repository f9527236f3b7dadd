"""Structured audit logging for tournament runs.

Every event is a dict payload so a run can be reconstructed, or two runs
diffed, from the log alone.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class TournamentAuditLogger:
    """Structured logger for the tournament audit trail.

    Logs rounds, forecaster failures, phase decisions, eliminations and
    the final rankings with the hashes needed to compare runs.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize the audit logger.

        Args:
            logger: Optional logger instance (creates one if not provided)
        """
        self.logger = logger or logging.getLogger("tournament.audit")

    def log_tournament_start(
        self,
        n_models: int,
        params_hash: str,
        quick_mode: bool,
    ) -> None:
        self.logger.info({
            "event": "tournament_start",
            "n_models": n_models,
            "params_hash": params_hash[:16] + "...",
            "quick_mode": quick_mode,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def log_round_start(
        self,
        round_index: int,
        phase: int,
        n_active: int,
        labels: Dict[str, bool],
    ) -> None:
        """Log round start with the resolved labels.

        Args:
            round_index: Global round number
            phase: Phase the round belongs to
            n_active: Models invoked this round
            labels: Label per horizon value
        """
        self.logger.info({
            "event": "round_start",
            "round": round_index,
            "phase": phase,
            "n_active": n_active,
            "labels": labels,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def log_round_complete(
        self,
        round_index: int,
        n_scored: int,
        failed: List[str],
        duration_seconds: float,
    ) -> None:
        self.logger.info({
            "event": "round_complete",
            "round": round_index,
            "n_scored": n_scored,
            "failed": failed,
            "duration_seconds": round(duration_seconds, 3),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def log_forecaster_failure(
        self,
        model_id: str,
        round_index: int,
        error: str,
    ) -> None:
        """Log a single failed forecaster call.

        Args:
            model_id: Model that failed
            round_index: Round it failed in
            error: Error description
        """
        self.logger.warning({
            "event": "forecaster_failure",
            "model_id": model_id,
            "round": round_index,
            "error": error,
        })

    def log_phase_decision(
        self,
        phase: int,
        model_id: str,
        horizon: str,
        passed: bool,
        reason: Optional[str],
        applied: bool,
    ) -> None:
        self.logger.debug({
            "event": "phase_decision",
            "phase": phase,
            "model_id": model_id,
            "horizon": horizon,
            "passed": passed,
            "reason": reason,
            "applied": applied,
        })

    def log_phase_complete(
        self,
        phase: int,
        n_disqualified: int,
        eliminated: List[str],
        applied: bool,
        snapshot_hash: str,
    ) -> None:
        """Log phase completion with a hash of all model states.

        Args:
            phase: Phase number
            n_disqualified: Horizons that failed this phase
            eliminated: Models eliminated (or that would be, if not applied)
            applied: Whether decisions were applied
            snapshot_hash: Hash of model state snapshots after the phase
        """
        self.logger.info({
            "event": "phase_complete",
            "phase": phase,
            "n_disqualified": n_disqualified,
            "eliminated": eliminated,
            "applied": applied,
            "snapshot_hash": snapshot_hash,  # Full hash for comparison
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def log_elimination(
        self,
        model_id: str,
        phase: int,
        reason: Optional[str],
    ) -> None:
        self.logger.info({
            "event": "elimination",
            "model_id": model_id,
            "phase": phase,
            "reason": reason,
        })

    def log_rankings(
        self,
        rankings: Dict[str, Any],
        rankings_hash: str,
    ) -> None:
        """Log final rankings.

        Args:
            rankings: Ranked model ids per horizon value
            rankings_hash: Hash of the full rankings
        """
        self.logger.info({
            "event": "final_rankings",
            "rankings": rankings,
            "rankings_hash": rankings_hash,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })


# Default instance
_audit_logger: Optional[TournamentAuditLogger] = None


def get_audit_logger() -> TournamentAuditLogger:
    """Get or create the default audit logger."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = TournamentAuditLogger()
    return _audit_logger


__all__ = [
    "TournamentAuditLogger",
    "get_audit_logger",
]
