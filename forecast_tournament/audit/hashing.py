"""Deterministic hashing for tournament inputs and outputs.

Provides hash functions for verifying that two runs over the same
labels and forecasts produced identical states and rankings.
"""

from __future__ import annotations

import hashlib
import json
import math
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable

from pydantic import BaseModel


def _serialize_value(val: Any) -> Any:
    """Serialize a value for deterministic hashing."""
    if val is None:
        return None
    elif isinstance(val, Enum):
        return val.value
    elif isinstance(val, bool):
        return val
    elif isinstance(val, float):
        # JSON has no NaN/Inf; keep them distinguishable
        return val if math.isfinite(val) else str(val)
    elif isinstance(val, (int, str)):
        return val
    elif isinstance(val, datetime):
        return val.isoformat()
    elif isinstance(val, BaseModel):
        return _serialize_value(val.model_dump(mode="json"))
    elif hasattr(val, "to_dict"):
        return _serialize_value(val.to_dict())
    elif is_dataclass(val) and not isinstance(val, type):
        return {f.name: _serialize_value(getattr(val, f.name)) for f in fields(val)}
    elif isinstance(val, dict):
        return {str(_serialize_value(k)): _serialize_value(v) for k, v in sorted(val.items(), key=lambda kv: str(kv[0]))}
    elif isinstance(val, (list, tuple)):
        return [_serialize_value(v) for v in val]
    else:
        return str(val)


def compute_hash(data: Any) -> str:
    """Compute deterministic SHA256 hash of a value.

    The hash is computed from a canonical JSON representation
    with sorted keys and consistent formatting.

    Args:
        data: Dict, dataclass, pydantic model or snapshot to hash

    Returns:
        Hex-encoded SHA256 hash (64 characters)
    """
    serialized = _serialize_value(data)
    canonical = json.dumps(serialized, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def compute_params_hash(params: BaseModel) -> str:
    """Hash of tournament parameters, recorded with every run."""
    return compute_hash(params)


def compute_snapshot_hash(snapshots: Iterable[Any]) -> str:
    """Hash of a set of model state snapshots, independent of their order.

    Args:
        snapshots: Objects with ``model_id`` and ``to_dict()``

    Returns:
        Hex-encoded SHA256 hash
    """
    ordered = sorted(snapshots, key=lambda s: s.model_id)
    return compute_hash([s.to_dict() for s in ordered])


def compute_rankings_hash(rankings: Any) -> str:
    """Hash of final per-horizon rankings.

    Args:
        rankings: HorizonRecord of HorizonRanking

    Returns:
        Hex-encoded SHA256 hash
    """
    payload: Dict[str, Any] = {}
    for horizon, ranking in rankings.items():
        payload[horizon.value] = [e.to_dict() for e in ranking.entries]
    return compute_hash(payload)


__all__ = [
    "compute_hash",
    "compute_params_hash",
    "compute_snapshot_hash",
    "compute_rankings_hash",
]
