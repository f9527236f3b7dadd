"""Prediction horizons and the fixed-size per-horizon record.

The horizon set is closed. Every per-horizon structure in the tournament
is a HorizonRecord holding exactly one value per Horizon, so a loop over
a record always covers every horizon and a lookup can never miss.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Generic, Iterator, Mapping, Tuple, TypeVar

from forecast_tournament.scoring.types import IllegalTransitionError


T = TypeVar("T")
U = TypeVar("U")


class Horizon(str, Enum):
    """Prediction time windows."""

    M15 = "15m"
    H1 = "1h"
    H4 = "4h"
    H24 = "24h"


ALL_HORIZONS: Tuple[Horizon, ...] = tuple(Horizon)


def parse_horizon(value: object) -> Horizon:
    """Coerce a Horizon or its string value into a Horizon.

    Raises:
        KeyError: If the value names no horizon
    """
    if isinstance(value, Horizon):
        return value
    try:
        return Horizon(value)
    except ValueError:
        raise KeyError(f"unknown horizon: {value!r}") from None


class HorizonRecord(Generic[T]):
    """Immutable mapping with exactly one value per Horizon.

    Updates return a new record; the key set can never change.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[Horizon, T]):
        parsed: Dict[Horizon, T] = {parse_horizon(k): v for k, v in values.items()}
        missing = [h.value for h in ALL_HORIZONS if h not in parsed]
        if missing:
            raise KeyError(f"missing horizons: {missing}")
        # Stored in enumeration order
        self._values: Tuple[T, ...] = tuple(parsed[h] for h in ALL_HORIZONS)

    @classmethod
    def build(cls, factory: Callable[[Horizon], T]) -> "HorizonRecord[T]":
        """Build a record by calling factory once per horizon."""
        return cls({h: factory(h) for h in ALL_HORIZONS})

    @classmethod
    def filled(cls, value: T) -> "HorizonRecord[T]":
        return cls({h: value for h in ALL_HORIZONS})

    def __getitem__(self, horizon: Horizon) -> T:
        return self._values[ALL_HORIZONS.index(parse_horizon(horizon))]

    def __iter__(self) -> Iterator[Horizon]:
        return iter(ALL_HORIZONS)

    def __len__(self) -> int:
        return len(ALL_HORIZONS)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HorizonRecord):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        inner = ", ".join(f"{h.value}={v!r}" for h, v in self.items())
        return f"HorizonRecord({inner})"

    def __setattr__(self, name: str, value: object) -> None:
        if hasattr(self, "_values"):
            raise IllegalTransitionError("HorizonRecord is immutable; use replace()")
        object.__setattr__(self, name, value)

    def items(self) -> Iterator[Tuple[Horizon, T]]:
        return zip(ALL_HORIZONS, self._values)

    def values(self) -> Tuple[T, ...]:
        return self._values

    def replace(self, horizon: Horizon, value: T) -> "HorizonRecord[T]":
        """Return a copy with one horizon's value swapped."""
        updated = dict(self.items())
        updated[parse_horizon(horizon)] = value
        return HorizonRecord(updated)

    def map(self, fn: Callable[[Horizon, T], U]) -> "HorizonRecord[U]":
        return HorizonRecord({h: fn(h, v) for h, v in self.items()})

    def to_dict(self) -> Dict[str, T]:
        """Plain dict keyed by horizon string value."""
        return {h.value: v for h, v in self.items()}


__all__ = [
    "Horizon",
    "ALL_HORIZONS",
    "parse_horizon",
    "HorizonRecord",
]
