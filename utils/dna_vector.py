# utils/dna_vector.py

"""
Ideological Vector Model

Canonical six-axis representation shared by citizens, representatives,
parties and councilors. Everything here is pure: no I/O, no logging of state.

Axis order is fixed by utils.dna_constants.AXES:
    economic, values, environment, regional, international, security
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from statistics import median
from typing import Dict, Iterable, List, Sequence, Tuple

from utils.dna_constants import AXES, AXIS_MAX, AXIS_MIN


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(value, hi))


def clamp_axis(value: float) -> float:
    return _clamp(float(value), AXIS_MIN, AXIS_MAX)


# ============================================================
# POSITION VECTOR
# ============================================================

@dataclass(frozen=True)
class PositionVector:
    economic: float = 0.0
    values: float = 0.0
    environment: float = 0.0
    regional: float = 0.0
    international: float = 0.0
    security: float = 0.0

    @classmethod
    def neutral(cls) -> "PositionVector":
        return cls()

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "PositionVector":
        if len(values) != len(AXES):
            raise ValueError(f"PositionVector needs {len(AXES)} values, got {len(values)}")
        return cls(*(float(v) for v in values))

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "PositionVector":
        return cls(**{axis: float(data.get(axis, 0.0) or 0.0) for axis in AXES})

    def get(self, axis: str) -> float:
        if axis not in AXES:
            raise KeyError(axis)
        return getattr(self, axis)

    def with_axis(self, axis: str, value: float) -> "PositionVector":
        if axis not in AXES:
            raise KeyError(axis)
        return PositionVector(**{**self.as_dict(), axis: float(value)})

    def as_tuple(self) -> Tuple[float, ...]:
        return tuple(getattr(self, axis) for axis in AXES)

    def as_dict(self) -> Dict[str, float]:
        return {axis: getattr(self, axis) for axis in AXES}

    def is_clamped(self) -> bool:
        return all(AXIS_MIN <= v <= AXIS_MAX for v in self.as_tuple())


# ============================================================
# IMPACT VECTOR
# ============================================================

@dataclass(frozen=True)
class ImpactVector:
    """
    Per-axis relevance magnitude of a legislative item. Direction-free,
    every component in [0, 1].
    """

    economic: float = 0.0
    values: float = 0.0
    environment: float = 0.0
    regional: float = 0.0
    international: float = 0.0
    security: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ValueError(f"ImpactVector.{f.name} must be non-negative")

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "ImpactVector":
        return cls(**{axis: float(data.get(axis, 0.0) or 0.0) for axis in AXES})

    def get(self, axis: str) -> float:
        if axis not in AXES:
            raise KeyError(axis)
        return getattr(self, axis)

    def as_tuple(self) -> Tuple[float, ...]:
        return tuple(getattr(self, axis) for axis in AXES)

    def as_dict(self) -> Dict[str, float]:
        return {axis: getattr(self, axis) for axis in AXES}

    def axes_above(self, threshold: float) -> List[str]:
        return [axis for axis in AXES if getattr(self, axis) > threshold]


# ============================================================
# PURE OPERATIONS
# ============================================================

def clamp(v: PositionVector) -> PositionVector:
    """Force every component into [-1, 1]. Idempotent."""
    return PositionVector(*(clamp_axis(x) for x in v.as_tuple()))


def normalize_for_display(v: PositionVector) -> Tuple[float, ...]:
    """
    Affine map [-1, 1] -> [0, 100] per axis, for presentation only.
    Never store the result.
    """
    return tuple((clamp_axis(x) + 1.0) * 50.0 for x in v.as_tuple())


def normalize_likert(response: float) -> float:
    """
    Survey answer (1–5) -> axis scale.
    1 -> 1.0, 3 -> 0.0, 5 -> -1.0
    """
    return (3.0 - float(response)) / 2.0


def round_half_up(x: float) -> int:
    """Nearest int with halves rounded up (12.5 -> 13). Used for every 0-100 score."""
    return int(math.floor(x + 0.5))


def mean_vector(vectors: Iterable[PositionVector]) -> PositionVector:
    items = list(vectors)
    if not items:
        return PositionVector.neutral()
    n = float(len(items))
    return PositionVector(
        *(sum(v.get(axis) for v in items) / n for axis in AXES)
    )


def median_vector(vectors: Iterable[PositionVector]) -> PositionVector:
    items = list(vectors)
    if not items:
        return PositionVector.neutral()
    return PositionVector(*(median(v.get(axis) for v in items) for axis in AXES))


def axis_variance(vectors: Sequence[PositionVector], axis: str) -> float:
    """Population variance of one axis across vectors (0 for empty input)."""
    if not vectors:
        return 0.0
    values = [v.get(axis) for v in vectors]
    mu = sum(values) / len(values)
    return sum((x - mu) ** 2 for x in values) / len(values)


def offset(a: PositionVector, b: PositionVector) -> Dict[str, float]:
    """Signed per-axis a - b, range [-2, 2]. Not a position."""
    return {axis: a.get(axis) - b.get(axis) for axis in AXES}


def is_finite(v: PositionVector) -> bool:
    return all(math.isfinite(x) for x in v.as_tuple())
