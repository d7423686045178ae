"""
Age Decay
=========
Turns a sighting's age into a render weight.

    age_days = (now − created_at) / 86 400 000 ms
    weight   = max(min_weight, max_weight · exp(−age_days / decay_days))

A fresh sighting renders at ``max_weight``; the weight falls by a
factor of *e* every ``decay_days`` and is floored at ``min_weight`` so
that old sightings stay visible indefinitely.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import numpy as np

MS_PER_DAY = 86_400_000


@dataclass(frozen=True, slots=True)
class DecayParams:
    max_weight: float = 5.0
    min_weight: float = 0.1
    decay_days: float = 30.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.max_weight) and math.isfinite(self.min_weight)):
            raise ValueError("Decay weights must be finite")
        if self.min_weight < 0:
            raise ValueError("min_weight must be >= 0")
        if self.max_weight < self.min_weight:
            raise ValueError("max_weight must be >= min_weight")
        if not (math.isfinite(self.decay_days) and self.decay_days > 0):
            raise ValueError("decay_days must be a positive number")

    @classmethod
    def from_settings(cls, settings) -> "DecayParams":
        return cls(
            max_weight=settings.max_weight,
            min_weight=settings.min_weight,
            decay_days=settings.decay_days,
        )


def to_millis(moment: datetime) -> int:
    """Epoch milliseconds for a timezone-aware datetime."""
    return int(round(moment.timestamp() * 1000))


def age_days(now_ms: int, created_at_ms: int) -> float:
    """Age in days; future timestamps (clock skew) count as age 0."""
    return max(0.0, (now_ms - created_at_ms) / MS_PER_DAY)


def decay_weight(days: float, params: DecayParams = DecayParams()) -> float:
    """Weight for a single age in days."""
    days = max(0.0, days)
    return max(params.min_weight, params.max_weight * math.exp(-days / params.decay_days))


def decay_weights(
    created_at_ms: Sequence[int] | np.ndarray,
    now_ms: int,
    params: DecayParams = DecayParams(),
) -> np.ndarray:
    """Vectorised :func:`decay_weight` over a batch of creation times."""
    created = np.asarray(created_at_ms, dtype=np.float64)
    if created.size == 0:
        return np.empty(0, dtype=np.float64)

    ages = np.clip((now_ms - created) / MS_PER_DAY, 0.0, None)
    return np.maximum(params.min_weight, params.max_weight * np.exp(-ages / params.decay_days))
