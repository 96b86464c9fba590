from __future__ import annotations
import numpy as np
from typing import Sequence

from luckyday.models.schema import Participant

BASE_WEIGHT = 1.0
DECAY_FACTOR = 0.5
LEVEL_PENALTY_FACTOR = 1.5
MIN_WEIGHT = 0.01

# probability * weight is scaled before flooring to an integer weight
WEIGHT_SCALE = 1000
FALLBACK_WEIGHT = 100


def calculate_weight(participant: Participant, current_year: int) -> float:
    """Selection weight of ``participant`` given its past wins.

    Every past win subtracts ``exp(-0.5 * years_since) * 1.5 ** (5 - level)``
    from a base of 1.0, so recent and valuable wins (level 0 is the grand
    prize) cost the most. The result never drops below 0.01.
    """
    return float(compute_weights([participant], current_year)[0])


def compute_weights(participants: Sequence[Participant], current_year: int) -> np.ndarray:
    """Vectorized :func:`calculate_weight` over ``participants``."""
    w = np.full(len(participants), BASE_WEIGHT, dtype=float)
    owners, years, levels = [], [], []
    for i, p in enumerate(participants):
        for record in p.winning_history:
            owners.append(i)
            years.append(record.year)
            levels.append(record.prize_level)
    if owners:
        years_since = current_year - np.asarray(years, dtype=float)
        # one exponent so far-off years or levels saturate to 0 or inf, never nan
        exponent = -DECAY_FACTOR * years_since + (5 - np.asarray(levels, dtype=float)) * np.log(
            LEVEL_PENALTY_FACTOR
        )
        with np.errstate(over="ignore"):
            penalty = np.exp(exponent)
        np.subtract.at(w, np.asarray(owners), penalty)
    return np.maximum(w, MIN_WEIGHT)


def scale_weights(weights: np.ndarray, probability: float) -> np.ndarray:
    """Integer draw weights for one prize.

    Zero entries are meant to be discarded by the caller. When every entry
    floors to zero all participants get :data:`FALLBACK_WEIGHT` instead.
    """
    scaled = np.floor(np.asarray(weights, dtype=float) * probability * WEIGHT_SCALE).astype(np.int64)
    if len(scaled) and not np.any(scaled > 0):
        scaled = np.full(len(scaled), FALLBACK_WEIGHT, dtype=np.int64)
    return scaled
