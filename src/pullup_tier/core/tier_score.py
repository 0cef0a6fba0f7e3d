"""
Pull-up tier score: raw session telemetry -> one comparable integer.

All functions are pure. The formula is versioned by
config.TIER_LOGIC_VERSION; any change to the steps below must bump it so
that stored scores get recomputed.

    base        = Σ_sets Σ_{combo=1..n} (combo + 1)
    correct     = base × 0.2                 if mean(tempo) ∈ [36, 44]
    consistent  = max(base × (0.2 − σ × 0.2), 0) × 1.5 × 0.5,  σ = pstdev(tempo) × 0.1
    negative    = base × ((clip(ratio, 0.4, 0.7) − 0.4) × 2/3)
    score       = round(base + correct + consistent + negative)
"""

import math
from typing import Sequence

from .config import (
    CONSISTENCY_BASE_FRACTION,
    CONSISTENCY_BOOST,
    CONSISTENCY_DAMPING,
    CONSISTENCY_STDDEV_PENALTY,
    NEGATIVE_RATIO_MAX,
    NEGATIVE_RATIO_MIN,
    NEGATIVE_RATIO_SLOPE,
    PACE_CORRECT_BONUS_FRACTION,
    PACE_MEAN_HIGH,
    PACE_MEAN_LOW,
    TEMPO_STDDEV_SCALE,
)
from .models import TierScoreBreakdown


def set_volume_score(reps: int) -> int:
    """
    Fatigue-weighted volume of one set.

    Each rep is worth one more than its position in the set, so later reps
    count more and long sets grow super-linearly: 5 reps -> 2+3+4+5+6 = 20.

    Args:
        reps: Reps completed in the set

    Returns:
        Volume score of the set
    """
    ts = 0
    combo = 0
    for _ in range(reps):
        combo += 1
        ts += combo + 1
    return ts


def base_score(sets: Sequence[int]) -> int:
    """Sum of set_volume_score over all sets."""
    return sum(set_volume_score(reps) for reps in sets)


def tempo_mean(tempo: Sequence[int]) -> float | None:
    """Arithmetic mean of tempo, or None for an empty sequence."""
    if not tempo:
        return None
    return sum(tempo) / len(tempo)


def tempo_standard_deviation(tempo: Sequence[int]) -> float | None:
    """
    Population standard deviation of tempo, scaled by TEMPO_STDDEV_SCALE.

    Returns None for an empty sequence.
    """
    mean = tempo_mean(tempo)
    if mean is None:
        return None
    variance = sum((t - mean) ** 2 for t in tempo) / len(tempo)
    return math.sqrt(variance) * TEMPO_STDDEV_SCALE


def clamp_negative_ratio(negative_ratio: float) -> float:
    """Saturate negative_ratio into [NEGATIVE_RATIO_MIN, NEGATIVE_RATIO_MAX]."""
    return max(NEGATIVE_RATIO_MIN, min(NEGATIVE_RATIO_MAX, negative_ratio))


def compute_negative_ratio(up_time: int, down_time: int) -> float:
    """
    Fraction of rep time spent in the eccentric phase.

    Raises:
        ValueError: If up_time + down_time is zero (timing undefined)
    """
    total = up_time + down_time
    if total == 0:
        raise ValueError("negative ratio is undefined when up_time + down_time == 0")
    return down_time / total


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from -inf (matches stored scores)."""
    return math.floor(value + 0.5)


def tier_score_breakdown(
    sets: Sequence[int],
    negative_ratio: float,
    tempo: Sequence[int],
) -> TierScoreBreakdown:
    """
    Compute the tier score and keep every intermediate term.

    Args:
        sets: Reps per completed set
        negative_ratio: Eccentric fraction of rep time (clamped to [0.4, 0.7])
        tempo: Per-rep cadence values; empty means no pace bonuses

    Returns:
        TierScoreBreakdown with the final score in ``total``
    """
    adjusted_ratio = clamp_negative_ratio(negative_ratio)
    base = base_score(sets)

    mean = tempo_mean(tempo)
    std_dev = tempo_standard_deviation(tempo)

    correct_pace_point = 0.0
    if mean is not None and PACE_MEAN_LOW <= mean <= PACE_MEAN_HIGH:
        correct_pace_point = base * PACE_CORRECT_BONUS_FRACTION

    consistent_pace_point = 0.0
    if std_dev is not None:
        consistent_pace_point = max(
            base * (CONSISTENCY_BASE_FRACTION - std_dev * CONSISTENCY_STDDEV_PENALTY),
            0,
        )

    negative_ratio_point = base * ((adjusted_ratio - NEGATIVE_RATIO_MIN) * NEGATIVE_RATIO_SLOPE)

    # Two separate steps: stored v1 scores were produced this way.
    consistent_pace_point *= CONSISTENCY_BOOST
    consistent_pace_point *= CONSISTENCY_DAMPING

    result = base + (correct_pace_point + consistent_pace_point + negative_ratio_point)

    return TierScoreBreakdown(
        base=base,
        tempo_mean=mean,
        tempo_std_dev=std_dev,
        clamped_negative_ratio=adjusted_ratio,
        pace_correct_bonus=correct_pace_point,
        pace_consistency_bonus=consistent_pace_point,
        negative_ratio_bonus=negative_ratio_point,
        total=round_half_up(result),
    )


def compute_pullup_tier_score(
    sets: Sequence[int],
    negative_ratio: float,
    tempo: Sequence[int],
) -> int:
    """
    Tier score for one pull-up session.

    Example:
        >>> compute_pullup_tier_score([5], 0.55, [40, 40, 40, 40, 40])
        29
    """
    return tier_score_breakdown(sets, negative_ratio, tempo).total
