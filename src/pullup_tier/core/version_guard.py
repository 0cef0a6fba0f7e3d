"""
Recompute policy for stored tier scores.

A score stored on a workout log is trusted as long as it was produced by
the currently deployed scoring logic. Re-scoring a long history on every
write is avoided; logs are re-scored only when they are new or when
TIER_LOGIC_VERSION changes.
"""

from .config import TIER_LOGIC_VERSION
from .models import ScoreRecord, WorkoutLog
from .tier_score import compute_negative_ratio, compute_pullup_tier_score


def needs_recompute(stored_version: int | None, current_version: int) -> bool:
    """
    Decide whether a stored score must be recomputed.

    Args:
        stored_version: Logic version of the stored score, None if absent
        current_version: Currently deployed logic version

    Returns:
        True if there is no stored version or it differs from current
    """
    return stored_version is None or stored_version != current_version


def score_log(log: WorkoutLog, current_version: int = TIER_LOGIC_VERSION) -> ScoreRecord:
    """
    Run the scorer on one log and tag the result with current_version.

    Raises:
        ValueError: If the log is not scoreable
    """
    if not log.is_scoreable:
        raise ValueError(f"Workout log {log.date} is not scoreable")
    ratio = compute_negative_ratio(log.up_time, log.down_time)
    score = compute_pullup_tier_score(log.done_reps, ratio, log.tempo)
    return ScoreRecord(score=score, algorithm_version=current_version)


def resolve_log_score(
    log: WorkoutLog,
    current_version: int = TIER_LOGIC_VERSION,
) -> tuple[ScoreRecord, bool]:
    """
    Return a score record usable under current_version.

    Reuses the stored record when it is current, otherwise recomputes.

    Returns:
        (record, recomputed) where recomputed tells whether the scorer ran
    """
    stored = log.score_record
    stored_version = stored.algorithm_version if stored is not None else None
    if stored is not None and not needs_recompute(stored_version, current_version):
        return stored, False
    return score_log(log, current_version), True
