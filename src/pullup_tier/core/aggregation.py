"""
Per-user pull-up score aggregation.

The aggregate is a pure function of the user's current log snapshot, so
running it twice on the same snapshot, or concurrently, always converges
to the same value.
"""

from typing import Iterable

from .config import TIER_LOGIC_VERSION, UNSCORED_SENTINEL
from .models import AggregationResult, ScoreRecord, WorkoutLog
from .version_guard import resolve_log_score


def aggregate_pullup_logs(
    logs: Iterable[WorkoutLog],
    current_version: int = TIER_LOGIC_VERSION,
) -> AggregationResult:
    """
    Mean tier score over a user's scoreable pull-up logs.

    Non-pull-up logs are ignored. Pull-up logs without reps or with
    ``up_time + down_time == 0`` are excluded from both the sum and the
    count. Stored scores are reused when their version is current.

    Args:
        logs: The user's workout logs
        current_version: Deployed tier logic version

    Returns:
        AggregationResult; pullup_tier_score is UNSCORED_SENTINEL when no
        log could be scored
    """
    total_score = 0
    scored = 0
    excluded = 0
    recomputed: dict[str, ScoreRecord] = {}

    for log in logs:
        if not log.is_pullup:
            continue
        if not log.is_scoreable:
            excluded += 1
            continue

        record, fresh = resolve_log_score(log, current_version)
        if fresh:
            recomputed[log.date] = record
        total_score += record.score
        scored += 1

    return AggregationResult(
        pullup_tier_score=total_score / scored if scored else float(UNSCORED_SENTINEL),
        scored_count=scored,
        excluded_count=excluded,
        recomputed=recomputed,
    )
