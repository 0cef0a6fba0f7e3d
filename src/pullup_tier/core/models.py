"""
Data models for pullup-tier.

Core dataclasses for workout logs, per-log score records, per-user
aggregates and the published country ranking.
"""

from dataclasses import dataclass, field
from typing import Literal

from .config import PULLUP_WORKOUT_TYPE, UNSCORED_SENTINEL, WORKOUT_SUB_TYPES

WorkoutSubType = Literal["routine", "test", "free", "custom"]


@dataclass(frozen=True)
class ScoreRecord:
    """
    Tier score stored on a workout log together with the logic version
    that produced it.
    """

    score: int
    algorithm_version: int


@dataclass
class WorkoutLog:
    """
    One recorded pull-up session.

    ``date`` is the unique key of the log inside a user's collection and
    doubles as its ordering key.  ``tempo`` may be empty for sessions whose
    cadence telemetry was lost; such logs still score, without pace bonuses.
    """

    date: str
    done_reps: list[int]
    up_time: int
    down_time: int
    tempo: list[int] = field(default_factory=list)
    sub_type: WorkoutSubType = "free"
    workout_type: str = PULLUP_WORKOUT_TYPE
    goal_reps: list[int] | None = None
    total_time: int | None = None
    score_record: ScoreRecord | None = None

    def __post_init__(self) -> None:
        """Validate log data."""
        if not self.date:
            raise ValueError("date must be a non-empty string")
        if self.sub_type not in WORKOUT_SUB_TYPES:
            raise ValueError(f"Invalid sub_type: {self.sub_type}")
        if any(r <= 0 for r in self.done_reps):
            raise ValueError("done_reps entries must be positive")
        if self.goal_reps is not None and any(r <= 0 for r in self.goal_reps):
            raise ValueError("goal_reps entries must be positive")
        if any(t <= 0 for t in self.tempo):
            raise ValueError("tempo entries must be positive")
        if self.up_time < 0:
            raise ValueError("up_time must be non-negative")
        if self.down_time < 0:
            raise ValueError("down_time must be non-negative")
        if self.total_time is not None and self.total_time < 0:
            raise ValueError("total_time must be non-negative")

    @property
    def is_pullup(self) -> bool:
        return self.workout_type == PULLUP_WORKOUT_TYPE

    @property
    def total_rep_time(self) -> int:
        """Combined concentric + eccentric time for the session."""
        return self.up_time + self.down_time

    @property
    def is_scoreable(self) -> bool:
        """True when the log has reps and defined timing."""
        return bool(self.done_reps) and self.total_rep_time > 0


@dataclass
class UserAggregate:
    """
    Per-user document holding the aggregate pull-up score.

    ``pullup_tier_score`` is None when never computed and
    UNSCORED_SENTINEL when computed from zero scoreable logs.
    """

    user_id: str
    country: str | None = None
    pullup_tier_score: float | None = None

    @property
    def is_ranked(self) -> bool:
        """True if this user contributes to the country ranking."""
        return (
            bool(self.country)
            and self.pullup_tier_score is not None
            and self.pullup_tier_score != UNSCORED_SENTINEL
        )


@dataclass
class TierScoreBreakdown:
    """
    Every intermediate value of one tier score computation.
    """

    base: int
    tempo_mean: float | None  # None when tempo is empty
    tempo_std_dev: float | None  # Already scaled by TEMPO_STDDEV_SCALE
    clamped_negative_ratio: float
    pace_correct_bonus: float
    pace_consistency_bonus: float
    negative_ratio_bonus: float
    total: int


@dataclass
class AggregationResult:
    """
    Outcome of aggregating one user's pull-up logs.
    """

    pullup_tier_score: float
    scored_count: int
    excluded_count: int
    recomputed: dict[str, ScoreRecord] = field(default_factory=dict)  # date -> fresh record

    @property
    def is_unscored(self) -> bool:
        return self.scored_count == 0


@dataclass(frozen=True)
class RegionRanking:
    """One row of the country ranking."""

    country: str
    total_score: float
    average_score: float
    user_count: int


@dataclass
class RankingSnapshot:
    """
    The published country ranking, replaced wholesale every cycle.
    """

    rankings: list[RegionRanking]
    updated_at: str  # ISO timestamp (UTC)
    algorithm_version: int
