"""
JSON serialization for pullup-tier data models.

Handles conversion between dataclasses and the document shapes kept in the
store. Workout logs are accepted in their legacy shape too, where
``doneReps``, ``goalReps`` and ``pullupDetails.tempo`` are JSON-encoded
strings rather than arrays; they are always written back as arrays.
"""

import json
from typing import Any

from loguru import logger

from ..core.config import PULLUP_WORKOUT_TYPE, WORKOUT_SUB_TYPES
from ..core.models import (
    RankingSnapshot,
    RegionRanking,
    ScoreRecord,
    UserAggregate,
    WorkoutLog,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_int(value: Any, name: str) -> int:
    """
    Validate that a value is an integer.

    Integral floats (``40.0``) are accepted since JSON writers in other
    languages do not distinguish them.

    Raises:
        ValidationError: If value is not integral
    """
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValidationError(f"{name} must be an integer, got {value!r}")


def validate_non_negative(value: Any, name: str) -> int:
    """
    Validate that a value is a non-negative integer.

    Raises:
        ValidationError: If value is negative or not integral
    """
    number = validate_int(value, name)
    if number < 0:
        raise ValidationError(f"{name} must be non-negative, got {number}")
    return number


def parse_int_list(value: Any, name: str) -> list[int]:
    """
    Parse a list of positive integers.

    Args:
        value: A list, or a JSON string encoding a list
        name: Field name for error messages

    Returns:
        List of positive ints

    Raises:
        ValidationError: If value cannot be decoded or holds non-positive items
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{name} is not valid JSON: {value!r}") from e

    if not isinstance(value, list):
        raise ValidationError(f"{name} must be a list, got {type(value).__name__}")

    items = [validate_int(v, f"{name}[{i}]") for i, v in enumerate(value)]
    for i, v in enumerate(items):
        if v <= 0:
            raise ValidationError(f"{name}[{i}] must be positive, got {v}")
    return items


def parse_int_csv(text: str, name: str) -> list[int]:
    """
    Parse a comma/space separated list of positive integers.

    Examples:
        "5,5,4"  -> [5, 5, 4]
        "40 41"  -> [40, 41]
        ""       -> []

    Raises:
        ValidationError: On a non-integer or non-positive item
    """
    items: list[int] = []
    for part in text.replace(",", " ").split():
        try:
            value = int(part)
        except ValueError as e:
            raise ValidationError(f"{name}: {part!r} is not an integer") from e
        if value <= 0:
            raise ValidationError(f"{name}: values must be positive, got {value}")
        items.append(value)
    return items


def score_record_to_dict(record: ScoreRecord) -> dict[str, Any]:
    """Convert ScoreRecord to the fields stored on a log document."""
    return {
        "score": record.score,
        "scoreVersion": record.algorithm_version,
    }


def dict_to_score_record(data: dict[str, Any]) -> ScoreRecord | None:
    """
    Read the stored score record from a log document.

    Returns None unless both ``score`` and ``scoreVersion`` are present and
    integral; the log is then rescored rather than rejected.
    """
    score = data.get("score")
    version = data.get("scoreVersion")
    if score is None or version is None:
        return None
    try:
        return ScoreRecord(
            score=validate_int(score, "score"),
            algorithm_version=validate_int(version, "scoreVersion"),
        )
    except ValidationError as e:
        logger.debug(f"Ignoring stored score record: {e}")
        return None


def is_pullup_document(data: dict[str, Any]) -> bool:
    """True if the raw log document is a pull-up log."""
    return data.get("workoutType") == PULLUP_WORKOUT_TYPE


def workout_log_to_dict(log: WorkoutLog) -> dict[str, Any]:
    """
    Convert WorkoutLog to a store document.

    Args:
        log: WorkoutLog to convert

    Returns:
        Dict representation
    """
    data: dict[str, Any] = {
        "workoutType": log.workout_type,
        "workoutSubType": log.sub_type,
        "date": log.date,
        "goalReps": list(log.goal_reps) if log.goal_reps is not None else None,
        "doneReps": list(log.done_reps),
        "totalTime": log.total_time,
        "pullupDetails": {
            "upTime": log.up_time,
            "downTime": log.down_time,
            "tempo": list(log.tempo),
        },
    }
    if log.score_record is not None:
        data.update(score_record_to_dict(log.score_record))
    return data


def dict_to_workout_log(data: dict[str, Any]) -> WorkoutLog:
    """
    Convert a store document to WorkoutLog.

    Args:
        data: Log document (array or JSON-string encoded telemetry)

    Returns:
        WorkoutLog instance

    Raises:
        ValidationError: If data is invalid
    """
    date = data.get("date")
    if not isinstance(date, str) or not date:
        raise ValidationError(f"Invalid date: {date!r}")

    sub_type = data.get("workoutSubType") or "free"
    if sub_type not in WORKOUT_SUB_TYPES:
        raise ValidationError(
            f"Invalid workoutSubType: {sub_type}. Must be one of {WORKOUT_SUB_TYPES}"
        )

    if "doneReps" not in data:
        raise ValidationError(f"Log {date}: missing doneReps")
    done_reps = parse_int_list(data["doneReps"], "doneReps")

    goal_raw = data.get("goalReps")
    goal_reps = parse_int_list(goal_raw, "goalReps") if goal_raw is not None else None

    details = data.get("pullupDetails")
    if not isinstance(details, dict):
        raise ValidationError(f"Log {date}: missing pullupDetails")

    # Bad tempo only costs the pace bonuses; reps and timing still score.
    tempo: list[int] = []
    tempo_raw = details.get("tempo")
    if tempo_raw is not None:
        try:
            tempo = parse_int_list(tempo_raw, "tempo")
        except ValidationError as e:
            logger.warning(f"Log {date}: unreadable tempo, scoring without pace bonuses: {e}")

    total_time = data.get("totalTime")

    try:
        return WorkoutLog(
            date=date,
            done_reps=done_reps,
            up_time=validate_non_negative(details.get("upTime", 0), "upTime"),
            down_time=validate_non_negative(details.get("downTime", 0), "downTime"),
            tempo=tempo,
            sub_type=sub_type,
            workout_type=data.get("workoutType", PULLUP_WORKOUT_TYPE),
            goal_reps=goal_reps,
            total_time=validate_non_negative(total_time, "totalTime") if total_time is not None else None,
            score_record=dict_to_score_record(data),
        )
    except ValueError as e:
        raise ValidationError(f"Log {date}: {e}") from e


def dict_to_user_aggregate(user_id: str, data: dict[str, Any]) -> UserAggregate:
    """
    Read the aggregate fields of a user document.

    Fields of the wrong type are treated as missing: the user is then simply
    left out of rankings.
    """
    country = data.get("country")
    score = data.get("pullupTierScore")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        score = None
    return UserAggregate(
        user_id=user_id,
        country=country if isinstance(country, str) and country else None,
        pullup_tier_score=float(score) if score is not None else None,
    )


def region_ranking_to_dict(ranking: RegionRanking) -> dict[str, Any]:
    return {
        "country": ranking.country,
        "totalScore": ranking.total_score,
        "averageScore": ranking.average_score,
        "userCount": ranking.user_count,
    }


def ranking_snapshot_to_dict(snapshot: RankingSnapshot) -> dict[str, Any]:
    """Convert RankingSnapshot to the rankings document."""
    return {
        "rankings": [region_ranking_to_dict(r) for r in snapshot.rankings],
        "updatedAt": snapshot.updated_at,
        "algorithmVersion": snapshot.algorithm_version,
    }


def dict_to_ranking_snapshot(data: dict[str, Any]) -> RankingSnapshot:
    """
    Convert the rankings document to RankingSnapshot.

    Raises:
        ValidationError: If a ranking row is malformed
    """
    rows: list[RegionRanking] = []
    for i, row in enumerate(data.get("rankings", [])):
        try:
            rows.append(
                RegionRanking(
                    country=str(row["country"]),
                    total_score=float(row["totalScore"]),
                    average_score=float(row["averageScore"]),
                    user_count=int(row.get("userCount", 0)),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid ranking row {i}: {row!r}") from e
    return RankingSnapshot(
        rankings=rows,
        updated_at=str(data.get("updatedAt", "")),
        algorithm_version=int(data.get("algorithmVersion", 0)),
    )
