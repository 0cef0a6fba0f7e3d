"""
Store-bound jobs: the per-user score trigger and the ranking pass.

update_user_score runs whenever a user's workout logs change.
update_country_rankings runs on a schedule (see scheduler.py). The two
never call each other; they only meet through the stored user aggregates.
"""

from typing import Iterable

from loguru import logger

from .core.aggregation import aggregate_pullup_logs
from .core.config import DEFAULT_PAGE_SIZE, TIER_LOGIC_VERSION
from .core.models import AggregationResult, RankingSnapshot, WorkoutLog
from .core.ranking import build_ranking_snapshot
from .io.aggregate_store import AggregateStore
from .io.document_store import Document, DocumentStore
from .io.log_store import WorkoutLogStore
from .io.serializers import ValidationError, dict_to_workout_log, is_pullup_document


def parse_pullup_logs(user_id: str, raw_logs: Iterable[Document]) -> list[WorkoutLog]:
    """
    Parse the pull-up documents of a log snapshot.

    Non-pull-up documents are skipped without parsing. Malformed pull-up
    documents are skipped with a warning instead of failing the trigger.
    """
    logs: list[WorkoutLog] = []
    for data in raw_logs:
        if not is_pullup_document(data):
            continue
        try:
            logs.append(dict_to_workout_log(data))
        except ValidationError as e:
            logger.warning(f"User {user_id}: skipping malformed pull-up log: {e}")
    return logs


def update_user_score(
    store: DocumentStore,
    user_id: str,
    raw_logs: Iterable[Document] | None = None,
    current_version: int = TIER_LOGIC_VERSION,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> AggregationResult:
    """
    Recompute and persist a user's pull-up tier score.

    Args:
        store: Document store
        user_id: User whose logs changed
        raw_logs: Current log snapshot as delivered by the change event;
            loaded from the store when None
        current_version: Deployed tier logic version
        page_size: Page size used when loading logs

    Returns:
        The AggregationResult that was persisted

    Raises:
        StoreError: If reading or writing the store fails; the stored
            aggregate is then unchanged
    """
    log_store = WorkoutLogStore(store, page_size=page_size)
    if raw_logs is None:
        raw_logs = log_store.load_raw_logs(user_id)

    logs = parse_pullup_logs(user_id, raw_logs)
    result = aggregate_pullup_logs(logs, current_version)

    AggregateStore(store, page_size=page_size).set_pullup_score(user_id, result.pullup_tier_score)
    log_store.save_score_records(user_id, result.recomputed)

    if result.is_unscored:
        logger.info(f"User {user_id}: no scoreable pull-up logs, marked unscored")
    else:
        logger.info(
            f"User {user_id}: pullupTierScore={result.pullup_tier_score:.2f} "
            f"from {result.scored_count} log(s), {len(result.recomputed)} rescored, "
            f"{result.excluded_count} excluded"
        )
    return result


def make_log_store(store: DocumentStore, page_size: int = DEFAULT_PAGE_SIZE) -> WorkoutLogStore:
    """WorkoutLogStore whose appends trigger update_user_score."""
    return WorkoutLogStore(
        store,
        on_change=lambda user_id: update_user_score(store, user_id, page_size=page_size),
        page_size=page_size,
    )


def update_country_rankings(
    store: DocumentStore,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> RankingSnapshot:
    """
    Rebuild and publish the country ranking.

    The whole user collection is scanned page by page and the ranking is
    computed in memory before the single replacing write, so a failure at
    any point leaves the previously published snapshot in place.

    Raises:
        StoreError: If the scan or the write fails
    """
    aggregates = AggregateStore(store, page_size=page_size)
    snapshot = build_ranking_snapshot(aggregates.iter_aggregates())
    aggregates.save_ranking_snapshot(snapshot)
    logger.info(f"Country rankings updated: {len(snapshot.rankings)} countries")
    return snapshot
