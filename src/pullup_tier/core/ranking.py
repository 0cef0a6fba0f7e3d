"""
Country ranking computed from per-user aggregates.

Users without a country or without a real score (missing or the unscored
sentinel) are left out. Rows are ordered by total score descending, then
by country name so equal totals always publish in the same order.
"""

from datetime import datetime, timezone
from typing import Iterable

from .config import TIER_LOGIC_VERSION
from .models import RankingSnapshot, RegionRanking, UserAggregate


def compute_country_rankings(aggregates: Iterable[UserAggregate]) -> list[RegionRanking]:
    """
    Sum and average pull-up tier scores per country.

    Args:
        aggregates: All user aggregates (any order)

    Returns:
        Sorted list of RegionRanking; empty if no user is ranked
    """
    totals: dict[str, float] = {}
    counts: dict[str, int] = {}

    for aggregate in aggregates:
        if not aggregate.is_ranked:
            continue
        country = aggregate.country
        totals[country] = totals.get(country, 0.0) + aggregate.pullup_tier_score
        counts[country] = counts.get(country, 0) + 1

    rankings = [
        RegionRanking(
            country=country,
            total_score=total,
            average_score=total / counts[country],
            user_count=counts[country],
        )
        for country, total in totals.items()
    ]
    rankings.sort(key=lambda r: (-r.total_score, r.country))
    return rankings


def build_ranking_snapshot(
    aggregates: Iterable[UserAggregate],
    now: datetime | None = None,
) -> RankingSnapshot:
    """Compute rankings and stamp them with the time and logic version."""
    now = now or datetime.now(timezone.utc)
    return RankingSnapshot(
        rankings=compute_country_rankings(aggregates),
        updated_at=now.isoformat(),
        algorithm_version=TIER_LOGIC_VERSION,
    )
