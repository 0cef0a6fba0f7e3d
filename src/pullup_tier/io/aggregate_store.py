"""
Storage for per-user aggregates and the published country ranking.

User documents are shared with other parts of the application, so every
write to ``users/{id}`` is a merge that only touches ``country`` or
``pullupTierScore``. The ranking document is always replaced whole.
"""

from typing import Iterator, Sequence

from loguru import logger

from ..core.config import (
    COUNTRY_RANKINGS_DOC,
    DEFAULT_PAGE_SIZE,
    RANKINGS_COLLECTION,
    USERS_COLLECTION,
)
from ..core.models import RankingSnapshot, UserAggregate
from .document_store import DocumentStore, get_many_chunked
from .log_store import validate_user_id
from .serializers import (
    ValidationError,
    dict_to_ranking_snapshot,
    dict_to_user_aggregate,
    ranking_snapshot_to_dict,
)


class AggregateStore:
    """Reads and writes UserAggregate documents and the ranking snapshot."""

    def __init__(self, store: DocumentStore, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.store = store
        self.page_size = page_size

    def get(self, user_id: str) -> UserAggregate | None:
        """Load one user's aggregate, or None if the user has no document."""
        data = self.store.get(USERS_COLLECTION, validate_user_id(user_id))
        if data is None:
            return None
        return dict_to_user_aggregate(user_id, data)

    def get_many(self, user_ids: Sequence[str]) -> dict[str, UserAggregate]:
        """
        Load aggregates for an explicit set of users.

        Uses id-set lookups in chunks of MAX_IDS_PER_LOOKUP; unknown ids are
        absent from the result.
        """
        for user_id in user_ids:
            validate_user_id(user_id)
        docs = get_many_chunked(self.store, USERS_COLLECTION, user_ids)
        return {i: dict_to_user_aggregate(i, d) for i, d in docs.items()}

    def set_pullup_score(self, user_id: str, score: float) -> None:
        """Merge-write pullupTierScore, leaving sibling fields untouched."""
        self.store.set(
            USERS_COLLECTION,
            validate_user_id(user_id),
            {"pullupTierScore": score},
            merge=True,
        )

    def assign_country(self, user_id: str, country: str) -> bool:
        """
        Set the user's country unless one is already assigned.

        Returns:
            True if the country was written

        Raises:
            ValidationError: If country is empty
        """
        if not isinstance(country, str) or not country.strip():
            raise ValidationError(f"Invalid country: {country!r}")

        current = self.get(user_id)
        if current is not None and current.country:
            if current.country != country:
                logger.warning(
                    f"User {user_id} already assigned to {current.country}; "
                    f"ignoring {country}"
                )
            return False

        self.store.set(USERS_COLLECTION, user_id, {"country": country}, merge=True)
        logger.info(f"User {user_id} assigned to country {country}")
        return True

    def iter_aggregates(self) -> Iterator[UserAggregate]:
        """
        Yield every user aggregate, one store page at a time.
        """
        cursor: str | None = None
        pages = 0
        while True:
            page = self.store.query(USERS_COLLECTION, limit=self.page_size, start_after=cursor)
            pages += 1
            for user_id, data in page:
                yield dict_to_user_aggregate(user_id, data)
            if len(page) < self.page_size:
                break
            cursor = page[-1][0]
        logger.debug(f"Scanned {USERS_COLLECTION} in {pages} page(s)")

    def save_ranking_snapshot(self, snapshot: RankingSnapshot) -> None:
        """Replace the ranking document in a single write."""
        self.store.set(
            RANKINGS_COLLECTION,
            COUNTRY_RANKINGS_DOC,
            ranking_snapshot_to_dict(snapshot),
            merge=False,
        )

    def load_ranking_snapshot(self) -> RankingSnapshot | None:
        """Load the last published ranking, or None if never published."""
        data = self.store.get(RANKINGS_COLLECTION, COUNTRY_RANKINGS_DOC)
        if data is None:
            return None
        return dict_to_ranking_snapshot(data)
