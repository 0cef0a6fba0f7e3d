"""
Per-user workout log storage.

Each log is its own document under ``users/{user_id}/workout_logs``, keyed
by its date. Logs are appended, never rewritten as a whole collection; the
only in-place update is attaching a refreshed score record.
"""

from typing import Any, Callable

from loguru import logger

from ..core.config import DEFAULT_PAGE_SIZE, USERS_COLLECTION, WORKOUT_LOGS_SUBCOLLECTION
from ..core.models import ScoreRecord, WorkoutLog
from .document_store import Document, DocumentStore
from .serializers import ValidationError, score_record_to_dict, workout_log_to_dict

LogsChangedHandler = Callable[[str], Any]


def validate_user_id(user_id: str) -> str:
    """
    Validate a user id usable as a document key.

    Raises:
        ValidationError: If the id is empty or contains '/'
    """
    if not isinstance(user_id, str) or not user_id.strip() or "/" in user_id:
        raise ValidationError(f"Invalid user id: {user_id!r}")
    return user_id


def logs_collection(user_id: str) -> str:
    """Collection path holding a user's workout logs."""
    return f"{USERS_COLLECTION}/{validate_user_id(user_id)}/{WORKOUT_LOGS_SUBCOLLECTION}"


class WorkoutLogStore:
    """
    Append-only workout log collection per user.

    ``on_change`` is called with the user id after every successful append;
    it plays the role of the document-change trigger.
    """

    def __init__(
        self,
        store: DocumentStore,
        on_change: LogsChangedHandler | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.store = store
        self.on_change = on_change
        self.page_size = page_size

    def append_log(self, user_id: str, log: WorkoutLog) -> bool:
        """
        Store a new log and fire the change handler.

        Re-delivering a log identical to the stored one is a no-op, so a
        retried append is safe.

        Args:
            user_id: Owner of the log
            log: Log to store

        Returns:
            True if the log was written, False if it was already present

        Raises:
            ValidationError: If a different log already uses the same date
        """
        collection = logs_collection(user_id)
        data = workout_log_to_dict(log)
        existing = self.store.get(collection, log.date)

        if existing is not None:
            comparable = {k: v for k, v in existing.items() if k not in ("score", "scoreVersion")}
            incoming = {k: v for k, v in data.items() if k not in ("score", "scoreVersion")}
            if comparable == incoming:
                logger.debug(f"User {user_id}: log {log.date} already stored")
                return False
            raise ValidationError(
                f"User {user_id} already has a different log for {log.date}"
            )

        self.store.set(collection, log.date, data)
        logger.info(f"User {user_id}: appended {log.workout_type} log {log.date}")

        if self.on_change is not None:
            self.on_change(user_id)
        return True

    def load_raw_logs(self, user_id: str) -> list[Document]:
        """
        Load all raw log documents of a user, ordered by date.

        Pages through the collection so store result limits never truncate
        the history.
        """
        collection = logs_collection(user_id)
        docs: list[Document] = []
        cursor: str | None = None
        while True:
            page = self.store.query(collection, limit=self.page_size, start_after=cursor)
            docs.extend(doc for _, doc in page)
            if len(page) < self.page_size:
                break
            cursor = page[-1][0]
        return docs

    def save_score_records(self, user_id: str, records: dict[str, ScoreRecord]) -> None:
        """
        Attach refreshed score records to their log documents (merge write).

        Args:
            user_id: Owner of the logs
            records: Log date -> fresh ScoreRecord
        """
        collection = logs_collection(user_id)
        for date, record in records.items():
            self.store.set(collection, date, score_record_to_dict(record), merge=True)
        if records:
            logger.debug(f"User {user_id}: stored {len(records)} refreshed score records")
