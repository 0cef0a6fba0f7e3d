"""
JSON-file backed document store.

Each collection is one JSON object file mapping document ids to documents:
``users`` -> ``<data_dir>/users.json``,
``users/42/workout_logs`` -> ``<data_dir>/users/42/workout_logs.json``.

Writes go to a temporary file in the same directory followed by
``os.replace``, so a reader never sees a half-written collection and an
interrupted write leaves the previous file in place.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Sequence

from loguru import logger

from .document_store import (
    Document,
    StoreError,
    WhereClause,
    check_lookup_size,
    merge_fields,
    run_query,
    validate_collection_path,
)


class JsonFileDocumentStore:
    """
    DocumentStore persisted as JSON files under a data directory.

    Read-modify-write cycles are serialised by a per-store lock; separate
    processes writing the same collection are not coordinated.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Root directory for collection files (created on first write)
        """
        self.data_dir = Path(data_dir)
        self._lock = threading.RLock()

    def collection_path(self, collection: str) -> Path:
        """Path of the JSON file backing a collection."""
        parts = validate_collection_path(collection)
        return self.data_dir.joinpath(*parts[:-1], f"{parts[-1]}.json")

    def _read_collection(self, collection: str) -> dict[str, Document]:
        path = self.collection_path(collection)
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt collection file {path}: {e}") from e
        except OSError as e:
            raise StoreError(f"Cannot read {path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Corrupt collection file {path}: expected an object")
        return data

    def _write_collection(self, collection: str, docs: dict[str, Document]) -> None:
        path = self.collection_path(collection)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(docs, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Cannot write {path}: {e}") from e
        logger.debug(f"Wrote {len(docs)} documents to {path}")

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            return self._read_collection(collection).get(doc_id)

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        with self._lock:
            docs = self._read_collection(collection)
            existing = docs.get(doc_id)
            if merge and existing is not None:
                docs[doc_id] = merge_fields(existing, data)
            else:
                docs[doc_id] = data
            self._write_collection(collection, docs)

    def query(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        start_after: Any = None,
        where: Sequence[WhereClause] | None = None,
    ) -> list[tuple[str, Document]]:
        with self._lock:
            docs = self._read_collection(collection)
        return run_query(
            docs.items(),
            order_by=order_by,
            descending=descending,
            limit=limit,
            start_after=start_after,
            where=where,
        )

    def get_many(self, collection: str, doc_ids: Sequence[str]) -> dict[str, Document]:
        check_lookup_size(doc_ids)
        with self._lock:
            docs = self._read_collection(collection)
        return {i: docs[i] for i in doc_ids if i in docs}
