"""
Document store interface and an in-memory implementation.

The scoring jobs only need a small slice of a document database:
get by key, set with optional merge, ordered/limited/filtered range
queries with a cursor, and a lookup for a small set of explicit ids.
Collections are addressed by slash-joined paths such as
``users/42/workout_logs``.
"""

import copy
from typing import Any, Iterable, Protocol, Sequence

from ..core.config import MAX_IDS_PER_LOOKUP

Document = dict[str, Any]
WhereClause = tuple[str, str, Any]  # (field, op, value)

_OPS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "in": lambda a, b: a in b,
}


class StoreError(Exception):
    """Raised when the document store cannot complete an operation."""

    pass


class DocumentStore(Protocol):
    """Operations the scoring jobs require from a document store."""

    def get(self, collection: str, doc_id: str) -> Document | None: ...

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None: ...

    def query(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        start_after: Any = None,
        where: Sequence[WhereClause] | None = None,
    ) -> list[tuple[str, Document]]: ...

    def get_many(self, collection: str, doc_ids: Sequence[str]) -> dict[str, Document]: ...


def merge_fields(base: Document, update: Document) -> Document:
    """
    Merge *update* into a copy of *base*, recursing into nested maps.

    Fields absent from *update* are kept.
    """
    result = dict(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_fields(result[key], value)
        else:
            result[key] = value
    return result


def validate_collection_path(collection: str) -> list[str]:
    """
    Split and validate a collection path.

    Raises:
        StoreError: If the path is empty or has empty / relative segments
    """
    parts = collection.split("/")
    if not collection or any(p in ("", ".", "..") for p in parts):
        raise StoreError(f"Invalid collection path: {collection!r}")
    if len(parts) % 2 == 0:
        raise StoreError(f"Collection path must have an odd number of segments: {collection!r}")
    return parts


def check_lookup_size(doc_ids: Sequence[str]) -> None:
    """Reject id-set lookups larger than MAX_IDS_PER_LOOKUP."""
    if len(doc_ids) > MAX_IDS_PER_LOOKUP:
        raise StoreError(
            f"Lookup of {len(doc_ids)} ids exceeds limit of {MAX_IDS_PER_LOOKUP}; "
            "use get_many_chunked()"
        )


def run_query(
    docs: Iterable[tuple[str, Document]],
    order_by: str | None = None,
    descending: bool = False,
    limit: int | None = None,
    start_after: Any = None,
    where: Sequence[WhereClause] | None = None,
) -> list[tuple[str, Document]]:
    """
    Apply where / order / cursor / limit to (doc_id, document) pairs.

    With ``order_by=None`` documents are ordered by id. Documents missing the
    ``order_by`` field are left out. ``start_after`` is compared against the
    ordering key, so paging by id passes the last id seen.

    Raises:
        StoreError: On an unknown operator or incomparable values
    """
    rows = list(docs)

    for field_name, op, value in where or ():
        if op not in _OPS:
            raise StoreError(f"Unsupported query operator: {op!r}")
        compare = _OPS[op]
        rows = [(i, d) for i, d in rows if field_name in d and compare(d[field_name], value)]

    if order_by is None:
        def key(row: tuple[str, Document]) -> Any:
            return row[0]
    else:
        rows = [(i, d) for i, d in rows if order_by in d]

        def key(row: tuple[str, Document]) -> Any:
            return row[1][order_by]

    try:
        rows.sort(key=key, reverse=descending)
        if start_after is not None:
            if descending:
                rows = [r for r in rows if key(r) < start_after]
            else:
                rows = [r for r in rows if key(r) > start_after]
    except TypeError as e:
        raise StoreError(f"Cannot order by {order_by or '__id__'}: {e}") from e

    if limit is not None:
        rows = rows[:limit]
    return rows


def get_many_chunked(
    store: DocumentStore,
    collection: str,
    doc_ids: Sequence[str],
) -> dict[str, Document]:
    """
    Look up any number of ids by splitting them into MAX_IDS_PER_LOOKUP chunks.
    """
    found: dict[str, Document] = {}
    unique_ids = list(dict.fromkeys(doc_ids))
    for start in range(0, len(unique_ids), MAX_IDS_PER_LOOKUP):
        found.update(store.get_many(collection, unique_ids[start:start + MAX_IDS_PER_LOOKUP]))
    return found


class InMemoryDocumentStore:
    """
    Dict-backed DocumentStore.

    Documents are deep-copied on the way in and out, so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}

    def get(self, collection: str, doc_id: str) -> Document | None:
        validate_collection_path(collection)
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        validate_collection_path(collection)
        docs = self._collections.setdefault(collection, {})
        existing = docs.get(doc_id)
        if merge and existing is not None:
            docs[doc_id] = merge_fields(existing, copy.deepcopy(data))
        else:
            docs[doc_id] = copy.deepcopy(data)

    def query(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        start_after: Any = None,
        where: Sequence[WhereClause] | None = None,
    ) -> list[tuple[str, Document]]:
        validate_collection_path(collection)
        rows = run_query(
            self._collections.get(collection, {}).items(),
            order_by=order_by,
            descending=descending,
            limit=limit,
            start_after=start_after,
            where=where,
        )
        return [(doc_id, copy.deepcopy(doc)) for doc_id, doc in rows]

    def get_many(self, collection: str, doc_ids: Sequence[str]) -> dict[str, Document]:
        validate_collection_path(collection)
        check_lookup_size(doc_ids)
        docs = self._collections.get(collection, {})
        return {i: copy.deepcopy(docs[i]) for i in doc_ids if i in docs}
