"""
Record Store — owner-scoped table-like collections.

Updated by: directive execution, roadmap apply, manual creation
Queried by: reconciliation, assistant context, API listings

Behavioral Contract:
- Every row belongs to exactly one owner (user_id); reads and writes never
  cross owners.
- Batch inserts are all-or-nothing.
- Unknown ids and unknown collections raise StoreError.
"""

import copy
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import uuid4

COLLECTIONS = (
    "tasks",
    "transactions",
    "projects",
    "missions",
    "notes",
    "documents",
    "import_history",
)


class StoreError(Exception):
    """Raised when a store operation cannot be completed."""
    pass


class RecordStore:
    """
    In-memory record store for the prototype.
    Production would sit on a hosted Postgres with row-level security.
    """

    def __init__(self, collections: Tuple[str, ...] = COLLECTIONS):
        self._tables: Dict[str, Dict[str, dict]] = {name: {} for name in collections}
        self._lock = threading.Lock()

    def _table(self, collection: str) -> Dict[str, dict]:
        table = self._tables.get(collection)
        if table is None:
            raise StoreError(f"Unknown collection: {collection}")
        return table

    def _owned(self, collection: str, record_id: str, owner_id: str) -> dict:
        row = self._table(collection).get(record_id)
        if row is None or row.get("user_id") != owner_id:
            raise StoreError(f"{collection} row not found: {record_id}")
        return row

    def insert(
        self,
        collection: str,
        rows: Union[dict, List[dict]],
        owner_id: str,
    ) -> List[dict]:
        """Insert one row or a batch. Returns the stored rows."""
        batch = [rows] if isinstance(rows, dict) else list(rows)
        now = datetime.utcnow()
        created = []
        with self._lock:
            table = self._table(collection)
            for row in batch:
                record = copy.deepcopy(row)
                record.setdefault("id", uuid4().hex)
                if record["id"] in table:
                    raise StoreError(f"Duplicate id in {collection}: {record['id']}")
                record["user_id"] = owner_id
                record.setdefault("created_at", now)
                record.setdefault("updated_at", now)
                created.append(record)
            for record in created:
                table[record["id"]] = record
        return [copy.deepcopy(r) for r in created]

    def get(self, collection: str, record_id: str, owner_id: str) -> dict:
        """Get a single row by id."""
        with self._lock:
            return copy.deepcopy(self._owned(collection, record_id, owner_id))

    def update(
        self,
        collection: str,
        record_id: str,
        partial: dict,
        owner_id: str,
    ) -> dict:
        """Apply a partial update to one row. Last write wins."""
        with self._lock:
            row = self._owned(collection, record_id, owner_id)
            changes = {k: v for k, v in partial.items() if k not in ("id", "user_id")}
            row.update(copy.deepcopy(changes))
            if "updated_at" not in changes:
                row["updated_at"] = datetime.utcnow()
            return copy.deepcopy(row)

    def delete(self, collection: str, record_id: str, owner_id: str) -> None:
        """Delete one row."""
        with self._lock:
            self._owned(collection, record_id, owner_id)
            del self._tables[collection][record_id]

    def select(
        self,
        collection: str,
        owner_id: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Select rows by equality filters, optionally ordered and limited."""
        filters = filters or {}
        with self._lock:
            rows = [
                r for r in self._table(collection).values()
                if r.get("user_id") == owner_id
                and all(r.get(k) == v for k, v in filters.items())
            ]
            if order_by:
                # Nulls sort last ascending, first descending
                def sort_key(row: dict) -> tuple:
                    value = row.get(order_by)
                    return (value is None, value if value is not None else 0)

                rows.sort(key=sort_key, reverse=descending)
            if limit is not None:
                rows = rows[:limit]
            return [copy.deepcopy(r) for r in rows]

    def count(self, collection: str, owner_id: str) -> int:
        return len(self.select(collection, owner_id))


class QueryCache:
    """
    Cached collection reads, keyed by (collection, owner, filters).
    Writers invalidate whole collections so dependent views refetch.

    Each collection carries a generation bumped on invalidation. A read that
    raced with an invalidation returns its rows but does not cache them.
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self._entries: Dict[tuple, List[dict]] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def _key(self, collection: str, owner_id: str, filters: Dict[str, Any]) -> tuple:
        return (collection, owner_id, tuple(sorted(filters.items())))

    def select(
        self,
        collection: str,
        owner_id: str,
        order_by: Optional[str] = None,
        **filters: Any,
    ) -> List[dict]:
        key = self._key(collection, owner_id, filters) + (order_by,)
        with self._lock:
            if key in self._entries:
                return copy.deepcopy(self._entries[key])
            generation = self._generations.get(collection, 0)

        rows = self.store.select(collection, owner_id, filters=filters, order_by=order_by)

        with self._lock:
            if self._generations.get(collection, 0) == generation:
                self._entries[key] = rows
        return copy.deepcopy(rows)

    def is_cached(self, collection: str) -> bool:
        with self._lock:
            return any(k[0] == collection for k in self._entries)

    def invalidate(self, collection: str) -> None:
        """Drop every cached read of a collection."""
        with self._lock:
            self._generations[collection] = self._generations.get(collection, 0) + 1
            for key in [k for k in self._entries if k[0] == collection]:
                del self._entries[key]
