"""
Famops - In-memory Store.

RecordStore held in process memory. Used by the CLI demo mode, local
development (STORE_BACKEND=memory) and the test suite.
"""

import copy
from datetime import UTC, datetime, timedelta
from typing import Any

from famops.db.filters import matches_all, to_filters
from famops.db.ids import new_id
from famops.errors import NotFoundError


class MemoryStore:
    """RecordStore backed by a dict of tables."""

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}
        self._last_created: datetime | None = None
        for table, records in (tables or {}).items():
            self.seed(table, records)

    # -------------------------------------------------------------------------
    # Helpers outside the RecordStore contract
    # -------------------------------------------------------------------------

    def seed(self, table: str, records: list[dict[str, Any]]) -> None:
        """Insert records synchronously, keeping any ids they carry."""
        for record in records:
            self._insert(table, record)

    def rows(self, table: str) -> list[dict[str, Any]]:
        """Snapshot of every record in a table, in insertion order."""
        return [copy.deepcopy(r) for r in self._tables.get(table, {}).values()]

    def _next_timestamp(self) -> str:
        # Strictly increasing so ordering by created_at is deterministic
        now = datetime.now(UTC)
        if self._last_created is not None and now <= self._last_created:
            now = self._last_created + timedelta(microseconds=1)
        self._last_created = now
        return now.isoformat()

    def _insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(record)
        stored.setdefault("id", new_id(table.rstrip("s")))
        stored.setdefault("created_at", self._next_timestamp())
        self._tables.setdefault(table, {})[stored["id"]] = stored
        return copy.deepcopy(stored)

    # -------------------------------------------------------------------------
    # RecordStore
    # -------------------------------------------------------------------------

    async def list(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        *,
        order_by: str | None = None,
        desc: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        clauses = to_filters(where)
        found = [r for r in self._tables.get(table, {}).values() if matches_all(r, clauses)]

        if order_by:
            # None sorts first ascending, last descending
            found.sort(
                key=lambda r: (r.get(order_by) is not None, r.get(order_by) if r.get(order_by) is not None else 0),
                reverse=desc,
            )

        if limit:
            found = found[:limit]

        return [copy.deepcopy(r) for r in found]

    async def create(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        return self._insert(table, record)

    async def update(self, table: str, record_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        existing = self._tables.get(table, {}).get(record_id)
        if existing is None:
            raise NotFoundError(f"{table} record '{record_id}' not found")
        existing.update(copy.deepcopy(patch))
        return copy.deepcopy(existing)

    async def delete(self, table: str, record_id: str) -> bool:
        return self._tables.get(table, {}).pop(record_id, None) is not None

    async def delete_many(self, table: str, where: dict[str, Any]) -> int:
        clauses = to_filters(where)
        if not clauses:
            raise ValueError(f"Cannot delete from '{table}' with empty filters")
        doomed = [rid for rid, r in self._tables.get(table, {}).items() if matches_all(r, clauses)]
        for rid in doomed:
            del self._tables[table][rid]
        return len(doomed)
