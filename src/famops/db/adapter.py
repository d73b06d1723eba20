"""
Record Store Protocol.

The generic persistence contract the core depends on: collections addressed
by name, `where`-filtered listing, single-record create/update/delete and a
filtered bulk delete. Operations are individually atomic; nothing spans more
than one call, so composite operations must be safe to re-run.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RecordStore(Protocol):
    """
    Async record store.

    Implementations: SupabaseStore (famops.db.client) and MemoryStore
    (famops.db.memory).
    """

    async def list(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        *,
        order_by: str | None = None,
        desc: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return matching records, optionally ordered and limited."""
        ...

    async def create(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it as stored."""
        ...

    async def update(self, table: str, record_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """
        Patch a record by id and return it.

        Raises NotFoundError when no record has that id.
        """
        ...

    async def delete(self, table: str, record_id: str) -> bool:
        """Delete a record by id. Returns False if it did not exist."""
        ...

    async def delete_many(self, table: str, where: dict[str, Any]) -> int:
        """Delete every matching record and return the count."""
        ...
