"""
Famops - Supabase Store.

Low-level database access for deployed environments. All queries go
through the PostgREST builder exposed by the supabase client.
"""

import logging
from typing import Any

from supabase import Client, create_client

from famops.config import settings
from famops.db.filters import apply_filter, to_filters
from famops.errors import NotFoundError

logger = logging.getLogger(__name__)

# Singleton client instance
_client: Client | None = None


def get_client() -> Client:
    """
    Get the Supabase client.

    Uses singleton pattern to reuse connection.
    """
    global _client

    if _client is None:
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be set for the supabase backend")
        _client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _client


class SupabaseStore:
    """RecordStore backed by Supabase tables."""

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    async def list(
        self,
        table: str,
        where: dict[str, Any] | None = None,
        *,
        order_by: str | None = None,
        desc: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query = self.client.table(table).select("*")

        for f in to_filters(where):
            query = apply_filter(query, f)

        if order_by:
            query = query.order(order_by, desc=desc)

        if limit:
            query = query.limit(limit)

        result = query.execute()
        return result.data or []

    async def create(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        result = self.client.table(table).insert(record).execute()
        return result.data[0] if result.data else dict(record)

    async def update(self, table: str, record_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        result = self.client.table(table).update(patch).eq("id", record_id).execute()
        if not result.data:
            raise NotFoundError(f"{table} record '{record_id}' not found")
        return result.data[0]

    async def delete(self, table: str, record_id: str) -> bool:
        result = self.client.table(table).delete().eq("id", record_id).execute()
        return bool(result.data)

    async def delete_many(self, table: str, where: dict[str, Any]) -> int:
        filters = to_filters(where)
        # An empty filter would be a DELETE with no WHERE clause
        if not filters:
            raise ValueError(f"Cannot delete from '{table}' with empty filters")

        query = self.client.table(table).delete()
        for f in filters:
            query = apply_filter(query, f)

        result = query.execute()
        return len(result.data or [])
