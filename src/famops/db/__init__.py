"""
Famops - Record store access.

get_store() returns the configured RecordStore backend.
"""

from famops.db.adapter import RecordStore
from famops.db.filters import FilterClause, to_filters
from famops.db.ids import new_id
from famops.db.memory import MemoryStore

_store: RecordStore | None = None


def get_store() -> RecordStore:
    """
    Get the process-wide store for the configured backend.

    STORE_BACKEND=memory gives a fresh MemoryStore; anything else uses Supabase.
    """
    global _store

    if _store is None:
        from famops.config import settings

        if settings.store_backend == "memory":
            _store = MemoryStore()
        else:
            from famops.db.client import SupabaseStore

            _store = SupabaseStore()

    return _store


def set_store(store: RecordStore | None) -> None:
    """Replace the process-wide store (tests, demo seeding)."""
    global _store
    _store = store


__all__ = [
    "FilterClause",
    "MemoryStore",
    "RecordStore",
    "get_store",
    "new_id",
    "set_store",
    "to_filters",
]
