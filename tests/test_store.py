"""
Tests for the record stores and where-filter translation.
"""

import asyncio

import pytest

from famops.db.client import SupabaseStore
from famops.db.filters import FilterClause, apply_filter, matches, to_filters
from famops.errors import NotFoundError


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


class TestFilters:
    def test_plain_values_are_equality(self):
        assert to_filters({"routine_id": "r1"}) == [FilterClause(field="routine_id", op="=", value="r1")]

    def test_operator_dicts(self):
        clauses = to_filters({"date": {"gte": "2025-01-01", "lte": "2025-01-31"}, "id": {"startswith": "tasklog_"}})
        assert [(c.field, c.op, c.value) for c in clauses] == [
            ("date", ">=", "2025-01-01"),
            ("date", "<=", "2025-01-31"),
            ("id", "like", "tasklog_%"),
        ]

    def test_unknown_operator(self):
        with pytest.raises(ValueError, match="Unknown filter operator"):
            to_filters({"date": {"between": [1, 2]}})

    def test_loose_equality_across_types(self):
        assert matches({"task_index": "3"}, FilterClause(field="task_index", op="=", value=3))
        assert matches({"task_index": 3}, FilterClause(field="task_index", op="in", value=["1", "3"]))
        assert not matches({"task_index": None}, FilterClause(field="task_index", op="=", value="None"))

    def test_like_patterns(self):
        assert matches({"id": "tasklog_r1_0"}, FilterClause(field="id", op="like", value="tasklog_%"))
        assert not matches({"id": "TASKLOG_r1"}, FilterClause(field="id", op="like", value="tasklog_%"))
        assert matches({"id": "TASKLOG_r1"}, FilterClause(field="id", op="ilike", value="tasklog_%"))

    def test_comparisons_skip_missing_values(self):
        assert not matches({}, FilterClause(field="date", op=">", value="2025-01-01"))


class TestMemoryStore:
    def test_crud(self, store):
        created = _run(store.create("routines", {"title": "Morning"}))
        assert created["id"].startswith("routine_")
        assert "created_at" in created

        updated = _run(store.update("routines", created["id"], {"title": "Evening"}))
        assert updated["title"] == "Evening"

        assert _run(store.delete("routines", created["id"])) is True
        assert _run(store.delete("routines", created["id"])) is False

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            _run(store.update("routines", "nope", {"title": "x"}))

    def test_returned_records_are_copies(self, store):
        created = _run(store.create("routines", {"title": "Morning"}))
        created["title"] = "mutated"
        assert store.rows("routines")[0]["title"] == "Morning"

    def test_order_and_limit(self, store):
        store.seed("items", [{"id": "a", "position": 2}, {"id": "b", "position": None}, {"id": "c", "position": 1}])
        ordered = _run(store.list("items", order_by="position"))
        assert [r["id"] for r in ordered] == ["b", "c", "a"]

        newest = _run(store.list("items", order_by="position", desc=True, limit=1))
        assert [r["id"] for r in newest] == ["a"]

    def test_created_at_strictly_increases(self, store):
        first = _run(store.create("lists", {"title": "a"}))
        second = _run(store.create("lists", {"title": "b"}))
        assert second["created_at"] > first["created_at"]

    def test_delete_many(self, store):
        store.seed("logs", [{"routine_id": "r1"}, {"routine_id": "r1"}, {"routine_id": "r2"}])
        assert _run(store.delete_many("logs", {"routine_id": "r1"})) == 2
        assert len(store.rows("logs")) == 1

    def test_delete_many_refuses_empty_filter(self, store):
        with pytest.raises(ValueError):
            _run(store.delete_many("logs", {}))


class TestSupabaseStore:
    def test_list_builds_query(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value.data = [{"id": "m1"}]

        found = _run(
            SupabaseStore(mock_supabase).list(
                "meals", {"family_id": "fam", "date": {"in": ("a", "b")}}, order_by="date", desc=True, limit=5
            )
        )

        assert found == [{"id": "m1"}]
        mock_supabase.table.assert_called_with("meals")
        table.select.assert_called_with("*")
        table.eq.assert_called_with("family_id", "fam")
        table.in_.assert_called_with("date", ["a", "b"])
        table.order.assert_called_with("date", desc=True)
        table.limit.assert_called_with(5)

    def test_create_returns_stored_row(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value.data = [{"id": "x", "title": "T", "created_at": "now"}]

        created = _run(SupabaseStore(mock_supabase).create("lists", {"id": "x", "title": "T"}))

        assert created["created_at"] == "now"
        table.insert.assert_called_with({"id": "x", "title": "T"})

    def test_update_missing_row(self, mock_supabase):
        with pytest.raises(NotFoundError):
            _run(SupabaseStore(mock_supabase).update("lists", "x", {"title": "T"}))

    def test_delete_many_applies_filters(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value.data = [{"id": 1}, {"id": 2}]

        count = _run(SupabaseStore(mock_supabase).delete_many("routine_logs", {"routine_id": "r1", "date": "d"}))

        assert count == 2
        table.delete.assert_called_once()
        assert table.eq.call_count == 2

    def test_delete_many_refuses_empty_filter(self, mock_supabase):
        with pytest.raises(ValueError):
            _run(SupabaseStore(mock_supabase).delete_many("routine_logs", {}))
        mock_supabase.table.assert_not_called()

    def test_apply_filter_is_null(self, mock_supabase):
        query = mock_supabase.table.return_value
        apply_filter(query, FilterClause(field="category", op="is_null"))
        query.is_.assert_called_with("category", "null")
