"""
Tests for meal reconciliation against (family_id, date, meal_type).
"""

import asyncio
import json

from famops.dates import week_dates
from famops.generation.fallback import fallback_meal_plan
from famops.reconcile.meals import ingredient_names, meal_fields, reconcile_meals

DATES = week_dates("2025-01-06")


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


class TestReconcile:
    def test_first_run_creates_everything(self, store):
        plan = fallback_meal_plan(DATES)
        result = _run(reconcile_meals(store, "fam", DATES, plan.days))

        assert (result.created, result.updated) == (21, 0)
        assert len(store.rows("meals")) == 21

    def test_rerun_is_idempotent(self, store):
        plan = fallback_meal_plan(DATES)
        _run(reconcile_meals(store, "fam", DATES, plan.days))
        ids = {m["id"] for m in store.rows("meals")}

        result = _run(reconcile_meals(store, "fam", DATES, plan.days))

        assert (result.created, result.updated) == (0, 21)
        assert {m["id"] for m in store.rows("meals")} == ids

    def test_existing_rows_are_patched(self, store):
        store.seed(
            "meals",
            [{"id": "m1", "family_id": "fam", "date": DATES[0], "meal_type": "dinner", "recipe_title": "Old"}],
        )
        plan = fallback_meal_plan(DATES)
        result = _run(reconcile_meals(store, "fam", DATES, plan.days))

        assert (result.created, result.updated) == (20, 1)
        patched = next(m for m in store.rows("meals") if m["id"] == "m1")
        assert patched["recipe_title"] == "Spaghetti Bolognese"

    def test_unmentioned_meals_left_alone(self, store):
        store.seed(
            "meals",
            [
                {"id": "snack", "family_id": "fam", "date": DATES[0], "meal_type": "snack", "recipe_title": "Chips"},
                {"id": "other", "family_id": "other", "date": DATES[0], "meal_type": "dinner", "recipe_title": "Theirs"},
            ],
        )
        _run(reconcile_meals(store, "fam", DATES, fallback_meal_plan(DATES).days))

        rows = {m["id"]: m for m in store.rows("meals")}
        assert rows["snack"]["recipe_title"] == "Chips"
        assert rows["other"]["recipe_title"] == "Theirs"

    def test_out_of_range_days_and_unknown_types_skipped(self, store):
        days = [
            {"date": "2024-12-31", "meals": [{"meal_type": "dinner", "recipe_title": "NYE"}]},
            {"date": DATES[1], "meals": [{"meal_type": "brunch", "recipe_title": "?"}, {"meal_type": "Lunch"}]},
        ]
        result = _run(reconcile_meals(store, "fam", DATES, days))

        assert (result.created, result.updated) == (1, 0)
        created = store.rows("meals")[0]
        assert (created["date"], created["meal_type"], created["recipe_title"]) == (DATES[1], "lunch", "Meal")


class TestFields:
    def test_meal_fields(self):
        fields = meal_fields({"recipe_title": "Tacos", "ingredients": [{"name": "Beef"}], "instructions": ""})
        assert fields == {"recipe_title": "Tacos", "ingredients_json": '[{"name": "Beef"}]', "instructions": None}

    def test_ingredient_names_from_objects_and_strings(self):
        assert ingredient_names({"ingredients_json": json.dumps([{"name": "Beef"}, "Salt", " ", None])}) == [
            "Beef",
            "Salt",
        ]

    def test_ingredient_names_bad_json(self):
        assert ingredient_names({"ingredients_json": "not json"}) == []
        assert ingredient_names({}) == []
