"""
Famops - Meal reconciliation.

Generated meals are upserted against the business key
(family_id, date, meal_type). Existing rows are patched in place, missing
ones are created, and rows the new generation does not mention are left
alone. Re-running the same reconciliation creates nothing new.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from famops.db.adapter import RecordStore
from famops.db.ids import new_id
from famops.generation.schemas import MEAL_TYPES, DayPlan

logger = logging.getLogger(__name__)

MEALS_TABLE = "meals"


@dataclass
class ReconcileResult:
    created: int = 0
    updated: int = 0


def _plain(value: Any) -> Any:
    return value.model_dump() if hasattr(value, "model_dump") else value


def meal_key(date: str, meal_type: str) -> str:
    return f"{date}|{meal_type}"


def meal_fields(meal: dict[str, Any]) -> dict[str, Any]:
    """Stored columns for one generated meal."""
    ingredients = meal.get("ingredients")
    instructions = meal.get("instructions")
    return {
        "recipe_title": str(meal.get("recipe_title") or "Meal"),
        "ingredients_json": json.dumps([_plain(i) for i in ingredients] if isinstance(ingredients, list) else []),
        "instructions": str(instructions) if instructions else None,
    }


async def reconcile_meals(
    store: RecordStore,
    family_id: str,
    dates: list[str],
    days: list[DayPlan] | list[dict[str, Any]],
) -> ReconcileResult:
    """
    Upsert generated meals for the given dates.

    Days outside `dates` and unrecognized meal types are skipped. A match on
    (date, meal_type) counts as updated even when nothing changed; only
    differing columns are written.
    """
    existing = await store.list(MEALS_TABLE, {"family_id": family_id, "date": {"in": dates}})
    by_key: dict[str, dict[str, Any]] = {meal_key(m["date"], m["meal_type"]): m for m in existing}
    wanted_dates = set(dates)

    result = ReconcileResult()
    for raw_day in days:
        day = _plain(raw_day)
        if not isinstance(day, dict) or day.get("date") not in wanted_dates or not isinstance(day.get("meals"), list):
            continue

        for raw_meal in day["meals"]:
            meal = _plain(raw_meal)
            meal_type = str(meal.get("meal_type") or "").lower()
            if meal_type not in MEAL_TYPES:
                logger.debug(f"Skipping unknown meal type '{meal_type}' on {day['date']}")
                continue

            key = meal_key(day["date"], meal_type)
            fields = meal_fields(meal)
            found = by_key.get(key)

            if found:
                patch = {k: v for k, v in fields.items() if found.get(k) != v}
                if patch:
                    by_key[key] = await store.update(MEALS_TABLE, found["id"], patch)
                result.updated += 1
            else:
                by_key[key] = await store.create(
                    MEALS_TABLE,
                    {
                        "id": new_id("meal"),
                        "family_id": family_id,
                        "date": day["date"],
                        "meal_type": meal_type,
                        **fields,
                    },
                )
                result.created += 1

    logger.info(f"Reconciled meals for family {family_id}: {result.created} created, {result.updated} updated")
    return result


def ingredient_names(meal: dict[str, Any]) -> list[str]:
    """
    Ingredient names of a stored meal.

    `ingredients_json` holds either plain strings or {name, qty, category}
    objects depending on how the meal was created.
    """
    try:
        parsed = json.loads(meal.get("ingredients_json") or "[]")
    except (TypeError, json.JSONDecodeError):
        return []
    if not isinstance(parsed, list):
        return []

    names = []
    for entry in parsed:
        name = entry.get("name") if isinstance(entry, dict) else entry
        if name is not None and str(name).strip():
            names.append(str(name).strip())
    return names
