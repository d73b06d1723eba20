"""
Famops - Generated content schemas.

Generated content arrives as free-form text from the model. It is parsed
and validated into a tagged result, `Valid(content)` or `Invalid(reason)`,
so callers branch on the result rather than catching exceptions.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

GROCERY_CATEGORIES = ("Produce", "Dairy", "Meat", "Pantry", "Frozen", "Bakery", "Beverages", "Other")
PACKING_CATEGORIES = ("Clothes", "Toiletries", "Health", "Electronics", "Documents", "Misc")
MEAL_TYPES = ("breakfast", "lunch", "dinner")

GroceryCategory = Literal["Produce", "Dairy", "Meat", "Pantry", "Frozen", "Bakery", "Beverages", "Other"]
PackingCategory = Literal["Clothes", "Toiletries", "Health", "Electronics", "Documents", "Misc"]
MealType = Literal["breakfast", "lunch", "dinner"]
GenerationKind = Literal["meal_plan", "packing_list"]


# =============================================================================
# Content models
# =============================================================================


class Ingredient(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    qty: str = Field(min_length=1)
    category: GroceryCategory


class Meal(BaseModel):
    model_config = ConfigDict(extra="ignore")

    meal_type: MealType
    recipe_title: str = Field(min_length=1)
    ingredients: list[Ingredient] = Field(min_length=1)
    instructions: str = Field(min_length=1)


class DayPlan(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    meals: list[Meal] = Field(min_length=1)


class MealPlan(BaseModel):
    """A week (or N days) of meals plus the aggregated grocery list."""

    model_config = ConfigDict(extra="ignore")

    days: list[DayPlan] = Field(min_length=1)
    grocery: list[Ingredient] = Field(min_length=1)


class PackingItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    qty: str = Field(min_length=1)
    category: PackingCategory


class PackingList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[PackingItem] = Field(min_length=1)


# =============================================================================
# Tagged parse result
# =============================================================================

T = TypeVar("T")


@dataclass(frozen=True)
class Valid(Generic[T]):
    content: T


@dataclass(frozen=True)
class Invalid:
    reason: str


_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def _load_json(raw: str | dict[str, Any]) -> Valid[dict[str, Any]] | Invalid:
    """Pull the outermost JSON object out of model text (prose and fences tolerated)."""
    if isinstance(raw, dict):
        return Valid(raw)
    if not isinstance(raw, str) or not raw.strip():
        return Invalid("empty response")

    match = _JSON_OBJECT_RE.search(raw)
    candidate = match.group(0) if match else raw
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        return Invalid(f"invalid JSON: {e.msg}")

    if not isinstance(data, dict):
        return Invalid("response is not a JSON object")
    return Valid(data)


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def parse_meal_plan(
    raw: str | dict[str, Any],
    expected_dates: list[str] | None = None,
) -> Valid[MealPlan] | Invalid:
    """
    Validate a generated meal plan.

    When `expected_dates` is given the plan must cover exactly those days,
    one entry each.
    """
    loaded = _load_json(raw)
    if isinstance(loaded, Invalid):
        return loaded

    try:
        plan = MealPlan.model_validate(loaded.content)
    except ValidationError as e:
        return Invalid(_first_error(e))

    if expected_dates is not None:
        got = [day.date for day in plan.days]
        if len(got) != len(expected_dates) or set(got) != set(expected_dates):
            return Invalid(f"expected {len(expected_dates)} days {expected_dates[0]}..{expected_dates[-1]}, got {got}")

    return Valid(plan)


def parse_packing_list(raw: str | dict[str, Any]) -> Valid[PackingList] | Invalid:
    """Validate a generated packing list."""
    loaded = _load_json(raw)
    if isinstance(loaded, Invalid):
        return loaded

    try:
        return Valid(PackingList.model_validate(loaded.content))
    except ValidationError as e:
        return Invalid(_first_error(e))
