"""
Famops - List building, merging and ordering.

Item identity inside a list is the trimmed, lowercased name. Building a
list from generated content joins repeated quantities as text; adding to an
existing list sums them as numbers (see famops.reconcile.quantities).
Positions are dense and 0-based.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from famops.dates import short_label
from famops.db.adapter import RecordStore
from famops.db.ids import new_id
from famops.errors import BadRequestError, NotFoundError
from famops.reconcile.meals import MEALS_TABLE, ingredient_names
from famops.reconcile.quantities import concat_quantities, item_key, sum_quantities

logger = logging.getLogger(__name__)

LISTS_TABLE = "lists"
ITEMS_TABLE = "list_items"

ListType = Literal["grocery", "packing", "custom"]

BASIC_PACKING_ITEMS = [
    "Clothes", "Underwear", "Socks", "Toiletries", "Toothbrush", "Toothpaste",
    "Shampoo", "Phone charger", "Pajamas", "Comfortable shoes", "Documents", "Wallet",
]


@dataclass
class BuildResult:
    list_id: str
    items_created: int


@dataclass
class MergeResult:
    list_id: str
    added_count: int = 0
    merged_count: int = 0

    @property
    def total_affected(self) -> int:
        return self.added_count + self.merged_count


@dataclass
class AddItemResult:
    id: str
    merged: bool
    quantity: str


@dataclass
class ReorderResult:
    updated: int
    total: int


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


# =============================================================================
# Building lists from generated content
# =============================================================================


async def create_list(store: RecordStore, family_id: str, list_type: ListType, title: str) -> dict[str, Any]:
    return await store.create(
        LISTS_TABLE,
        {"id": new_id(f"list_{list_type}"), "family_id": family_id, "type": list_type, "title": title},
    )


def collapse_items(items: list[Any], default_category: str | None) -> list[dict[str, Any]]:
    """
    One entry per item name, in first-seen order.

    Repeated names keep the first category and join quantities as text.
    """
    collapsed: dict[str, dict[str, Any]] = {}
    for item in items:
        name = str(_field(item, "name") or "").strip() or "Item"
        qty = str(_field(item, "qty") or _field(item, "quantity") or "1")
        key = item_key(name)
        if key in collapsed:
            collapsed[key]["quantity"] = concat_quantities(collapsed[key]["quantity"], qty)
        else:
            collapsed[key] = {"name": name, "quantity": qty, "category": _field(item, "category") or default_category}
    return list(collapsed.values())


async def insert_items(store: RecordStore, list_id: str, items: list[Any], default_category: str | None = None) -> int:
    """Insert generated items into an empty list with positions 0..N-1."""
    rows = collapse_items(items, default_category)
    for position, row in enumerate(rows):
        await store.create(
            ITEMS_TABLE,
            {"id": new_id("item"), "list_id": list_id, "checked": "0", "position": position, **row},
        )
    return len(rows)


def grocery_title(week_start: str | date) -> str:
    return f"Groceries • week of {short_label(week_start)}"


async def create_grocery_list(
    store: RecordStore,
    family_id: str,
    week_start: str | date,
    grocery: list[Any],
) -> BuildResult:
    """A fresh grocery list for one generation run; never appends to an old one."""
    created = await create_list(store, family_id, "grocery", grocery_title(week_start))
    count = await insert_items(store, created["id"], grocery, default_category="Other")
    logger.info(f"Created grocery list {created['id']} with {count} items")
    return BuildResult(list_id=created["id"], items_created=count)


async def create_packing_list(store: RecordStore, family_id: str, title: str, items: list[Any]) -> BuildResult:
    created = await create_list(store, family_id, "packing", title)
    count = await insert_items(store, created["id"], items, default_category="Misc")
    logger.info(f"Created packing list {created['id']} with {count} items")
    return BuildResult(list_id=created["id"], items_created=count)


async def create_basic_packing(
    store: RecordStore,
    family_id: str,
    title: str,
    names: list[str] | None = None,
) -> BuildResult:
    """Packing list from plain names (defaults to the basic checklist)."""
    return await create_packing_list(store, family_id, title, basic_packing_items(names))


def basic_packing_items(names: list[str] | None = None) -> list[dict[str, Any]]:
    return [{"name": n, "qty": "1", "category": "Misc"} for n in names or BASIC_PACKING_ITEMS]


async def refill_list(store: RecordStore, list_id: str, items: list[Any], default_category: str | None = None) -> int:
    """Replace every item of an existing list, keeping the list itself."""
    removed = await store.delete_many(ITEMS_TABLE, {"list_id": list_id})
    if removed:
        logger.info(f"Cleared {removed} items from list {list_id} before refilling")
    return await insert_items(store, list_id, items, default_category)


# =============================================================================
# Merging into existing lists
# =============================================================================


async def list_items(store: RecordStore, list_id: str) -> list[dict[str, Any]]:
    """Items of a list in manual order."""
    return await store.list(ITEMS_TABLE, {"list_id": list_id}, order_by="position")


def _next_position(existing: list[dict[str, Any]]) -> int:
    positions = [int(i["position"]) for i in existing if str(i.get("position", "")).lstrip("-").isdigit()]
    return max(positions) + 1 if positions else 0


async def add_ingredients(store: RecordStore, list_id: str, names: list[str]) -> MergeResult:
    """
    Merge ingredient names into a list.

    A name already on the list gets its quantity bumped by one and is
    unchecked again; a new name is appended with quantity "1".
    """
    existing = await store.list(ITEMS_TABLE, {"list_id": list_id})
    by_key = {item_key(i.get("name")): i for i in existing}
    next_position = _next_position(existing)

    result = MergeResult(list_id=list_id)
    for raw in names:
        name = str(raw or "").strip()
        if not name:
            continue

        found = by_key.get(item_key(name))
        if found:
            quantity = sum_quantities(found.get("quantity"), None)
            by_key[item_key(name)] = await store.update(ITEMS_TABLE, found["id"], {"quantity": quantity, "checked": "0"})
            result.merged_count += 1
        else:
            created = await store.create(
                ITEMS_TABLE,
                {
                    "id": new_id("item"),
                    "list_id": list_id,
                    "name": name,
                    "quantity": "1",
                    "category": None,
                    "checked": "0",
                    "position": next_position,
                },
            )
            by_key[item_key(name)] = created
            next_position += 1
            result.added_count += 1

    logger.info(f"Merged into list {list_id}: {result.added_count} added, {result.merged_count} merged")
    return result


async def add_item(
    store: RecordStore,
    list_id: str,
    name: str,
    quantity: str | None = None,
    category: str | None = None,
) -> AddItemResult:
    """Add a single item, summing quantities if the name is already present."""
    trimmed = str(name or "").strip()
    if not trimmed:
        raise BadRequestError("Item name required")

    existing = await store.list(ITEMS_TABLE, {"list_id": list_id})
    found = next((i for i in existing if item_key(i.get("name")) == item_key(trimmed)), None)

    if found:
        next_qty = sum_quantities(found.get("quantity"), quantity, empty_current=1.0)
        await store.update(ITEMS_TABLE, found["id"], {"quantity": next_qty, "checked": "0"})
        return AddItemResult(id=found["id"], merged=True, quantity=next_qty)

    created = await store.create(
        ITEMS_TABLE,
        {
            "id": new_id("item"),
            "list_id": list_id,
            "name": trimmed,
            "quantity": quantity or "1",
            "category": category,
            "checked": "0",
            "position": _next_position(existing),
        },
    )
    return AddItemResult(id=created["id"], merged=False, quantity=created["quantity"])


async def latest_grocery_list(store: RecordStore, family_id: str) -> dict[str, Any] | None:
    found = await store.list(
        LISTS_TABLE, {"family_id": family_id, "type": "grocery"}, order_by="created_at", desc=True, limit=1
    )
    return found[0] if found else None


async def add_meal_to_grocery_list(store: RecordStore, meal_id: str, family_id: str) -> MergeResult:
    """Merge a meal's ingredients into the family's newest grocery list."""
    meals = await store.list(MEALS_TABLE, {"id": meal_id, "family_id": family_id}, limit=1)
    if not meals:
        raise NotFoundError("Meal not found")

    target = await latest_grocery_list(store, family_id)
    if target is None:
        target = await create_list(store, family_id, "grocery", "Grocery List")

    return await add_ingredients(store, target["id"], ingredient_names(meals[0]))


async def toggle_item(store: RecordStore, item_id: str, checked: bool) -> dict[str, Any]:
    return await store.update(ITEMS_TABLE, item_id, {"checked": "1" if checked else "0"})


# =============================================================================
# Reorder
# =============================================================================


def _as_updates(ordered: list[str] | list[tuple[str, int]] | list[dict[str, Any]]) -> list[tuple[str, int]]:
    updates = []
    for index, entry in enumerate(ordered):
        if isinstance(entry, str):
            updates.append((entry, index))
        elif isinstance(entry, dict):
            updates.append((entry["id"], int(entry.get("position", index))))
        else:
            item_id, position = entry
            updates.append((item_id, int(position)))
    return updates


async def reorder(
    store: RecordStore,
    list_id: str,
    ordered: list[str] | list[tuple[str, int]] | list[dict[str, Any]],
) -> ReorderResult:
    """
    Persist item positions.

    `ordered` is either item ids in their new order or explicit (id, position)
    pairs. Each write is independent; failures are counted, not rolled back,
    and the caller should re-fetch when updated < total. Density is the
    caller's responsibility.
    """
    updates = _as_updates(ordered)
    updated = 0
    for item_id, position in updates:
        try:
            await store.update(ITEMS_TABLE, item_id, {"position": position})
            updated += 1
        except Exception as e:
            logger.warning(f"Reorder of list {list_id}: failed to move item {item_id} to {position}: {e}")

    if updated < len(updates):
        logger.warning(f"Reorder of list {list_id} partially applied: {updated}/{len(updates)}")
    return ReorderResult(updated=updated, total=len(updates))
