"""
Famops - Reconciliation.

Idempotent meal upserts and list building/merging.
"""

from famops.reconcile.lists import (
    AddItemResult,
    BuildResult,
    MergeResult,
    ReorderResult,
    add_ingredients,
    add_item,
    add_meal_to_grocery_list,
    basic_packing_items,
    create_basic_packing,
    create_grocery_list,
    create_packing_list,
    list_items,
    refill_list,
    reorder,
    toggle_item,
)
from famops.reconcile.meals import ReconcileResult, reconcile_meals
from famops.reconcile.quantities import concat_quantities, item_key, sum_quantities

__all__ = [
    "AddItemResult",
    "BuildResult",
    "MergeResult",
    "ReconcileResult",
    "ReorderResult",
    "add_ingredients",
    "add_item",
    "add_meal_to_grocery_list",
    "basic_packing_items",
    "concat_quantities",
    "create_basic_packing",
    "create_grocery_list",
    "create_packing_list",
    "item_key",
    "list_items",
    "reconcile_meals",
    "refill_list",
    "reorder",
    "sum_quantities",
    "toggle_item",
]
