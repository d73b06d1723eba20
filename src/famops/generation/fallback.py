"""
Famops - Deterministic fallback generators.

Pure functions that build schema-valid content from the request alone.
They are used whenever external generation is unavailable, slow or returns
something that does not validate, and they never raise.
"""

from datetime import date

from famops.generation.params import MealPreferences, TripDetails
from famops.generation.schemas import DayPlan, Ingredient, Meal, MealPlan, PackingItem, PackingList
from famops.reconcile.quantities import concat_quantities, item_key

# (title, ingredients) option lists; day i uses option i % len(options)
_Option = tuple[str, list[tuple[str, str, str]]]


def _breakfasts(prefs: MealPreferences) -> list[_Option]:
    return [
        ("Oatmeal & Fruit", [("Oats", "1 box", "Pantry"), ("Bananas", "7", "Produce")]),
        ("Scrambled Eggs & Toast", [("Eggs", str(prefs.family_size * 2), "Dairy"), ("Bread", "1 loaf", "Bakery")]),
        ("Yogurt Parfaits", [("Yogurt", "2 tubs", "Dairy"), ("Granola", "1 bag", "Pantry")]),
    ]


def _lunches(prefs: MealPreferences) -> list[_Option]:
    if prefs.is_vegetarian:
        sandwich = ("Veggie Sandwiches", [("Veggie slices", "1 pack", "Dairy"), ("Bread", "1 loaf", "Bakery")])
    else:
        sandwich = ("Turkey Sandwiches", [("Turkey", "1 lb", "Meat"), ("Bread", "1 loaf", "Bakery")])
    return [
        sandwich,
        ("Caesar Salad", [("Romaine", "2 heads", "Produce"), ("Croutons", "1 bag", "Pantry")]),
        ("Grilled Cheese & Soup", [("Cheddar", "1 lb", "Dairy"), ("Tomato soup", "2 cans", "Pantry")]),
    ]


def _dinners(prefs: MealPreferences) -> list[_Option]:
    if prefs.is_vegetarian:
        return [
            ("Veggie Pasta", [("Pasta", "2 lbs", "Pantry"), ("Marinara", "2 jars", "Pantry")]),
            ("Vegetable Stir Fry", [("Mixed vegetables", "2 bags", "Frozen"), ("Rice", "1 bag", "Pantry")]),
            ("Bean Tacos", [("Black beans", "2 cans", "Pantry"), ("Tortillas", "2 packs", "Bakery")]),
        ]
    return [
        ("Spaghetti Bolognese", [("Ground beef", "1 lb", "Meat"), ("Pasta", "2 lbs", "Pantry")]),
        ("Chicken Stir Fry", [("Chicken", "2 lbs", "Meat"), ("Vegetables", "2 bags", "Frozen")]),
        ("Tacos", [("Ground beef", "1 lb", "Meat"), ("Tortillas", "2 packs", "Bakery")]),
    ]


_PREP_TIMES = {
    "breakfast": "Prep time: 10-15 min",
    "lunch": "Prep time: 15-20 min",
    "dinner": "Prep time: 30-45 min",
}


def _meal(meal_type: str, option: _Option) -> Meal:
    title, ingredients = option
    return Meal(
        meal_type=meal_type,
        recipe_title=title,
        ingredients=[Ingredient(name=n, qty=q, category=c) for n, q, c in ingredients],
        instructions=_PREP_TIMES[meal_type],
    )


def aggregate_grocery(days: list[DayPlan]) -> list[Ingredient]:
    """
    Collapse every ingredient of a plan into a grocery list.

    Ingredients are keyed by (name, category), case-insensitively, in first-seen
    order. Repeats have their quantities joined as text.
    """
    grocery: dict[tuple[str, str], Ingredient] = {}
    for day in days:
        for meal in day.meals:
            for ing in meal.ingredients:
                key = (item_key(ing.name), ing.category)
                if key in grocery:
                    prev = grocery[key]
                    grocery[key] = prev.model_copy(update={"qty": concat_quantities(prev.qty, ing.qty)})
                else:
                    grocery[key] = ing.model_copy()
    return list(grocery.values())


def fallback_meal_plan(dates: list[str], preferences: MealPreferences | dict | None = None) -> MealPlan:
    """Breakfast, lunch and dinner for every date, rotating through fixed options."""
    prefs = MealPreferences.coerce(preferences)
    breakfasts, lunches, dinners = _breakfasts(prefs), _lunches(prefs), _dinners(prefs)

    days = [
        DayPlan(
            date=day,
            meals=[
                _meal("breakfast", breakfasts[i % len(breakfasts)]),
                _meal("lunch", lunches[i % len(lunches)]),
                _meal("dinner", dinners[i % len(dinners)]),
            ],
        )
        for i, day in enumerate(dates)
    ]
    return MealPlan.model_construct(days=days, grocery=aggregate_grocery(days))


# =============================================================================
# Packing
# =============================================================================

DEFAULT_TRIP_DAYS = 3
MAX_CLOTHING_DAYS = 7


def trip_duration(trip: TripDetails) -> int:
    """Whole days between start and end, or DEFAULT_TRIP_DAYS when unknown."""
    try:
        days = (date.fromisoformat(trip.end_date[:10]) - date.fromisoformat(trip.start_date[:10])).days
    except (TypeError, ValueError):
        return DEFAULT_TRIP_DAYS
    return days if days >= 1 else DEFAULT_TRIP_DAYS


def fallback_packing_list(trip: TripDetails | dict | None = None) -> PackingList:
    """Base packing list scaled by trip length and traveler count."""
    details = TripDetails.coerce(trip)
    per_day = str(min(trip_duration(details), MAX_CLOTHING_DAYS))
    people = str(len(details.travelers))

    items = [
        PackingItem(name="T-shirts", qty=per_day, category="Clothes"),
        PackingItem(name="Underwear", qty=per_day, category="Clothes"),
        PackingItem(name="Socks", qty=per_day, category="Clothes"),
        PackingItem(name="Pajamas", qty=people, category="Clothes"),
        PackingItem(name="Toothbrush", qty=people, category="Toiletries"),
        PackingItem(name="Toothpaste", qty="1", category="Toiletries"),
        PackingItem(name="Medications", qty="1", category="Health"),
        PackingItem(name="Phone charger", qty="1", category="Electronics"),
        PackingItem(name="ID/Passports", qty=people, category="Documents"),
        PackingItem(name="Comfortable shoes", qty=people, category="Misc"),
    ]
    seen = {item_key(i.name) for i in items}
    for name in details.items:
        if item_key(name) not in seen:
            seen.add(item_key(name))
            items.append(PackingItem(name=name, qty="1", category="Misc"))

    return PackingList.model_construct(items=items)
