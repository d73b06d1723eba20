"""
Famops - Generation prompts.

Prompts ask for JSON only, in the exact shape the schema validator accepts.
"""

from typing import Any

from famops.generation.schemas import GROCERY_CATEGORIES, PACKING_CATEGORIES

MEAL_PLAN_SYSTEM = "You are a meal planning assistant. Generate realistic, family-friendly meals. Return valid JSON only."

PACKING_SYSTEM = "You are a travel packing assistant. Generate practical packing lists in valid JSON format only."

_MEAL_PLAN_SHAPE = """{
  "days": [
    {
      "date": "YYYY-MM-DD",
      "meals": [
        {
          "meal_type": "breakfast",
          "recipe_title": "Scrambled Eggs with Toast",
          "ingredients": [
            {"name": "Eggs", "qty": "6", "category": "Dairy"},
            {"name": "Bread", "qty": "1 loaf", "category": "Bakery"}
          ],
          "instructions": "Prep time: 10 min"
        }
      ]
    }
  ],
  "grocery": [
    {"name": "Eggs", "qty": "12", "category": "Dairy"}
  ]
}"""

_PACKING_SHAPE = """{
  "items": [
    {"name": "T-shirts", "qty": "3", "category": "Clothes"},
    {"name": "Toothbrush", "qty": "1", "category": "Toiletries"}
  ]
}"""


def _joined(values: list[str], default: str = "none") -> str:
    return ", ".join(values) if values else default


def meal_plan_prompt(payload: dict[str, Any], dates: list[str]) -> str:
    prefs = payload.get("preferences") or {}
    return f"""Generate a {len(dates)}-day meal plan for a family of {prefs.get("familySize", 4)}.

Requirements:
- Max cooking time: {prefs.get("cookingTime", 45)} minutes per meal
- Budget: {prefs.get("budget", "medium")}
- Dietary restrictions: {_joined(prefs.get("dietaryRestrictions") or [])}
- Avoid: {_joined(prefs.get("dislikes") or [])}

Return ONLY valid JSON in this exact format:
{_MEAL_PLAN_SHAPE}

Quantities ("qty") are strings.
Categories must be: {", ".join(GROCERY_CATEGORIES)}
Generate meals for dates: {", ".join(dates)}
Include breakfast, lunch, and dinner for each day."""


def packing_prompt(payload: dict[str, Any], duration: int) -> str:
    travelers = payload.get("travelers") or []
    traveler_info = ", ".join(f"{t.get('type', 'adult')} (age {t.get('age', '?')})" for t in travelers)
    purpose = payload.get("purpose") or "vacation"
    return f"""Generate a packing list for a {purpose} trip.

Trip details:
- Destination: {payload.get("destination") or "Trip"}
- Duration: {duration} days ({payload.get("startDate")} to {payload.get("endDate")})
- Travelers: {traveler_info or "family travelers"}
- Trip type: {purpose}

Return ONLY valid JSON in this exact format:
{_PACKING_SHAPE}

Categories must be: {", ".join(PACKING_CATEGORIES)}
Consider the destination, duration, and travelers when suggesting items.
Be practical and comprehensive but not excessive."""
