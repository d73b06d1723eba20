"""
Famops - Content generation.

Schemas, fallback generators and the retry policy. The orchestrator lives in
famops.generation.orchestrator.
"""

from famops.generation.fallback import fallback_meal_plan, fallback_packing_list
from famops.generation.params import MealPreferences, TripDetails
from famops.generation.retry import is_retryable, with_retry
from famops.generation.schemas import Invalid, MealPlan, PackingList, Valid, parse_meal_plan, parse_packing_list

__all__ = [
    "Invalid",
    "MealPlan",
    "MealPreferences",
    "PackingList",
    "TripDetails",
    "Valid",
    "fallback_meal_plan",
    "fallback_packing_list",
    "is_retryable",
    "parse_meal_plan",
    "parse_packing_list",
    "with_retry",
]
