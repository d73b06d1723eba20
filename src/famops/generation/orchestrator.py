"""
Famops - Generation Orchestrator.

Drives "external generation under a deadline, validate, fall back" for meal
plans and packing lists, and wraps the generate-then-persist pipelines in a
last-resort safety net.

Only entitlement failures and a malformed week start reach the caller.
Malformed trip dates fall back to today. Network errors, timeouts,
invalid JSON and schema mismatches all end in the deterministic fallback.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Generic, Literal, TypeVar

from famops.dates import is_iso_date, normalize_week_start, parse_day, short_label, today_iso, week_dates
from famops.db.adapter import RecordStore
from famops.db.ids import new_id
from famops.errors import BadRequestError, GenerationUnavailable
from famops.generation.access import AccessGate
from famops.generation.fallback import DEFAULT_TRIP_DAYS, fallback_meal_plan, fallback_packing_list
from famops.generation.params import MealPreferences, TripDetails
from famops.generation.retry import with_retry
from famops.generation.schemas import (
    GenerationKind,
    MealPlan,
    PackingList,
    Valid,
    parse_meal_plan,
    parse_packing_list,
)
from famops.llm.client import ContentGenerator
from famops.reconcile.lists import (
    basic_packing_items,
    create_basic_packing,
    create_grocery_list,
    create_list,
    grocery_title,
    insert_items,
    refill_list,
)
from famops.reconcile.meals import MEALS_TABLE, reconcile_meals

logger = logging.getLogger(__name__)

T = TypeVar("T")

Source = Literal["ai", "fallback"]

DEFAULT_TIMEOUT_SECONDS = 12.0

# Safety-net content
DEFAULT_DINNER = {
    "recipe_title": "Pasta Night",
    "ingredients": ["Pasta", "Tomato sauce", "Parmesan"],
    "instructions": "Prep time: 30 min",
}
STAPLE_GROCERIES = [
    {"name": "Pasta", "qty": "2 lbs", "category": "Pantry"},
    {"name": "Tomato sauce", "qty": "2 jars", "category": "Pantry"},
    {"name": "Parmesan", "qty": "1 block", "category": "Dairy"},
]


@dataclass
class GeneratedContent(Generic[T]):
    content: T
    source: Source


@dataclass
class WeekGenerationResult:
    week_start: str
    list_id: str
    meals_created: int
    meals_updated: int
    items_created: int
    source: Literal["ai", "fallback", "safety_net"]
    ok: bool = True


@dataclass
class PackingResult:
    list_id: str
    items_created: int
    source: Literal["ai", "fallback", "safety_net"]
    ok: bool = True


def _discard_late_result(task: asyncio.Future) -> None:
    """Retrieve the outcome of a call that lost the race so it is never reported."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Late generation call failed after its deadline: {error}")
    else:
        logger.debug("Late generation result discarded")


def packing_title(trip: dict[str, Any]) -> str:
    if trip.get("title"):
        return str(trip["title"])
    if trip.get("destination"):
        return f"Packing • {trip['destination']}"
    return "Packing List"


def require_week_start(value: Any) -> str | date:
    """
    Check a requested week start before anything is generated.

    Raises:
        BadRequestError: Not a date or an ISO date/datetime string
    """
    if isinstance(value, date):
        return value
    if not is_iso_date(str(value or "")[:10]):
        raise BadRequestError(f"weekStart must be YYYY-MM-DD, got {value!r}")
    return str(value)


def _iso_day_or_none(value: str | None) -> str | None:
    if value is None or not is_iso_date(value[:10]):
        return None
    return value[:10]


class GenerationOrchestrator:
    """
    Content generation for one store.

    Args:
        store: Record store for reconciliation
        generator: External content generator, or None to always fall back
        access: Entitlement gate checked before any external call
        timeout: Hard deadline in seconds for one generation call, retries included
        max_retries: Retries for rate-limit and network failures
        base_delay: First retry delay in seconds
        timezone: Zone used for "today" when a request gives no date
    """

    def __init__(
        self,
        store: RecordStore,
        generator: ContentGenerator | None,
        access: AccessGate,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = 3,
        base_delay: float = 0.5,
        sleep=asyncio.sleep,
        timezone: str = "America/New_York",
    ):
        self.store = store
        self.generator = generator
        self.access = access
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep
        self.timezone = timezone

    # =========================================================================
    # External call
    # =========================================================================

    async def _call_external(self, kind: GenerationKind, payload: dict[str, Any]) -> str | dict[str, Any]:
        """
        Run the generator (with retries) against the deadline.

        The losing call is left running and its result dropped; it is not
        cancelled.
        """
        if self.generator is None:
            raise GenerationUnavailable("No generation client configured")

        generator = self.generator
        task = asyncio.ensure_future(
            with_retry(
                lambda: generator.generate(kind, payload),
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                sleep=self._sleep,
            )
        )
        done, _ = await asyncio.wait({task}, timeout=self.timeout)
        if task not in done:
            task.add_done_callback(_discard_late_result)
            raise GenerationUnavailable(f"{kind} generation timed out after {self.timeout}s")
        return task.result()

    # =========================================================================
    # Content (validated or fallback)
    # =========================================================================

    async def generate_meal_plan_content(
        self,
        family_id: str,
        week_start: str | date,
        preferences: MealPreferences | dict[str, Any] | None = None,
    ) -> GeneratedContent[MealPlan]:
        """
        Seven days of meals from the generator, or the fallback plan.

        Generation failures never raise; only a malformed week start does
        (BadRequestError).
        """
        monday = normalize_week_start(require_week_start(week_start))
        dates = week_dates(monday)
        prefs = MealPreferences.coerce(preferences)
        payload = {
            "familyId": family_id,
            "weekStart": monday.isoformat(),
            "preferences": prefs.model_dump(by_alias=True),
        }

        try:
            raw = await self._call_external("meal_plan", payload)
        except Exception as e:
            logger.warning(f"Meal plan generation unavailable for family {family_id}: {e}")
        else:
            parsed = parse_meal_plan(raw, dates)
            if isinstance(parsed, Valid):
                return GeneratedContent(parsed.content, "ai")
            logger.warning(f"Generated meal plan rejected for family {family_id}: {parsed.reason}")

        return GeneratedContent(fallback_meal_plan(dates, prefs), "fallback")

    async def generate_packing_content(
        self,
        family_id: str,
        trip: TripDetails | dict[str, Any] | None = None,
    ) -> GeneratedContent[PackingList]:
        """Packing list from the generator, or the fallback list. Never raises."""
        details = TripDetails.coerce(trip)
        start = _iso_day_or_none(details.start_date) or today_iso(self.timezone)
        end = _iso_day_or_none(details.end_date) or (parse_day(start) + timedelta(days=DEFAULT_TRIP_DAYS)).isoformat()
        payload = {
            "familyId": family_id,
            "startDate": start,
            "endDate": end,
            "destination": details.destination,
            "travelers": [t.model_dump() for t in details.travelers],
            "purpose": details.purpose,
        }

        try:
            raw = await self._call_external("packing_list", payload)
        except Exception as e:
            logger.warning(f"Packing list generation unavailable for family {family_id}: {e}")
        else:
            parsed = parse_packing_list(raw)
            if isinstance(parsed, Valid):
                return GeneratedContent(parsed.content, "ai")
            logger.warning(f"Generated packing list rejected for family {family_id}: {parsed.reason}")

        return GeneratedContent(fallback_packing_list(details), "fallback")

    async def generate(
        self,
        kind: GenerationKind,
        family_id: str,
        params: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> MealPlan | PackingList:
        """
        Entitlement check, then validated content of the requested kind.

        Raises:
            EntitlementError: Before any external call is attempted
            BadRequestError: Unknown kind, missing family id or malformed weekStart
        """
        if not family_id:
            raise BadRequestError("familyId required")
        if kind not in ("meal_plan", "packing_list"):
            raise BadRequestError(f"Unknown generation kind: {kind}")
        params = params or {}

        week_start = None
        if kind == "meal_plan":
            week_start = require_week_start(
                params.get("weekStart") or params.get("week_start") or today_iso(self.timezone)
            )

        await self.access.require(family_id, user_id)

        if kind == "meal_plan":
            generated = await self.generate_meal_plan_content(family_id, week_start, params.get("preferences"))
        else:
            generated = await self.generate_packing_content(family_id, params)
        return generated.content

    # =========================================================================
    # Pipelines with safety net
    # =========================================================================

    async def generate_week(
        self,
        family_id: str,
        week_start: str | date,
        preferences: MealPreferences | dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> WeekGenerationResult:
        """
        Generate, reconcile and build the grocery list for one week.

        Re-running for the same week updates the same meals and creates a new
        grocery list each time. The run produces exactly one grocery list, even
        when the safety net takes over after the list was created.

        Raises:
            BadRequestError: Malformed week start
            EntitlementError: Before anything is generated
        """
        monday = normalize_week_start(require_week_start(week_start))
        await self.access.require(family_id, user_id)

        dates = week_dates(monday)
        generated = await self.generate_meal_plan_content(family_id, monday, preferences)

        list_id = None
        try:
            reconciled = await reconcile_meals(self.store, family_id, dates, generated.content.days)
            created = await create_list(self.store, family_id, "grocery", grocery_title(monday))
            list_id = created["id"]
            items_created = await insert_items(self.store, list_id, generated.content.grocery, default_category="Other")
        except Exception as e:
            logger.error(f"Meal plan reconciliation failed for family {family_id}, using safety net: {e}")
            return await self._minimal_week(family_id, monday, dates, list_id)

        logger.info(
            f"Week of {monday} for family {family_id} ({generated.source}): "
            f"{reconciled.created} meals created, {reconciled.updated} updated, {items_created} groceries"
        )
        return WeekGenerationResult(
            week_start=monday.isoformat(),
            list_id=list_id,
            meals_created=reconciled.created,
            meals_updated=reconciled.updated,
            items_created=items_created,
            source=generated.source,
        )

    async def _minimal_week(
        self,
        family_id: str,
        monday: date,
        dates: list[str],
        list_id: str | None = None,
    ) -> WeekGenerationResult:
        """
        One default dinner per day that lacks one, plus a staples grocery list.

        A grocery list already created by the failed run is refilled with the
        staples instead of being left beside a new one.
        """
        dinners = await self.store.list(MEALS_TABLE, {"family_id": family_id, "date": {"in": dates}, "meal_type": "dinner"})
        has_dinner = {m["date"] for m in dinners}

        created = 0
        for day in dates:
            if day in has_dinner:
                continue
            await self.store.create(
                MEALS_TABLE,
                {
                    "id": new_id("meal"),
                    "family_id": family_id,
                    "date": day,
                    "meal_type": "dinner",
                    "recipe_title": DEFAULT_DINNER["recipe_title"],
                    "ingredients_json": json.dumps(DEFAULT_DINNER["ingredients"]),
                    "instructions": DEFAULT_DINNER["instructions"],
                },
            )
            created += 1

        if list_id is None:
            built = await create_grocery_list(self.store, family_id, monday, STAPLE_GROCERIES)
            list_id, items_created = built.list_id, built.items_created
        else:
            items_created = await refill_list(self.store, list_id, STAPLE_GROCERIES, default_category="Other")

        logger.warning(f"Safety net for family {family_id}: {created} default dinners, grocery list {list_id}")
        return WeekGenerationResult(
            week_start=monday.isoformat(),
            list_id=list_id,
            meals_created=created,
            meals_updated=0,
            items_created=items_created,
            source="safety_net",
        )

    async def create_packing_from_trip(
        self,
        family_id: str,
        trip: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> PackingResult:
        """
        Generate a packing list for a trip and persist it as a new list.

        Malformed trip dates fall back to today and the default trip length.
        """
        await self.access.require(family_id, user_id)
        trip = trip or {}

        generated = await self.generate_packing_content(family_id, trip)
        list_id = None
        try:
            created = await create_list(self.store, family_id, "packing", packing_title(trip))
            list_id = created["id"]
            items_created = await insert_items(self.store, list_id, generated.content.items, default_category="Misc")
        except Exception as e:
            logger.error(f"Packing list persistence failed for family {family_id}, using basic list: {e}")
            if list_id is not None:
                count = await refill_list(self.store, list_id, basic_packing_items(), default_category="Misc")
                return PackingResult(list_id=list_id, items_created=count, source="safety_net")
            title = (
                f"Packing • {trip['destination']}"
                if trip.get("destination")
                else f"Packing List • {short_label(today_iso(self.timezone))}"
            )
            basic = await create_basic_packing(self.store, family_id, title)
            return PackingResult(list_id=basic.list_id, items_created=basic.items_created, source="safety_net")

        return PackingResult(list_id=list_id, items_created=items_created, source=generated.source)


def build_orchestrator(store: RecordStore, access: AccessGate | None = None) -> GenerationOrchestrator:
    """Orchestrator wired from settings: OpenAI generator if a key is set, timeouts and retry policy."""
    from famops.config import settings
    from famops.generation.access import AccessConfig
    from famops.llm.client import build_generator

    return GenerationOrchestrator(
        store,
        build_generator(),
        access or AccessGate(store, AccessConfig.from_settings(settings)),
        timeout=settings.generation_timeout_seconds,
        max_retries=settings.retry_max_attempts,
        base_delay=settings.retry_base_delay,
        timezone=settings.app_timezone,
    )
