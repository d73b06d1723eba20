"""
Famops Web - FastAPI application.

Serves the routine toggle and generation functions plus the list and
routine maintenance endpoints. Authentication is handled upstream; the
caller's user id arrives in the X-User-Id header.
"""

import logging
from typing import Any

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from famops import __version__
from famops.config import settings
from famops.dates import today_iso
from famops.db import RecordStore, get_store
from famops.errors import (
    BadRequestError,
    EntitlementError,
    FamopsError,
    NotAMemberError,
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    ProRequiredError,
)
from famops.generation.access import AccessConfig, AccessGate
from famops.generation.orchestrator import GenerationOrchestrator, build_orchestrator
from famops.reconcile import lists
from famops.routines.engine import RoutineEngine, UncheckMode

logger = logging.getLogger(__name__)

app = FastAPI(title="Famops", version=__version__)


# =============================================================================
# Error mapping
# =============================================================================

_STATUS_BY_ERROR: list[tuple[type[FamopsError], int]] = [
    (BadRequestError, 400),
    (NotAuthenticatedError, 401),
    (NotAMemberError, 403),
    (ProRequiredError, 403),
    (PermissionDeniedError, 403),
    (EntitlementError, 403),
    (NotFoundError, 404),
]


def status_for(error: FamopsError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


@app.exception_handler(FamopsError)
async def famops_error_handler(request: Request, exc: FamopsError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status, content={"error": str(exc)})


# =============================================================================
# Dependencies
# =============================================================================


def get_record_store() -> RecordStore:
    return get_store()


def get_access(store: RecordStore = Depends(get_record_store)) -> AccessGate:
    return AccessGate(store, AccessConfig.from_settings(settings))


def get_orchestrator(
    store: RecordStore = Depends(get_record_store),
    access: AccessGate = Depends(get_access),
) -> GenerationOrchestrator:
    return build_orchestrator(store, access)


def get_toggle_engine(store: RecordStore = Depends(get_record_store)) -> RoutineEngine:
    return RoutineEngine(store, uncheck_mode=UncheckMode.DELETE)


# =============================================================================
# Models
# =============================================================================


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ToggleRequest(_Request):
    # Optional so a missing field is a 400 from the engine, not a 422
    routine_id: str | None = None
    task_index: Any = None
    date: str | None = None
    checked: bool = False


class MealPlanRequest(_Request):
    family_id: str | None = None
    week_start: str | None = None
    preferences: dict[str, Any] | None = None


class GenerateWeekRequest(_Request):
    week_start: str | None = None
    preferences: dict[str, Any] | None = None


class IngredientsRequest(_Request):
    names: list[str]


class AddItemRequest(_Request):
    name: str
    quantity: str | None = None
    category: str | None = None


class ItemPosition(_Request):
    id: str
    position: int


class ReorderRequest(_Request):
    order: list[str | ItemPosition]


class ToggleItemRequest(_Request):
    checked: bool


# =============================================================================
# Health
# =============================================================================


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# =============================================================================
# Functions
# =============================================================================


@app.post("/functions/routine-task-toggle")
async def routine_task_toggle(req: ToggleRequest, engine: RoutineEngine = Depends(get_toggle_engine)):
    """Check or uncheck one routine task; unchecked tasks are deleted."""
    logger.info(f"Toggle request: routine={req.routine_id} task={req.task_index} date={req.date} checked={req.checked}")
    result = await engine.toggle_task(req.routine_id, req.task_index, req.checked, req.date)
    return {"success": True, **result.to_dict()}


@app.post("/functions/ai-meal-plan")
async def ai_meal_plan(
    req: MealPlanRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    x_user_id: str | None = Header(default=None),
):
    if not req.family_id:
        raise BadRequestError("familyId required")
    plan = await orchestrator.generate(
        "meal_plan",
        req.family_id,
        {"weekStart": req.week_start or today_iso(settings.app_timezone), "preferences": req.preferences},
        user_id=x_user_id,
    )
    return plan.model_dump()


@app.post("/functions/ai-packing-list")
async def ai_packing_list(
    body: dict[str, Any] = Body(...),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    x_user_id: str | None = Header(default=None),
):
    family_id = body.get("familyId") or body.get("family_id")
    if not family_id:
        raise BadRequestError("familyId required")
    packing = await orchestrator.generate("packing_list", family_id, body, user_id=x_user_id)
    return packing.model_dump()


# =============================================================================
# Meals and lists
# =============================================================================


@app.post("/api/families/{family_id}/meals/generate-week")
async def generate_week(
    family_id: str,
    req: GenerateWeekRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    x_user_id: str | None = Header(default=None),
):
    week_start = req.week_start or today_iso(settings.app_timezone)
    result = await orchestrator.generate_week(family_id, week_start, req.preferences, user_id=x_user_id)
    return {
        "ok": result.ok,
        "weekStart": result.week_start,
        "listId": result.list_id,
        "mealsCreated": result.meals_created,
        "mealsUpdated": result.meals_updated,
        "itemsCreated": result.items_created,
        "source": result.source,
    }


@app.post("/api/families/{family_id}/packing-lists")
async def create_packing_list(
    family_id: str,
    trip: dict[str, Any] | None = Body(default=None),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    x_user_id: str | None = Header(default=None),
):
    result = await orchestrator.create_packing_from_trip(family_id, trip or {}, user_id=x_user_id)
    return {"ok": result.ok, "listId": result.list_id, "itemsCreated": result.items_created, "source": result.source}


@app.get("/api/lists/{list_id}/items")
async def get_list_items(list_id: str, store: RecordStore = Depends(get_record_store)):
    return await lists.list_items(store, list_id)


@app.post("/api/lists/{list_id}/ingredients")
async def add_ingredients(list_id: str, req: IngredientsRequest, store: RecordStore = Depends(get_record_store)):
    result = await lists.add_ingredients(store, list_id, req.names)
    return {
        "ok": True,
        "listId": list_id,
        "addedCount": result.added_count,
        "mergedCount": result.merged_count,
        "totalAffected": result.total_affected,
    }


@app.post("/api/lists/{list_id}/items")
async def add_item(list_id: str, req: AddItemRequest, store: RecordStore = Depends(get_record_store)):
    result = await lists.add_item(store, list_id, req.name, req.quantity, req.category)
    return {"ok": True, "id": result.id, "merged": result.merged, "quantity": result.quantity}


@app.post("/api/lists/{list_id}/reorder")
async def reorder_items(list_id: str, req: ReorderRequest, store: RecordStore = Depends(get_record_store)):
    ordered = [entry if isinstance(entry, str) else (entry.id, entry.position) for entry in req.order]
    result = await lists.reorder(store, list_id, ordered)
    return {"ok": result.updated == result.total, "updated": result.updated, "total": result.total}


@app.post("/api/families/{family_id}/meals/{meal_id}/add-to-grocery")
async def add_meal_to_grocery(family_id: str, meal_id: str, store: RecordStore = Depends(get_record_store)):
    result = await lists.add_meal_to_grocery_list(store, meal_id, family_id)
    return {
        "ok": True,
        "listId": result.list_id,
        "addedCount": result.added_count,
        "mergedCount": result.merged_count,
        "totalAffected": result.total_affected,
    }


@app.post("/api/list-items/{item_id}/toggle")
async def toggle_list_item(item_id: str, req: ToggleItemRequest, store: RecordStore = Depends(get_record_store)):
    item = await lists.toggle_item(store, item_id, req.checked)
    return {"ok": True, "id": item["id"], "checked": item["checked"]}


# =============================================================================
# Routines
# =============================================================================


@app.post("/api/routines/{routine_id}/recompute-streak")
async def recompute_streak(routine_id: str, store: RecordStore = Depends(get_record_store)):
    repair = await RoutineEngine(store).recompute_streak(routine_id)
    return {
        "streak": repair.streak,
        "previous": repair.previous,
        "eventsCreated": repair.events_created,
        "eventsDeleted": repair.events_deleted,
    }
