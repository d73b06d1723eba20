"""
Famops - Routine maintenance.

Create, edit, remove and duplicate routines. Only adults and owners of the
child's family may mutate a routine.
"""

import json
import logging
from typing import Any

from famops.db.adapter import RecordStore
from famops.db.ids import new_id
from famops.errors import BadRequestError
from famops.generation.access import AccessGate
from famops.routines.engine import ROUTINE_LOGS_TABLE, ROUTINES_TABLE, TASK_LOGS_TABLE, RoutineEngine

logger = logging.getLogger(__name__)


def _schedule_json(schedule: dict[str, Any] | None) -> str:
    schedule = dict(schedule or {})
    tasks = schedule.get("tasks")
    schedule["tasks"] = [str(t) for t in tasks] if isinstance(tasks, list) else []
    return json.dumps(schedule)


class RoutineService:
    def __init__(self, store: RecordStore, access: AccessGate):
        self.store = store
        self.access = access
        self._routines = RoutineEngine(store)

    async def _authorize(self, routine: dict[str, Any], user_id: str | None, action: str) -> None:
        family_id = await self.access.family_of_child(routine["child_id"])
        await self.access.require_adult(family_id, user_id, action=action)

    async def list_by_family(self, family_id: str) -> list[dict[str, Any]]:
        children = await self.store.list("children", {"family_id": family_id})
        if not children:
            return []
        return await self.store.list(
            ROUTINES_TABLE, {"child_id": {"in": [c["id"] for c in children]}}, order_by="created_at", desc=True
        )

    async def create(
        self,
        child_id: str,
        title: str,
        schedule: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        if not str(title or "").strip():
            raise BadRequestError("Routine title required")
        family_id = await self.access.family_of_child(child_id)
        await self.access.require_adult(family_id, user_id, action="create")

        routine = await self.store.create(
            ROUTINES_TABLE,
            {
                "id": new_id("routine"),
                "child_id": child_id,
                "title": title.strip(),
                "schedule_json": _schedule_json(schedule),
                "streak_count": "0",
            },
        )
        logger.info(f"Created routine {routine['id']} for child {child_id}")
        return routine

    async def update(
        self,
        routine_id: str,
        *,
        title: str | None = None,
        schedule: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Change the title and/or schedule. Nothing given means nothing written."""
        routine = await self._routines.load_routine(routine_id)
        await self._authorize(routine, user_id, "edit")

        patch: dict[str, Any] = {}
        if isinstance(title, str):
            patch["title"] = title
        if schedule:
            patch["schedule_json"] = _schedule_json(schedule)
        if not patch:
            return routine
        return await self.store.update(ROUTINES_TABLE, routine_id, patch)

    async def remove(self, routine_id: str, user_id: str | None = None) -> None:
        """Delete a routine together with its task logs and completion events."""
        routine = await self._routines.load_routine(routine_id)
        await self._authorize(routine, user_id, "delete")

        task_logs = await self.store.delete_many(TASK_LOGS_TABLE, {"routine_id": routine_id})
        events = await self.store.delete_many(ROUTINE_LOGS_TABLE, {"routine_id": routine_id})
        await self.store.delete(ROUTINES_TABLE, routine_id)
        logger.info(f"Removed routine {routine_id} ({task_logs} task logs, {events} completion events)")

    async def duplicate(self, routine_id: str, user_id: str | None = None) -> dict[str, Any]:
        """Copy a routine's schedule under a new title with a fresh streak."""
        routine = await self._routines.load_routine(routine_id)
        await self._authorize(routine, user_id, "duplicate")

        return await self.store.create(
            ROUTINES_TABLE,
            {
                "id": new_id("routine"),
                "child_id": routine["child_id"],
                "title": f"{routine.get('title', '')} (Copy)",
                "schedule_json": routine.get("schedule_json"),
                "streak_count": "0",
            },
        )
