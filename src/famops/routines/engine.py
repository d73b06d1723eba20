"""
Famops - Routine Completion Engine.

A day is complete for a routine when every visible task (the first four)
has a checked log on that date. The streak counter moves by one on each
completion transition and never goes below zero.

"Unchecked" has two stored shapes: no log row at all, or a row with a falsy
`checked` value. Both are read through one tri-state lookup so every call
path counts them the same way.
"""

import json
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from famops.dates import is_iso_date
from famops.db.adapter import RecordStore
from famops.db.ids import new_id
from famops.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

ROUTINES_TABLE = "routines"
TASK_LOGS_TABLE = "routine_task_logs"
ROUTINE_LOGS_TABLE = "routine_logs"

MAX_VISIBLE_TASKS = 4


class UncheckMode(str, Enum):
    """How an unchecked task is stored."""

    DELETE = "delete"  # remove the log row
    CLEAR = "clear"  # keep the row with checked="0"


class TaskLogState(Enum):
    ABSENT = "absent"
    CHECKED = "checked"
    CLEARED = "cleared"


@dataclass
class ToggleResult:
    completed: int
    total: int
    streak: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class DayToggleResult:
    completed: bool
    streak: int


@dataclass
class StreakRepair:
    streak: int
    previous: int
    events_created: int = 0
    events_deleted: int = 0

    @property
    def changed(self) -> bool:
        return self.streak != self.previous or bool(self.events_created or self.events_deleted)


# =============================================================================
# Reading stored values
# =============================================================================


def is_checked(value: Any) -> bool:
    """Stored flags are "1"/"0", 1/0 or booleans; anything non-numeric is unchecked."""
    if isinstance(value, bool):
        return value
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def parse_streak(value: Any) -> int:
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError):
        return 0


def parse_schedule(routine: dict[str, Any]) -> dict[str, Any]:
    raw = routine.get("schedule_json")
    if isinstance(raw, dict):
        return raw
    try:
        schedule = json.loads(raw or "{}")
    except (TypeError, json.JSONDecodeError):
        logger.warning(f"Routine {routine.get('id')} has an unreadable schedule")
        return {"tasks": []}
    return schedule if isinstance(schedule, dict) else {"tasks": []}


def task_count(routine: dict[str, Any]) -> int:
    tasks = parse_schedule(routine).get("tasks")
    return len(tasks) if isinstance(tasks, list) else 0


def visible_count(total_tasks: int) -> int:
    return min(total_tasks, MAX_VISIBLE_TASKS)


def _log_index(log: dict[str, Any]) -> int | None:
    try:
        index = int(log.get("task_index"))
    except (TypeError, ValueError):
        return None
    return index if index >= 0 else None


def index_logs(logs: list[dict[str, Any]]) -> dict[int, TaskLogState]:
    """
    Tri-state view of one day's task logs.

    Indices missing from the result are ABSENT. A checked row wins over a
    cleared duplicate.
    """
    states: dict[int, TaskLogState] = {}
    for log in logs:
        index = _log_index(log)
        if index is None:
            continue
        if is_checked(log.get("checked")):
            states[index] = TaskLogState.CHECKED
        else:
            states.setdefault(index, TaskLogState.CLEARED)
    return states


def state_of(states: dict[int, TaskLogState], index: int) -> TaskLogState:
    return states.get(index, TaskLogState.ABSENT)


def checked_indices(states: dict[int, TaskLogState], visible: int) -> set[int]:
    return {i for i in range(visible) if state_of(states, i) is TaskLogState.CHECKED}


def is_complete(checked: set[int], visible: int) -> bool:
    return visible > 0 and len(checked) == visible


def _require_task_index(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise BadRequestError("taskIndex required")
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    if isinstance(value, int) and value >= 0:
        return value
    raise BadRequestError(f"taskIndex must be a non-negative integer, got {value!r}")


# =============================================================================
# Engine
# =============================================================================


class RoutineEngine:
    """
    Toggle, day-toggle and streak repair against a record store.

    The read-mutate-recompute-write sequence is not atomic. Overlapping
    toggles on the same task are dropped upstream by InFlightGuard; toggles
    on different tasks of one routine/date can race on streak_count (last
    write wins) and are repaired by recompute_streak.
    """

    def __init__(self, store: RecordStore, uncheck_mode: UncheckMode = UncheckMode.DELETE):
        self.store = store
        self.uncheck_mode = uncheck_mode

    async def load_routine(self, routine_id: str) -> dict[str, Any]:
        found = await self.store.list(ROUTINES_TABLE, {"id": routine_id}, limit=1)
        if not found:
            raise NotFoundError("Routine not found")
        return found[0]

    async def _day_logs(self, routine_id: str, date: str) -> list[dict[str, Any]]:
        return await self.store.list(TASK_LOGS_TABLE, {"routine_id": routine_id, "date": date})

    async def toggle_task(self, routine_id: str, task_index: Any, checked: bool, date: str) -> ToggleResult:
        """
        Check or uncheck one task on one day and adjust the streak.

        Raises:
            BadRequestError: Missing or malformed routine id, task index or date
            NotFoundError: Routine does not exist
        """
        if not routine_id:
            raise BadRequestError("routineId required")
        index = _require_task_index(task_index)
        if not date:
            raise BadRequestError("date required")
        if not is_iso_date(date):
            raise BadRequestError(f"date must be YYYY-MM-DD, got {date!r}")

        routine = await self.load_routine(routine_id)
        total_tasks = task_count(routine)
        if index >= total_tasks:
            raise BadRequestError(f"taskIndex {index} out of range for {total_tasks} tasks")
        visible = visible_count(total_tasks)
        previous = parse_streak(routine.get("streak_count"))

        before_logs = await self._day_logs(routine_id, date)
        was_complete = is_complete(checked_indices(index_logs(before_logs), visible), visible)

        await self._apply(routine_id, index, date, bool(checked), before_logs)

        after = checked_indices(index_logs(await self._day_logs(routine_id, date)), visible)
        now_complete = is_complete(after, visible)

        streak = previous
        if not was_complete and now_complete:
            streak = previous + 1
            await self._record_completion(routine_id, date)
        elif was_complete and not now_complete:
            streak = max(0, previous - 1)
            await self._clear_completion(routine_id, date)

        if streak != previous:
            await self.store.update(ROUTINES_TABLE, routine_id, {"streak_count": str(streak)})

        logger.info(f"Routine {routine_id} task {index} on {date} -> {checked}: {len(after)}/{visible}, streak {streak}")
        return ToggleResult(completed=len(after), total=visible, streak=streak)

    async def _apply(
        self,
        routine_id: str,
        index: int,
        date: str,
        checked: bool,
        day_logs: list[dict[str, Any]],
    ) -> None:
        rows = [log for log in day_logs if _log_index(log) == index]

        if checked:
            if not rows:
                await self.store.create(
                    TASK_LOGS_TABLE,
                    {"id": new_id("tasklog"), "routine_id": routine_id, "task_index": index, "date": date, "checked": "1"},
                )
            elif not any(is_checked(r.get("checked")) for r in rows):
                await self.store.update(TASK_LOGS_TABLE, rows[0]["id"], {"checked": "1"})
            return

        for row in rows:
            if self.uncheck_mode is UncheckMode.DELETE:
                await self.store.delete(TASK_LOGS_TABLE, row["id"])
            elif is_checked(row.get("checked")):
                await self.store.update(TASK_LOGS_TABLE, row["id"], {"checked": "0"})

    async def _record_completion(self, routine_id: str, date: str) -> bool:
        """Ensure a completed routine log exists for the date. True if one was written."""
        existing = await self.store.list(ROUTINE_LOGS_TABLE, {"routine_id": routine_id, "date": date})
        if any(is_checked(e.get("completed")) for e in existing):
            return False
        if existing:
            await self.store.update(ROUTINE_LOGS_TABLE, existing[0]["id"], {"completed": "1"})
        else:
            await self.store.create(
                ROUTINE_LOGS_TABLE,
                {"id": new_id("routinelog"), "routine_id": routine_id, "date": date, "completed": "1"},
            )
        return True

    async def _clear_completion(self, routine_id: str, date: str) -> int:
        return await self.store.delete_many(ROUTINE_LOGS_TABLE, {"routine_id": routine_id, "date": date})

    async def toggle_day(self, routine_id: str, completed: bool, date: str) -> DayToggleResult:
        """
        Manually mark a whole day complete or incomplete.

        Only routine logs are touched. Repeating the current state is a no-op.
        """
        if not is_iso_date(date):
            raise BadRequestError(f"date must be YYYY-MM-DD, got {date!r}")

        routine = await self.load_routine(routine_id)
        current = parse_streak(routine.get("streak_count"))

        if completed:
            if not await self._record_completion(routine_id, date):
                return DayToggleResult(completed=True, streak=current)
            streak = current + 1
        else:
            existing = await self.store.list(ROUTINE_LOGS_TABLE, {"routine_id": routine_id, "date": date})
            if not any(is_checked(e.get("completed")) for e in existing):
                return DayToggleResult(completed=False, streak=current)
            await self._clear_completion(routine_id, date)
            streak = max(0, current - 1)

        await self.store.update(ROUTINES_TABLE, routine_id, {"streak_count": str(streak)})
        return DayToggleResult(completed=completed, streak=streak)

    async def recompute_streak(self, routine_id: str) -> StreakRepair:
        """
        Rebuild completion events and the streak counter from task logs.

        Dates whose visible tasks are all checked get an event; dates that have
        task logs but are not complete lose theirs. Dates without any task logs
        (manual day marks) are left as they are. The streak becomes the number
        of dates with a completion event.
        """
        routine = await self.load_routine(routine_id)
        visible = visible_count(task_count(routine))
        previous = parse_streak(routine.get("streak_count"))

        by_date: dict[str, list[dict[str, Any]]] = {}
        for log in await self.store.list(TASK_LOGS_TABLE, {"routine_id": routine_id}):
            by_date.setdefault(str(log.get("date")), []).append(log)
        complete = {d for d, logs in by_date.items() if is_complete(checked_indices(index_logs(logs), visible), visible)}

        events = await self.store.list(ROUTINE_LOGS_TABLE, {"routine_id": routine_id})
        event_dates = {str(e.get("date")) for e in events if is_checked(e.get("completed"))}

        repair = StreakRepair(streak=0, previous=previous)
        for day in sorted(complete - event_dates):
            if await self._record_completion(routine_id, day):
                repair.events_created += 1
        for day in sorted((event_dates & by_date.keys()) - complete):
            repair.events_deleted += await self._clear_completion(routine_id, day)

        kept_manual = event_dates - by_date.keys()
        repair.streak = len(complete | kept_manual)
        if repair.streak != previous:
            await self.store.update(ROUTINES_TABLE, routine_id, {"streak_count": str(repair.streak)})

        if repair.changed:
            logger.info(
                f"Repaired routine {routine_id}: streak {previous} -> {repair.streak}, "
                f"{repair.events_created} events created, {repair.events_deleted} deleted"
            )
        return repair
