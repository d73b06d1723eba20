"""
Famops - Routine toggle client.

Calls the routine toggle endpoint and, when it is unreachable or answers
with an error, runs the same engine locally. The local path stores
unchecked tasks as checked="0" rows; the endpoint deletes them. Completion
counts are identical either way.
"""

import logging
from typing import Any

import httpx

from famops.dates import today_iso
from famops.db.adapter import RecordStore
from famops.routines.engine import RoutineEngine, ToggleResult, UncheckMode
from famops.routines.guard import InFlightGuard

logger = logging.getLogger(__name__)


class RoutineToggleClient:
    """
    Args:
        store: Store used by the local fallback engine
        url: Toggle endpoint; empty means always toggle locally
        http_client: Injected AsyncClient (tests); otherwise one per call
        guard: Shared in-flight guard
        timeout: Request timeout in seconds
        timezone: Zone used when no date is given
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        guard: InFlightGuard | None = None,
        timeout: float = 10.0,
        timezone: str = "America/New_York",
    ):
        self.url = url or ""
        self.http_client = http_client
        self.guard = guard or InFlightGuard()
        self.timeout = timeout
        self.timezone = timezone
        self.local = RoutineEngine(store, uncheck_mode=UncheckMode.CLEAR)

    async def toggle(
        self,
        routine_id: str,
        task_index: int,
        checked: bool,
        date: str | None = None,
    ) -> ToggleResult | None:
        """
        Toggle a task. Returns None when an identical toggle is already running.

        Errors from the local engine (not found, bad request, store failures)
        propagate.
        """
        day = date or today_iso(self.timezone)

        with self.guard.claim(routine_id, task_index) as acquired:
            if not acquired:
                return None

            if self.url:
                try:
                    return await self._remote(routine_id, task_index, checked, day)
                except (httpx.HTTPError, ValueError) as e:
                    logger.warning(f"Toggle endpoint failed for routine {routine_id}, toggling locally: {e}")

            return await self.local.toggle_task(routine_id, task_index, checked, day)

    async def _remote(self, routine_id: str, task_index: int, checked: bool, date: str) -> ToggleResult:
        body = {"routineId": routine_id, "taskIndex": task_index, "date": date, "checked": checked}

        if self.http_client is not None:
            response = await self.http_client.post(self.url, json=body, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=body)

        response.raise_for_status()
        data: dict[str, Any] = response.json()
        if not isinstance(data, dict):
            raise ValueError("toggle endpoint returned a non-object body")
        return ToggleResult(
            completed=int(data.get("completed") or 0),
            total=int(data.get("total") or 0),
            streak=int(data.get("streak") or 0),
        )
