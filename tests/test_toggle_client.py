"""
Tests for the toggle client: endpoint first, local engine on failure, and
the in-flight guard.
"""

import asyncio
import json

import httpx
import pytest

from famops.errors import BadRequestError, NotFoundError
from famops.routines.guard import InFlightGuard
from famops.routines.toggle_client import RoutineToggleClient

DAY = "2025-01-06"
URL = "https://functions.example.test/routine-task-toggle"


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestInFlightGuard:
    def test_second_claim_is_refused(self):
        guard = InFlightGuard()
        with guard.claim("r1", 0) as first:
            assert first is True
            assert guard.is_busy("r1", 0)
            with guard.claim("r1", 0) as second:
                assert second is False
            # A refused claim does not release the holder's slot
            assert guard.is_busy("r1", 0)
        assert not guard.is_busy("r1", 0)

    def test_different_tasks_do_not_block(self):
        guard = InFlightGuard()
        with guard.claim("r1", 0) as a, guard.claim("r1", 1) as b, guard.claim("r2", 0) as c:
            assert (a, b, c) == (True, True, True)

    def test_slot_released_on_error(self):
        guard = InFlightGuard()
        with pytest.raises(RuntimeError):
            with guard.claim("r1", 0):
                raise RuntimeError("boom")
        assert not guard.is_busy("r1", 0)

    def test_digit_string_and_int_share_a_slot(self):
        guard = InFlightGuard()
        with guard.claim("r1", 2):
            assert guard.is_busy("r1", "2")

    def test_non_numeric_index_is_left_to_the_engine(self):
        guard = InFlightGuard()
        with guard.claim("r1", "abc") as acquired:
            assert acquired is True

    def test_non_numeric_index_is_bad_request(self, household):
        client = RoutineToggleClient(household)
        with pytest.raises(BadRequestError):
            _run(client.toggle("routine_4", "abc", True, DAY))
        assert not client.guard.is_busy("routine_4", "abc")


class TestRemoteToggle:
    def test_uses_endpoint_response(self, household):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "completed": 2, "total": 4, "streak": 9})

        client = RoutineToggleClient(household, url=URL, http_client=_client(handler))
        result = _run(client.toggle("routine_4", 1, True, DAY))

        assert result.to_dict() == {"completed": 2, "total": 4, "streak": 9}
        assert seen["body"] == {"routineId": "routine_4", "taskIndex": 1, "date": DAY, "checked": True}
        # Nothing written locally
        assert household.rows("routine_task_logs") == []

    def test_error_status_falls_back_to_local(self, household):
        def handler(request):
            return httpx.Response(500, json={"error": "Internal server error"})

        client = RoutineToggleClient(household, url=URL, http_client=_client(handler))
        result = _run(client.toggle("routine_4", 0, True, DAY))

        assert result.to_dict() == {"completed": 1, "total": 4, "streak": 5}
        assert len(household.rows("routine_task_logs")) == 1

    def test_transport_error_falls_back_to_local(self, household):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = RoutineToggleClient(household, url=URL, http_client=_client(handler))
        result = _run(client.toggle("routine_4", 0, True, DAY))
        assert result.completed == 1

    def test_local_fallback_clears_instead_of_deleting(self, household):
        def handler(request):
            return httpx.Response(503)

        client = RoutineToggleClient(household, url=URL, http_client=_client(handler))
        _run(client.toggle("routine_4", 0, True, DAY))
        result = _run(client.toggle("routine_4", 0, False, DAY))

        assert result.completed == 0
        rows = household.rows("routine_task_logs")
        assert [r["checked"] for r in rows] == ["0"]

    def test_no_url_toggles_locally(self, household):
        client = RoutineToggleClient(household)
        result = _run(client.toggle("routine_4", 3, True, DAY))
        assert result.completed == 1

    def test_local_not_found_propagates(self, household):
        client = RoutineToggleClient(household)
        with pytest.raises(NotFoundError):
            _run(client.toggle("missing", 0, True, DAY))


class TestOverlappingToggles:
    def test_overlapping_toggle_for_same_task_is_dropped(self, household):
        async def scenario():
            release = asyncio.Event()

            async def handler(request):
                await release.wait()
                return httpx.Response(200, json={"completed": 1, "total": 4, "streak": 5})

            client = RoutineToggleClient(household, url=URL, http_client=_client(handler))
            first = asyncio.ensure_future(client.toggle("routine_4", 0, True, DAY))
            await asyncio.sleep(0.01)
            second = await client.toggle("routine_4", 0, True, DAY)
            other_task = client.guard.is_busy("routine_4", 1)
            release.set()
            return await first, second, other_task

        first, second, other_task = _run(scenario())

        assert first.completed == 1
        assert second is None
        assert other_task is False
