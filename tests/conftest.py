"""
Pytest configuration and fixtures for famops tests.
"""

import asyncio
import json
import os
from unittest.mock import MagicMock

import pytest

# Set test environment before importing famops modules
os.environ["FAMOPS_ENV"] = "development"
os.environ["STORE_BACKEND"] = "memory"
os.environ.pop("OPENAI_API_KEY", None)

from famops.db import MemoryStore
from famops.generation.access import AccessConfig, AccessGate


FAMILY_ID = "family_1"
OWNER_ID = "user_owner"
CHILD_USER_ID = "user_kid"
CHILD_ID = "child_1"


def routine_record(routine_id: str, tasks: list[str], streak: int | str = "0", child_id: str = CHILD_ID) -> dict:
    return {
        "id": routine_id,
        "child_id": child_id,
        "title": f"Routine {routine_id}",
        "schedule_json": json.dumps({"type": "daily", "time": "07:00", "days": ["mon", "tue"], "tasks": tasks}),
        "streak_count": str(streak),
    }


@pytest.fixture
def store():
    """Empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def household(store):
    """
    A family with an owner, a child member, one child and two routines:
    `routine_4` (four tasks) and `routine_6` (six tasks, only four visible).
    """
    store.seed(
        "family_members",
        [
            {"id": "m1", "family_id": FAMILY_ID, "user_id": OWNER_ID, "role": "owner"},
            {"id": "m2", "family_id": FAMILY_ID, "user_id": CHILD_USER_ID, "role": "child"},
        ],
    )
    store.seed("children", [{"id": CHILD_ID, "family_id": FAMILY_ID, "name": "Sam"}])
    store.seed(
        "routines",
        [
            routine_record("routine_4", ["Brush teeth", "Get dressed", "Breakfast", "Pack bag"], streak=5),
            routine_record("routine_6", ["A", "B", "C", "D", "E", "F"]),
        ],
    )
    store.seed(
        "subscriptions",
        [
            {
                "id": "sub_1",
                "family_id": FAMILY_ID,
                "status": "active",
                "current_period_end": "2999-01-01T00:00:00+00:00",
            }
        ],
    )
    return store


@pytest.fixture
def access(household):
    """Gate with no overrides."""
    return AccessGate(household, AccessConfig())


class FakeGenerator:
    """ContentGenerator returning canned responses (or raising) in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, dict]] = []

    async def generate(self, kind, payload):
        self.calls.append((kind, payload))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return response


class SlowGenerator:
    """ContentGenerator that answers only after `delay` seconds."""

    def __init__(self, delay: float, response=None):
        self.delay = delay
        self.response = response
        self.finished = False

    async def generate(self, kind, payload):
        await asyncio.sleep(self.delay)
        self.finished = True
        return self.response


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "neq", "gt", "lt", "gte", "lte", "in_", "like",
                   "ilike", "is_", "order", "limit"):
        getattr(mock_table, method).return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table

    return mock_client


@pytest.fixture
def mock_openai():
    """Mock AsyncOpenAI client for unit tests."""
    mock_client = MagicMock()

    async def create(**kwargs):
        mock_client.last_request = kwargs
        return MagicMock(choices=[MagicMock(message=MagicMock(content=mock_client.reply))])

    mock_client.reply = '{"items": [{"name": "Sunscreen", "qty": "1", "category": "Toiletries"}]}'
    mock_client.chat.completions.create = create

    return mock_client


@pytest.fixture
def fake_generator():
    """Factory: fake_generator(response, ...) -> FakeGenerator."""
    return FakeGenerator


@pytest.fixture
def slow_generator():
    """Factory: slow_generator(delay, response=None) -> SlowGenerator."""
    return SlowGenerator


@pytest.fixture
def add_routine(store):
    """Factory: add_routine(routine_id, tasks, streak=0) seeds a routine and returns it."""

    def _add(routine_id: str, tasks: list[str], streak: int | str = 0) -> dict:
        record = routine_record(routine_id, tasks, streak)
        store.seed("routines", [record])
        return record

    return _add
