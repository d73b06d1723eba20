"""
Famops - In-flight toggle guard.

Process-local: drops a second toggle for the same (routine, task) while the
first is still running. It does not serialize toggles on different tasks.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)


class InFlightGuard:
    def __init__(self):
        self._active: set[tuple[str, str]] = set()

    @staticmethod
    def _key(routine_id: str, task_index: Any) -> tuple[str, str]:
        # Raw index as text; validating it is the engine's job
        return routine_id, str(task_index).strip()

    def is_busy(self, routine_id: str, task_index: Any) -> bool:
        return self._key(routine_id, task_index) in self._active

    @contextmanager
    def claim(self, routine_id: str, task_index: Any) -> Iterator[bool]:
        """
        Yield True if this caller owns the (routine, task) slot, False if another
        toggle already holds it. The slot is released on exit.
        """
        key = self._key(routine_id, task_index)
        if key in self._active:
            logger.info(f"Toggle already in flight for routine {routine_id} task {task_index}, dropping")
            yield False
            return

        self._active.add(key)
        try:
            yield True
        finally:
            self._active.discard(key)
