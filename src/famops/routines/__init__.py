"""
Famops - Routines.

Completion engine, toggle client and routine maintenance.
"""

from famops.routines.engine import RoutineEngine, StreakRepair, TaskLogState, ToggleResult, UncheckMode
from famops.routines.guard import InFlightGuard
from famops.routines.migrate import MigrationResult, migrate_task_logs
from famops.routines.service import RoutineService
from famops.routines.toggle_client import RoutineToggleClient

__all__ = [
    "InFlightGuard",
    "MigrationResult",
    "RoutineEngine",
    "RoutineService",
    "RoutineToggleClient",
    "StreakRepair",
    "TaskLogState",
    "ToggleResult",
    "UncheckMode",
    "migrate_task_logs",
]
