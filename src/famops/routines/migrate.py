"""
Famops - Legacy task log migration.

Early versions stored per-task checks in routine_logs under ids of the form
`tasklog_{routine_id}_{task_index}_{YYYY-MM-DD}`. This moves them into
routine_task_logs and deletes the legacy rows. Safe to run repeatedly.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

from famops.db.adapter import RecordStore
from famops.routines.engine import ROUTINE_LOGS_TABLE, TASK_LOGS_TABLE, is_checked

logger = logging.getLogger(__name__)

LEGACY_PREFIX = "tasklog_"

# Routine ids may themselves contain underscores
_LEGACY_ID_RE = re.compile(r"^tasklog_(?P<routine_id>.+)_(?P<task_index>\d+)_(?P<date>\d{4}-\d{2}-\d{2})$")


@dataclass
class MigrationResult:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0


def parse_legacy_id(record_id: str) -> tuple[str, int, str] | None:
    match = _LEGACY_ID_RE.match(record_id or "")
    if not match:
        return None
    return match["routine_id"], int(match["task_index"]), match["date"]


async def migrate_task_logs(store: RecordStore) -> MigrationResult:
    legacy = await store.list(ROUTINE_LOGS_TABLE, {"id": {"startswith": LEGACY_PREFIX}})
    result = MigrationResult()

    for row in legacy:
        parsed = parse_legacy_id(row["id"])
        if parsed is None:
            logger.warning(f"Skipping unparseable legacy task log id {row['id']}")
            result.skipped += 1
            continue

        routine_id, task_index, date = parsed
        checked = "1" if is_checked(row.get("checked")) else "0"
        existing: list[dict[str, Any]] = await store.list(
            TASK_LOGS_TABLE, {"routine_id": routine_id, "task_index": task_index, "date": date}, limit=1
        )

        if not existing:
            await store.create(
                TASK_LOGS_TABLE,
                {"id": row["id"], "routine_id": routine_id, "task_index": task_index, "date": date, "checked": checked},
            )
            result.created += 1
        elif "checked" in row and existing[0].get("checked") != checked:
            await store.update(TASK_LOGS_TABLE, existing[0]["id"], {"checked": checked})
            result.updated += 1

        await store.delete(ROUTINE_LOGS_TABLE, row["id"])
        result.deleted += 1

    logger.info(
        f"Task log migration: {result.created} created, {result.updated} updated, "
        f"{result.deleted} legacy rows deleted, {result.skipped} skipped"
    )
    return result
