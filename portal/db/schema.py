"""Schema bootstrap for the activity tables (see ``migrations/``)."""

import logging
from typing import Any

from portal.db.migrations import get_current_version, get_migration_history, get_pending_migrations, run_migrations

logger = logging.getLogger("portal.db")


async def _ensure_schema() -> None:
    """Apply whatever migrations the database has not seen yet."""
    before = await get_current_version()
    if await run_migrations():
        logger.info("schema migrated v%d -> v%d", before, await get_current_version())
    else:
        logger.info("schema current at v%d", before)


async def get_schema_info() -> dict[str, Any]:
    pending = await get_pending_migrations()
    return {
        "current_version": await get_current_version(),
        "pending": [m.filename for m in pending],
        "migration_history": await get_migration_history(),
    }
