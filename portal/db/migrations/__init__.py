"""Versioned schema migrations.

Files in this directory are named ``NNN_description.sql``. Each one runs in
its own transaction together with the ``schema_migrations`` row that
records it, so a failed file leaves the version unchanged.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from psycopg.rows import dict_row

from portal.db.core import _get_connection

logger = logging.getLogger("portal.db.migrations")

MIGRATIONS_DIR = Path(__file__).parent

_VERSION_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        version INTEGER PRIMARY KEY,
        applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        description TEXT
    );
"""


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    path: Path

    @property
    def filename(self) -> str:
        return self.path.name

    def read(self) -> str:
        return self.path.read_text(encoding="utf-8")


def _parse_name(path: Path) -> Migration | None:
    number, _, description = path.stem.partition("_")
    if not number.isdigit():
        return None
    return Migration(int(number), description, path)


def discover_migrations(after: int = 0) -> list[Migration]:
    """Migration files newer than version ``after``, oldest first."""
    found = (_parse_name(p) for p in MIGRATIONS_DIR.glob("*.sql"))
    return sorted((m for m in found if m is not None and m.version > after), key=lambda m: m.version)


async def get_current_version() -> int:
    async with _get_connection() as conn:
        await conn.execute(_VERSION_TABLE)
        cur = await conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
        row = await cur.fetchone()
    return int(row[0]) if row and row[0] else 0


async def apply_migration(version: int, sql: str, description: str = "") -> bool:
    """Run ``sql`` and record ``version``; False when it was already applied."""
    if version <= await get_current_version():
        logger.debug("migration %03d already applied", version)
        return False

    async with _get_connection(autocommit=False) as conn:
        async with conn.transaction():
            await conn.execute(sql)
            await conn.execute(
                "INSERT INTO schema_migrations (version, description) VALUES (%s, %s)",
                (version, description),
            )
    logger.info("migration %03d applied (%s)", version, description)
    return True


async def get_pending_migrations() -> list[Migration]:
    return discover_migrations(after=await get_current_version())


async def run_migrations() -> int:
    """Apply every pending migration in order; returns how many ran."""
    applied = 0
    for migration in await get_pending_migrations():
        try:
            ran = await apply_migration(migration.version, migration.read(), migration.description)
        except Exception:
            logger.error("migration %s failed", migration.filename)
            raise
        applied += int(ran)
    return applied


async def get_migration_history() -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        await conn.execute(_VERSION_TABLE)
        cur = conn.cursor(row_factory=dict_row)
        await cur.execute("SELECT version, applied_at, description FROM schema_migrations ORDER BY version")
        return await cur.fetchall()
