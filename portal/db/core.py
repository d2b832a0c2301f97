"""Postgres connections for the database-backed mode.

One process-wide ``AsyncConnectionPool`` is opened by the lifespan when
``ENABLE_PERSISTENCE`` is set. Query modules borrow connections through
``_get_connection``; without a pool (scripts, one-off tools) it opens a
direct connection instead.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from portal.config import PostgresSettings, get_settings

logger = logging.getLogger("portal.db")

_pool: AsyncConnectionPool | None = None


def _build_pool(cfg: PostgresSettings) -> AsyncConnectionPool:
    return AsyncConnectionPool(
        cfg.get_dsn(),
        min_size=cfg.pool_min_size,
        max_size=cfg.pool_max_size,
        timeout=cfg.pool_timeout,
        max_idle=cfg.pool_max_idle,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )


async def init_pool() -> None:
    """Open the pool and migrate the schema. A second call is a no-op."""
    global _pool
    if _pool is not None:
        return
    cfg = get_settings().postgres
    pool = _build_pool(cfg)
    await pool.open()
    _pool = pool
    logger.info("postgres pool open host=%s db=%s size=%d..%d", cfg.host, cfg.database, cfg.pool_min_size, cfg.pool_max_size)

    from portal.db.schema import _ensure_schema

    await _ensure_schema()


async def close_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is not None:
        await pool.close()
        logger.info("postgres pool closed")


@asynccontextmanager
async def _get_connection(autocommit: bool = True) -> AsyncIterator[psycopg.AsyncConnection]:
    """Borrow a connection. ``autocommit=False`` is for explicit transactions."""
    if _pool is None:
        dsn = get_settings().postgres.get_dsn()
        async with await psycopg.AsyncConnection.connect(dsn, autocommit=autocommit) as conn:
            yield conn
        return
    async with _pool.connection() as conn:
        if autocommit:
            await conn.set_autocommit(True)
        yield conn


async def ping() -> bool:
    try:
        async with _get_connection() as conn:
            await conn.execute("SELECT 1")
    except psycopg.Error as e:
        logger.warning("postgres ping failed: %s", e)
        return False
    return True
