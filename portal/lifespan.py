"""Startup and shutdown of the portal's shared resources.

Startup opens Redis (login sessions), builds the session store and the
store registry, and opens Postgres only when persistence is enabled. If
Postgres cannot be reached the portal keeps running on in-memory stores.
"""

import logging
from dataclasses import dataclass

import psycopg
import redis.asyncio as redis
from redis.asyncio import BlockingConnectionPool

from portal import db, state
from portal.config import Settings, get_settings
from portal.session import SessionStore
from portal.stores.registry import StoreRegistry

logger = logging.getLogger("portal.lifespan")


@dataclass
class LifespanResources:
    redis_client: redis.Redis | None = None
    session_store: SessionStore | None = None
    registry: StoreRegistry | None = None
    db_enabled: bool = False

    def publish(self) -> None:
        """Expose these resources to request handlers via ``portal.state``."""
        state.redis_client = self.redis_client
        state.session_store = self.session_store
        state.registry = self.registry
        state.db_enabled = self.db_enabled


async def init_redis() -> redis.Redis:
    cfg = get_settings()
    pool = BlockingConnectionPool(
        host=cfg.redis.host,
        port=cfg.redis.port,
        password=cfg.redis.password or None,
        max_connections=cfg.redis.max_connections,
        timeout=cfg.redis.pool_timeout_sec,
        socket_timeout=cfg.redis.socket_timeout,
        socket_connect_timeout=cfg.redis.socket_connect_timeout,
        decode_responses=True,
    )
    if cfg.debug.redis:
        logging.getLogger("portal.session").setLevel(logging.DEBUG)
    return redis.Redis(connection_pool=pool)


async def init_database() -> bool:
    """True when the database-backed mode is on and the pool opened."""
    if not get_settings().features.persistence:
        logger.info("persistence disabled, using in-memory stores")
        return False
    try:
        await db.init_pool()
    except (psycopg.Error, OSError) as e:
        logger.warning("database unavailable, falling back to in-memory stores: %s", e)
        return False
    return True


def _session_store(client: redis.Redis, cfg: Settings) -> SessionStore:
    return SessionStore(client, ttl_sec=cfg.session.ttl_sec, key_prefix=cfg.session.key_prefix)


async def setup_resources(enable_db: bool = True) -> LifespanResources:
    cfg = get_settings()
    client = await init_redis()
    db_enabled = await init_database() if enable_db else False

    resources = LifespanResources(
        redis_client=client,
        session_store=_session_store(client, cfg),
        registry=StoreRegistry(cfg, persistent=db_enabled),
        db_enabled=db_enabled,
    )
    resources.publish()
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    if resources.registry is not None:
        resources.registry.clear()
    if resources.db_enabled:
        try:
            await db.close_pool()
        except psycopg.Error as e:
            logger.warning("closing the database pool failed: %s", e)
    if resources.redis_client is not None:
        await resources.redis_client.aclose()
    LifespanResources().publish()
