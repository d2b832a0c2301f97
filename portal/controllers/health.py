import logging

from fastapi import APIRouter
from redis.exceptions import RedisError

from portal import db, state

logger = logging.getLogger("portal.health")
router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    redis_status = "disconnected"
    if state.redis_client:
        try:
            await state.redis_client.ping()
            redis_status = "healthy"
        except RedisError as e:
            logger.warning("redis ping failed: %s", e)
            redis_status = "unhealthy"

    database_status = "disabled"
    if state.db_enabled:
        database_status = "healthy" if await db.ping() else "unhealthy"

    return {"status": "ok", "redis": redis_status, "database": database_status}
