"""Login sessions kept in Redis.

``SessionStore`` is the only writer of session records. Routes never look
sessions up themselves; they receive a ``SessionContext`` through
``portal.dependencies.current_session`` / ``require_role``.
"""

import logging
import secrets
import uuid

import redis.asyncio as redis
from pydantic import BaseModel

from portal.models.profiles import Role

logger = logging.getLogger("portal.session")


class SessionContext(BaseModel):
    session_id: str
    user_id: str
    email: str
    role: Role
    logged_in: bool = True


def user_id_for_email(email: str) -> str:
    """Stable user id for an email address."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"portal:{email.strip().lower()}"))


class SessionStore:
    def __init__(self, redis_client: redis.Redis, ttl_sec: int, key_prefix: str = "portal:session:"):
        self.redis_client = redis_client
        self.ttl_sec = ttl_sec
        self.key_prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def login(self, role: Role, email: str, user_id: str | None = None) -> SessionContext:
        ctx = SessionContext(
            session_id=secrets.token_urlsafe(24),
            user_id=user_id or user_id_for_email(email),
            email=email.strip().lower(),
            role=role,
        )
        await self.redis_client.setex(self._key(ctx.session_id), self.ttl_sec, ctx.model_dump_json())
        logger.info("session.login role=%s user=%s", role, ctx.user_id)
        return ctx

    async def get(self, session_id: str) -> SessionContext | None:
        raw = await self.redis_client.get(self._key(session_id))
        logger.debug("session.get session=%s hit=%s", session_id[:6], raw is not None)
        if raw is None:
            return None
        return SessionContext.model_validate_json(raw)

    async def logout(self, session_id: str) -> bool:
        removed = await self.redis_client.delete(self._key(session_id))
        if removed:
            logger.info("session.logout session=%s", session_id[:6])
        return bool(removed)
