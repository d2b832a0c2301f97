"""Dependency injection for FastAPI endpoints.

This module provides FastAPI dependencies for the shared resources set up
in the lifespan (Redis, the session store, the store registry) and for the
current login session. Routes never read ``portal.state`` directly.

Usage in controllers:
    from portal.dependencies import ParticipantSession, Registry

    @router.get("/example")
    async def example(session: ParticipantSession, registry: Registry):
        handle = await registry.get(session)
        return handle.store.my_activities
"""

from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends, Header

from portal import state
from portal.errors import ForbiddenError, ServiceUnavailableError, UnauthorizedError
from portal.models.profiles import Role
from portal.session import SessionContext, SessionStore
from portal.stores.registry import StoreHandle, StoreRegistry

SESSION_HEADER = "X-Session-Id"


def get_redis() -> redis.Redis:
    """Get the Redis client.

    Raises:
        ServiceUnavailableError: If Redis is not connected.
    """
    if state.redis_client is None:
        raise ServiceUnavailableError(detail="Redis not connected")
    return state.redis_client


def get_session_store() -> SessionStore:
    if state.session_store is None:
        raise ServiceUnavailableError(detail="Session store not initialized")
    return state.session_store


def get_registry() -> StoreRegistry:
    if state.registry is None:
        raise ServiceUnavailableError(detail="Store registry not initialized")
    return state.registry


def database_enabled() -> bool:
    return state.db_enabled


def require_database() -> None:
    """Fail with 503 unless the database-backed mode is active."""
    if not state.db_enabled:
        raise ServiceUnavailableError(detail="Persistence is disabled")


async def current_session(
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    x_session_id: Annotated[str | None, Header()] = None,
) -> SessionContext:
    """Resolve the ``X-Session-Id`` header to a live session.

    Raises:
        UnauthorizedError: If the header is missing or the session expired.
    """
    if not x_session_id:
        raise UnauthorizedError(detail="Missing session header")
    session = await sessions.get(x_session_id)
    if session is None or not session.logged_in:
        raise UnauthorizedError(detail="Session expired or unknown")
    return session


def require_role(*roles: Role):
    """Dependency factory admitting only sessions whose role is in ``roles``."""

    async def _check(session: Annotated[SessionContext, Depends(current_session)]) -> SessionContext:
        if session.role not in roles:
            raise ForbiddenError(
                detail=f"Requires role: {', '.join(roles)}",
                required=list(roles),
                role=session.role,
            )
        return session

    return _check


async def get_participant_handle(
    session: Annotated[SessionContext, Depends(require_role("participant"))],
    registry: Annotated[StoreRegistry, Depends(get_registry)],
) -> StoreHandle:
    return await registry.get(session)


async def get_volunteer_handle(
    session: Annotated[SessionContext, Depends(require_role("volunteer"))],
    registry: Annotated[StoreRegistry, Depends(get_registry)],
) -> StoreHandle:
    return await registry.get(session)


Sessions = Annotated[SessionStore, Depends(get_session_store)]
Registry = Annotated[StoreRegistry, Depends(get_registry)]
DatabaseEnabled = Annotated[bool, Depends(database_enabled)]
Session = Annotated[SessionContext, Depends(current_session)]
StaffSession = Annotated[SessionContext, Depends(require_role("staff"))]
ParticipantHandle = Annotated[StoreHandle, Depends(get_participant_handle)]
VolunteerHandle = Annotated[StoreHandle, Depends(get_volunteer_handle)]
