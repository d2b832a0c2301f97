import logging

import psycopg
from fastapi import APIRouter
from pydantic import BaseModel, field_validator

from portal import db
from portal.dependencies import DatabaseEnabled, Registry, Session, Sessions
from portal.errors import DatabaseError
from portal.models.profiles import Role
from portal.session import SessionContext, user_id_for_email

logger = logging.getLogger("portal.session")
router = APIRouter(prefix="/session", tags=["session"])


class LoginRequest(BaseModel):
    role: Role
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or len(v) > 254:
            raise ValueError("email must be a valid address")
        return v


@router.post("/login", response_model=SessionContext, status_code=201)
async def login(req: LoginRequest, sessions: Sessions, db_enabled: DatabaseEnabled) -> SessionContext:
    """Mock login: any email may sign in under the chosen role."""
    user_id = user_id_for_email(req.email)
    if db_enabled:
        try:
            await db.ensure_profile(user_id, req.email, req.role)
        except psycopg.Error as e:
            logger.error("profile bootstrap failed user=%s: %s", user_id, e)
            raise DatabaseError(detail="Could not create profile") from e
    return await sessions.login(req.role, req.email, user_id)


@router.post("/logout")
async def logout(session: Session, sessions: Sessions, registry: Registry) -> dict[str, bool]:
    removed = await sessions.logout(session.session_id)
    registry.drop(session.user_id)
    return {"logged_out": removed}


@router.get("/me", response_model=SessionContext)
async def me(session: Session) -> SessionContext:
    return session
