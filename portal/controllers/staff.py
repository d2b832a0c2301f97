"""Staff administration over the database.

Every route requires a staff session and the database-backed mode;
without persistence the routes answer 503.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg
from fastapi import APIRouter, Depends, Query

from portal import db
from portal.config import get_settings
from portal.dependencies import StaffSession, require_database, require_role
from portal.errors import BadRequestError, ConflictError, DatabaseError, NotFoundError
from portal.models.profiles import Role
from portal.models.staff import (
    ActivityCounts,
    ActivityCreate,
    ActivityUpdate,
    DashboardResponse,
    RegistrationCounts,
    RegistrationStatus,
    RegistrationStatusUpdate,
    StatusUpdateResponse,
    UserCounts,
)
from portal.timewindows import today_at_offset

logger = logging.getLogger("portal.staff")
router = APIRouter(
    prefix="/staff",
    tags=["staff"],
    dependencies=[Depends(require_role("staff")), Depends(require_database)],
)


@contextmanager
def _database_errors(action: str) -> Iterator[None]:
    try:
        yield
    except psycopg.IntegrityError as e:
        logger.warning("%s rejected by a constraint: %s", action, e)
        raise ConflictError(detail=f"Failed to {action}: conflicts with existing data") from e
    except psycopg.Error as e:
        logger.error("%s failed: %s", action, e)
        raise DatabaseError(detail=f"Failed to {action}") from e


def _with_counts(row: dict[str, Any], counts: dict[str, int] | None) -> dict[str, Any]:
    counts = counts or {}
    participants = counts.get("participant", 0)
    volunteers = counts.get("volunteer", 0)
    return {
        **row,
        "participants_confirmed": participants,
        "volunteers_confirmed": volunteers,
        "participant_remaining": max((row.get("participant_slots") or 0) - participants, 0),
        "volunteer_remaining": max((row.get("volunteer_slots") or 0) - volunteers, 0),
    }


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard() -> DashboardResponse:
    today = today_at_offset(get_settings().booking.utc_offset)
    with _database_errors("load dashboard"):
        users = await db.count_profiles_by_role()
        total_activities = await db.count_activities()
        upcoming = await db.count_activities(since=today)
        registrations = await db.count_registrations_by_status()
        upcoming_row = await db.next_activity(today)
        counts = await db.confirmed_counts_by_type() if upcoming_row else {}

    next_activity = None
    if upcoming_row:
        next_activity = _with_counts(upcoming_row, counts.get(str(upcoming_row["id"])))

    return DashboardResponse(
        users=UserCounts(total=sum(users.values()), **users),
        activities=ActivityCounts(total=total_activities, upcoming=upcoming),
        registrations=RegistrationCounts(total=sum(registrations.values()), **registrations),
        next_activity=next_activity,
    )


@router.get("/activities")
async def list_activities() -> list[dict[str, Any]]:
    with _database_errors("list activities"):
        rows = await db.list_activities()
        counts = await db.confirmed_counts_by_type()
    return [_with_counts(row, counts.get(str(row["id"]))) for row in rows]


@router.post("/activities", status_code=201)
async def create_activity(req: ActivityCreate, session: StaffSession) -> dict[str, Any]:
    fields = req.model_dump(exclude_none=True)
    with _database_errors("create activity"):
        try:
            row = await db.create_activity(fields, created_by=session.user_id)
        except ValueError as e:
            raise BadRequestError(detail=str(e)) from e
    logger.info("activity created id=%s by=%s", row["id"], session.user_id)
    return _with_counts(row, None)


@router.get("/activities/{activity_id}")
async def get_activity(activity_id: int) -> dict[str, Any]:
    with _database_errors("load activity"):
        row = await db.get_activity(activity_id)
        if row is None:
            raise NotFoundError(detail="Activity not found", resource_type="activity", resource_id=str(activity_id))
        registrations = await db.registrations_for_activity(activity_id)
    counts: dict[str, int] = {"participant": 0, "volunteer": 0}
    for r in registrations:
        if r["status"] == "confirmed":
            counts[r["user_type"]] += 1
    return {**_with_counts(row, counts), "registrations": registrations}


@router.patch("/activities/{activity_id}")
async def update_activity(activity_id: int, req: ActivityUpdate) -> dict[str, Any]:
    fields = req.model_dump(exclude_unset=True)
    for key in ("title", "date", "location", "category"):
        if key in fields and not fields[key]:
            raise BadRequestError(detail=f"{key} must not be blank")
    with _database_errors("update activity"):
        row = await db.update_activity(activity_id, fields)
    if row is None:
        raise NotFoundError(detail="Activity not found", resource_type="activity", resource_id=str(activity_id))
    return row


@router.delete("/activities/{activity_id}", status_code=204)
async def delete_activity(activity_id: int) -> None:
    with _database_errors("delete activity"):
        deleted = await db.delete_activity(activity_id)
    if not deleted:
        raise NotFoundError(detail="Activity not found", resource_type="activity", resource_id=str(activity_id))
    logger.info("activity deleted id=%s", activity_id)


@router.get("/registrations")
async def list_registrations(
    status: RegistrationStatus | None = Query(None, description="Only this status"),
    user_type: str | None = Query(None, pattern="^(participant|volunteer)$"),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> list[dict[str, Any]]:
    with _database_errors("list registrations"):
        return await db.list_registrations(status=status, user_type=user_type, limit=limit, offset=offset)


@router.post("/registrations/status", response_model=StatusUpdateResponse)
async def update_registration_status(req: RegistrationStatusUpdate) -> StatusUpdateResponse:
    with _database_errors("update registrations"):
        updated = await db.update_registration_status(req.ids, req.status)
    logger.info("registration status=%s set on %d rows", req.status, updated)
    return StatusUpdateResponse(updated=updated, status=req.status)


@router.get("/users")
async def list_users(role: Role | None = Query(None)) -> list[dict[str, Any]]:
    with _database_errors("list users"):
        return await db.list_profiles(role)


@router.get("/users/{user_id}")
async def get_user(user_id: str) -> dict[str, Any]:
    with _database_errors("load user"):
        profile = await db.get_profile(user_id)
        if profile is None:
            raise NotFoundError(detail="User not found", resource_type="user", resource_id=user_id)
        registrations = await db.registrations_for_user(user_id)
        volunteer = await db.get_volunteer_profile(user_id) if profile["role"] == "volunteer" else None
        created = await db.activities_created_by(user_id)
    return {**profile, "volunteer_profile": volunteer, "registrations": registrations, "created_activities": created}
