"""Routes shared by the participant and volunteer surfaces.

Both surfaces expose the same store operations; ``add_activity_routes``
registers them on a role-specific router with that role's models.
"""

from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel

from portal.errors import NotFoundError
from portal.models.activities import (
    ActivityFilters,
    ActivityFiltersPatch,
    Area,
    ClashResponse,
    DateWindow,
    Suitability,
    ToggleResponse,
    WeeklyCountResponse,
)
from portal.models.profiles import ProfileUpdateOutcome
from portal.stores.base import ToggleOutcome, ToggleResult
from portal.toast import Toast


def toggle_response(result: ToggleResult, activity_id: str) -> ToggleResponse:
    if result.outcome is ToggleOutcome.not_found:
        raise NotFoundError(detail="Activity not found", resource_type="activity", resource_id=activity_id)
    return ToggleResponse(
        outcome=result.outcome.value,
        activity=result.activity,
        message=result.toast.message if result.toast else None,
        severity=result.toast.severity if result.toast else None,
    )


def add_activity_routes(
    router: APIRouter,
    handle_type: Any,
    activity_model: type[BaseModel],
    profile_model: type[BaseModel],
    profile_update_model: type[BaseModel],
    booked_path: str,
) -> None:
    """Register the shared activity routes.

    ``handle_type`` is the ``Annotated`` dependency resolving the caller's
    store handle; ``booked_path`` names the list of the caller's bookings.
    """

    @router.get("/activities", response_model=list[activity_model])
    async def list_activities(
        handle: handle_type,
        date: DateWindow | None = Query(None, description="Date window"),
        location: str | None = Query(None, description="Exact location or 'all'"),
        area: Area | None = Query(None, description="Coarse area"),
        suitability: Suitability | None = Query(None, description="'suitable' to match the profile"),
        only_available: bool | None = Query(None, description="Hide activities that cannot be booked"),
    ):
        patch = ActivityFiltersPatch(
            date=date, location=location, area=area, suitability=suitability, only_available=only_available
        ).model_dump(exclude_none=True)
        if patch:
            handle.store.set_filters(**patch)
        return handle.store.filtered_activities()

    @router.get("/activities/{activity_id}", response_model=activity_model)
    async def get_activity(activity_id: str, handle: handle_type):
        activity = handle.store.get(activity_id)
        if activity is None:
            raise NotFoundError(detail="Activity not found", resource_type="activity", resource_id=activity_id)
        return activity

    @router.post("/activities/{activity_id}/toggle", response_model=ToggleResponse)
    async def toggle_activity(activity_id: str, handle: handle_type) -> ToggleResponse:
        return toggle_response(await handle.toggle(activity_id), activity_id)

    @router.get("/activities/{activity_id}/clash", response_model=ClashResponse)
    async def activity_clash(activity_id: str, handle: handle_type) -> ClashResponse:
        if handle.store.get(activity_id) is None:
            raise NotFoundError(detail="Activity not found", resource_type="activity", resource_id=activity_id)
        return ClashResponse(activity_id=activity_id, clash=handle.store.has_clash(activity_id))

    @router.get(booked_path, response_model=list[activity_model])
    async def booked_activities(handle: handle_type):
        return handle.store.my_activities

    @router.get("/locations")
    async def list_locations(handle: handle_type) -> dict[str, list[str]]:
        return {"locations": handle.store.locations}

    @router.get("/weekly-count", response_model=WeeklyCountResponse)
    async def weekly_count(handle: handle_type) -> WeeklyCountResponse:
        return WeeklyCountResponse(count=handle.store.weekly_count(), cap=handle.store.policy.weekly_cap)

    @router.get("/filters", response_model=ActivityFilters)
    async def get_filters(handle: handle_type) -> ActivityFilters:
        return handle.store.filters

    @router.patch("/filters", response_model=ActivityFilters)
    async def patch_filters(patch: ActivityFiltersPatch, handle: handle_type) -> ActivityFilters:
        return handle.store.set_filters(**patch.model_dump(exclude_unset=True))

    @router.get("/profile", response_model=profile_model)
    async def get_profile(handle: handle_type):
        if handle.store.profile is None:
            raise NotFoundError(detail="Profile not loaded", resource_type="profile")
        return handle.store.profile

    @router.patch("/profile", response_model=ProfileUpdateOutcome)
    async def patch_profile(patch: profile_update_model, handle: handle_type) -> ProfileUpdateOutcome:
        return await handle.update_profile(patch.model_dump(exclude_unset=True))

    @router.get("/toast", response_model=Toast | None)
    async def get_toast(handle: handle_type) -> Toast | None:
        return handle.store.toast

    @router.delete("/toast", status_code=204)
    async def clear_toast(handle: handle_type) -> None:
        handle.store.clear_toast()
