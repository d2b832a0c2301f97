from fastapi import APIRouter

from portal.controllers.activities import add_activity_routes
from portal.dependencies import VolunteerHandle
from portal.errors import NotFoundError
from portal.models.activities import RoleChange, VolunteerActivity
from portal.models.profiles import VolunteerProfile, VolunteerProfileUpdate

router = APIRouter(prefix="/volunteer", tags=["volunteer"])

add_activity_routes(
    router,
    VolunteerHandle,
    VolunteerActivity,
    VolunteerProfile,
    VolunteerProfileUpdate,
    booked_path="/commitments",
)


@router.put("/activities/{activity_id}/role", response_model=VolunteerActivity)
async def choose_role(activity_id: str, change: RoleChange, handle: VolunteerHandle) -> VolunteerActivity:
    """Pick the role to take at an activity; an existing sign-up keeps its role."""
    updated = handle.store.set_my_role(activity_id, change.role)
    if updated is None:
        raise NotFoundError(detail="Activity not found", resource_type="activity", resource_id=activity_id)
    return updated
