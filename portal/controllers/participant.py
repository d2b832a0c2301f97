from fastapi import APIRouter

from portal.controllers.activities import add_activity_routes
from portal.dependencies import ParticipantHandle
from portal.models.activities import ParticipantActivity
from portal.models.profiles import ParticipantProfile, ParticipantProfileUpdate

router = APIRouter(prefix="/participant", tags=["participant"])

add_activity_routes(
    router,
    ParticipantHandle,
    ParticipantActivity,
    ParticipantProfile,
    ParticipantProfileUpdate,
    booked_path="/my-activities",
)
