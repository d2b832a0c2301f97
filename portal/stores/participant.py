from collections.abc import Callable, Iterable
from datetime import datetime

from portal.eligibility import is_activity_suitable
from portal.models.activities import ParticipantActivity
from portal.models.profiles import ParticipantProfile
from portal.stores.base import ActivityStore, BookingMessages, BookingPolicy, ToggleResult
from portal.timewindows import local_now
from portal.toast import ToastChannel

DEFAULT_WEEKLY_CAP = 3

PARTICIPANT_MESSAGES = BookingMessages(
    clash="Clash detected: this activity overlaps with another registered activity.",
    weekly_cap="Weekly limit reached: you can only register for {cap} activities per week.",
    full="This activity is full.",
    confirmed="Successfully registered for this activity!",
    waitlisted="You've been added to the waitlist for this activity.",
    cancelled="Successfully cancelled your registration.",
)


def participant_policy(weekly_cap: int | None = DEFAULT_WEEKLY_CAP) -> BookingPolicy:
    return BookingPolicy(allow_waitlist=True, weekly_cap=weekly_cap, roles_enabled=False)


def is_open_to_participant(activity: ParticipantActivity) -> bool:
    return not activity.is_booked and activity.filled < activity.capacity


def suits_profile(activity: ParticipantActivity, profile: ParticipantProfile) -> bool:
    return is_activity_suitable(activity, profile.disability)


class ParticipantStore(ActivityStore[ParticipantActivity, ParticipantProfile]):
    """Participant-facing activities: waitlist when full, weekly cap."""

    def __init__(
        self,
        activities: Iterable[ParticipantActivity] = (),
        profile: ParticipantProfile | None = None,
        *,
        weekly_cap: int | None = DEFAULT_WEEKLY_CAP,
        toast_duration: float = 3.0,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        super().__init__(
            participant_policy(weekly_cap),
            PARTICIPANT_MESSAGES,
            activities=activities,
            profile=profile,
            available=is_open_to_participant,
            suitability=suits_profile,
            toasts=ToastChannel(toast_duration, clock),
            clock=clock,
        )

    def toggle_registration(self, activity_id: str) -> ToggleResult[ParticipantActivity]:
        return self.toggle(activity_id)
