from collections.abc import Callable, Iterable
from datetime import datetime

from portal.models.activities import VolunteerActivity
from portal.models.profiles import VolunteerProfile
from portal.stores.base import ActivityStore, BookingMessages, BookingPolicy, ToggleResult
from portal.timewindows import local_now
from portal.toast import ToastChannel

VOLUNTEER_POLICY = BookingPolicy(allow_waitlist=False, weekly_cap=None, roles_enabled=True)

VOLUNTEER_MESSAGES = BookingMessages(
    clash="This activity overlaps with one of your commitments.",
    weekly_cap="Weekly limit reached.",
    full="Activity is full!",
    confirmed="Registration successful!",
    waitlisted="Registration successful!",
    cancelled="Unregistered successfully.",
)


def still_needs_volunteers(activity: VolunteerActivity) -> bool:
    # a volunteer keeps seeing activities they already committed to
    return activity.confirmed or activity.filled < activity.capacity


class VolunteerStore(ActivityStore[VolunteerActivity, VolunteerProfile]):
    """Volunteer-facing activities: hard reject when full, role stamped on sign-up."""

    def __init__(
        self,
        activities: Iterable[VolunteerActivity] = (),
        profile: VolunteerProfile | None = None,
        *,
        toast_duration: float = 2.5,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        super().__init__(
            VOLUNTEER_POLICY,
            VOLUNTEER_MESSAGES,
            activities=activities,
            profile=profile,
            available=still_needs_volunteers,
            toasts=ToastChannel(toast_duration, clock),
            clock=clock,
        )

    @property
    def commitments(self) -> list[VolunteerActivity]:
        return self.my_activities

    def toggle_signup(self, activity_id: str) -> ToggleResult[VolunteerActivity]:
        return self.toggle(activity_id)
