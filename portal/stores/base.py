"""Generic in-memory activity store shared by the participant and volunteer portals.

The store owns the activity collection, the filter state, the user's
profile and a toast slot. Variant behaviour (waitlist or hard reject,
weekly cap, role stamping) comes from a ``BookingPolicy``; the store
itself has a single state machine.

Every mutation of the collection is one assignment of a new tuple, so a
reader never sees a half-applied toggle.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from portal.locations import area_from_location
from portal.models.activities import ActivityFilters, BookableActivity
from portal.timewindows import (
    end_of_next_7_days,
    end_of_next_30_days,
    end_of_today,
    end_of_week,
    in_window,
    local_now,
    overlaps,
    start_of_today,
    start_of_week,
)
from portal.toast import Toast, ToastChannel

logger = logging.getLogger("portal.stores")

A = TypeVar("A", bound=BookableActivity)
P = TypeVar("P", bound=BaseModel)


@dataclass(frozen=True)
class BookingPolicy:
    allow_waitlist: bool
    weekly_cap: int | None
    roles_enabled: bool


@dataclass(frozen=True)
class BookingMessages:
    clash: str
    weekly_cap: str
    full: str
    confirmed: str
    waitlisted: str
    cancelled: str
    profile_updated: str = "Profile updated successfully!"
    profile_failed: str = "Error updating profile. Please try again."
    profile_missing: str = "Profile not loaded. Please try again."


class ToggleOutcome(str, Enum):
    confirmed = "confirmed"
    waitlisted = "waitlisted"
    cancelled = "cancelled"
    rejected_clash = "rejected_clash"
    rejected_weekly_cap = "rejected_weekly_cap"
    rejected_full = "rejected_full"
    not_found = "not_found"
    failed = "failed"


REJECTIONS = frozenset(
    {ToggleOutcome.rejected_clash, ToggleOutcome.rejected_weekly_cap, ToggleOutcome.rejected_full}
)


@dataclass(frozen=True)
class TogglePlan(Generic[A]):
    """What a toggle would do, computed without touching state."""

    activity_id: str
    outcome: ToggleOutcome
    current: A | None = None
    updated: A | None = None

    @property
    def accepted(self) -> bool:
        return self.updated is not None


@dataclass(frozen=True)
class ToggleResult(Generic[A]):
    outcome: ToggleOutcome
    activity: A | None = None
    toast: Toast | None = None


def _always_available(_activity: BookableActivity) -> bool:
    return True


class ActivityStore(Generic[A, P]):
    def __init__(
        self,
        policy: BookingPolicy,
        messages: BookingMessages,
        *,
        activities: Iterable[A] = (),
        profile: P | None = None,
        available: Callable[[A], bool] = _always_available,
        suitability: Callable[[A, P], bool] | None = None,
        toasts: ToastChannel | None = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.policy = policy
        self.messages = messages
        self.profile = profile
        self.filters = ActivityFilters()
        self.toasts = toasts or ToastChannel(clock=clock)
        self._available = available
        self._suitability = suitability
        self._clock = clock
        self._activities: tuple[A, ...] = tuple(activities)

    # -- collection -------------------------------------------------------

    @property
    def activities(self) -> tuple[A, ...]:
        return self._activities

    def replace_activities(self, activities: Iterable[A]) -> None:
        self._activities = tuple(activities)

    def get(self, activity_id: str) -> A | None:
        activity_id = str(activity_id)
        return next((a for a in self._activities if a.id == activity_id), None)

    def apply(self, updated: A) -> None:
        """Swap in ``updated`` for the record with the same id."""
        if self.get(updated.id) is None:
            return
        self._activities = tuple(updated if a.id == updated.id else a for a in self._activities)

    # -- derived views ----------------------------------------------------

    @property
    def locations(self) -> list[str]:
        return sorted({a.location for a in self._activities})

    def filtered_activities(self) -> list[A]:
        now = self._clock()
        f = self.filters
        items = list(self._activities)

        window = self._date_window(f.date, now)
        if window is not None:
            items = [a for a in items if in_window(a.start, *window)]

        if f.suitability == "suitable" and self._suitability is not None and self.profile is not None:
            items = [a for a in items if self._suitability(a, self.profile)]

        if f.location != "all":
            items = [a for a in items if a.location == f.location]
        if f.area != "all":
            items = [a for a in items if area_from_location(a.location) == f.area]

        if f.only_available:
            items = [a for a in items if self._available(a)]

        return sorted(items, key=lambda a: a.start)

    @property
    def my_activities(self) -> list[A]:
        return sorted((a for a in self._activities if a.is_booked), key=lambda a: a.start)

    def weekly_count(self, reference: datetime | None = None) -> int:
        """Confirmed activities starting in the Sunday-Saturday week of ``reference``."""
        now = self._clock()
        reference = now if reference is None else reference.astimezone(now.tzinfo)
        week_start, week_end = start_of_week(reference), end_of_week(reference)
        return sum(1 for a in self._activities if a.confirmed and in_window(a.start, week_start, week_end))

    def has_clash(self, activity_id: str) -> bool:
        activity = self.get(activity_id)
        if activity is None:
            return False
        return self._clashes(activity)

    # -- toggle -----------------------------------------------------------

    def plan_toggle(self, activity_id: str) -> TogglePlan[A]:
        activity_id = str(activity_id)
        current = self.get(activity_id)
        if current is None:
            return TogglePlan(activity_id, ToggleOutcome.not_found)

        if current.is_booked:
            filled = max(current.filled - 1, 0) if current.confirmed else current.filled
            updated = self._with_booking(current, confirmed=False, waitlisted=False, filled=filled)
            return TogglePlan(activity_id, ToggleOutcome.cancelled, current, updated)

        if self._clashes(current):
            return TogglePlan(activity_id, ToggleOutcome.rejected_clash, current)

        cap = self.policy.weekly_cap
        if cap is not None and self.weekly_count(current.start) >= cap:
            return TogglePlan(activity_id, ToggleOutcome.rejected_weekly_cap, current)

        if current.is_full:
            if not self.policy.allow_waitlist:
                return TogglePlan(activity_id, ToggleOutcome.rejected_full, current)
            updated = self._with_booking(current, confirmed=False, waitlisted=True, filled=current.filled)
            return TogglePlan(activity_id, ToggleOutcome.waitlisted, current, updated)

        filled = min(current.filled + 1, current.capacity)
        updated = self._with_booking(current, confirmed=True, waitlisted=False, filled=filled)
        return TogglePlan(activity_id, ToggleOutcome.confirmed, current, updated)

    def toggle(self, activity_id: str) -> ToggleResult[A]:
        plan = self.plan_toggle(activity_id)
        if plan.outcome is ToggleOutcome.not_found:
            logger.debug("toggle ignored, unknown activity id=%s", plan.activity_id)
            return ToggleResult(plan.outcome)
        if plan.accepted:
            self.apply(plan.updated)
        toast = self.notify(plan.outcome)
        logger.info("toggle id=%s outcome=%s", plan.activity_id, plan.outcome.value)
        return ToggleResult(plan.outcome, self.get(plan.activity_id), toast)

    def notify(self, outcome: ToggleOutcome, detail: str | None = None) -> Toast | None:
        m = self.messages
        if outcome is ToggleOutcome.failed:
            return self.toasts.show(detail or "An error occurred. Please try again.", "error")
        text = {
            ToggleOutcome.confirmed: m.confirmed,
            ToggleOutcome.waitlisted: m.waitlisted,
            ToggleOutcome.cancelled: m.cancelled,
            ToggleOutcome.rejected_clash: m.clash,
            ToggleOutcome.rejected_weekly_cap: m.weekly_cap.format(cap=self.policy.weekly_cap),
            ToggleOutcome.rejected_full: m.full,
        }.get(outcome)
        if text is None:
            return None
        severity = "warning" if outcome in REJECTIONS else "success"
        return self.toasts.show(text, severity)

    # -- auxiliary mutations ----------------------------------------------

    def set_filters(self, **patch: Any) -> ActivityFilters:
        try:
            self.filters = ActivityFilters.model_validate({**self.filters.model_dump(), **patch})
        except ValidationError as e:
            logger.warning("rejected filter patch %s: %s", patch, e)
            self.toasts.show("Invalid filter value.", "warning")
        return self.filters

    def merged_profile(self, patch: dict[str, Any]) -> P | None:
        """Validated shallow merge of ``patch`` onto the profile, or None."""
        if self.profile is None:
            return None
        patch = {k: v for k, v in patch.items() if k != "id"}
        try:
            return type(self.profile).model_validate({**self.profile.model_dump(), **patch})
        except ValidationError as e:
            logger.warning("rejected profile patch: %s", e)
            return None

    def update_profile(self, patch: dict[str, Any]) -> bool:
        if self.profile is None:
            self.toasts.show(self.messages.profile_missing, "error")
            return False
        merged = self.merged_profile(patch)
        if merged is None:
            self.toasts.show(self.messages.profile_failed, "error")
            return False
        self.profile = merged
        self.toasts.show(self.messages.profile_updated, "success")
        return True

    def set_my_role(self, activity_id: str, role: str) -> A | None:
        """Record the role the user intends to take; no booking rules apply."""
        if not self.policy.roles_enabled:
            return None
        current = self.get(activity_id)
        if current is None:
            return None
        try:
            updated = type(current).model_validate({**current.model_dump(), "my_role": role})
        except ValidationError:
            logger.warning("unknown role %r for activity id=%s", role, activity_id)
            return None
        self.apply(updated)
        return updated

    def clear_toast(self) -> None:
        self.toasts.clear()

    @property
    def toast(self) -> Toast | None:
        return self.toasts.current

    # -- helpers ----------------------------------------------------------

    def _clashes(self, candidate: A) -> bool:
        return any(
            overlaps(candidate.start, candidate.end, other.start, other.end)
            for other in self._activities
            if other.confirmed and other.id != candidate.id
        )

    def _with_booking(self, current: A, *, confirmed: bool, waitlisted: bool, filled: int) -> A:
        update: dict[str, Any] = {"confirmed": confirmed, "waitlisted": waitlisted, "filled": filled}
        if self.policy.roles_enabled:
            update["committed_role"] = current.my_role if confirmed else None
        return current.model_copy(update=update)

    @staticmethod
    def _date_window(window: str, now: datetime) -> tuple[datetime, datetime] | None:
        if window == "today":
            return start_of_today(now), end_of_today(now)
        if window == "week":
            return start_of_today(now), end_of_next_7_days(now)
        if window == "month":
            return start_of_today(now), end_of_next_30_days(now)
        return None
