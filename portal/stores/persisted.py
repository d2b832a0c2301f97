"""Database-backed wrapper around an in-memory ``ActivityStore``.

Booking rules are checked locally first (``plan_toggle``); only accepted
plans are written. Confirmations go through ``db.confirm_registration``,
which holds the seat count under a row lock, so a stale local ``filled``
can at worst turn a confirmation into a waitlist entry (participants) or
a "full" rejection (volunteers). The local collection then reflects what
the write actually achieved.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Generic

import psycopg
from pydantic import ValidationError

from portal import db
from portal.config import BookingSettings
from portal.db import mappers
from portal.models.profiles import ParticipantProfile, ProfileUpdateOutcome, VolunteerProfile
from portal.stores.base import A, P, ActivityStore, ToggleOutcome, TogglePlan, ToggleResult
from portal.timewindows import local_now

logger = logging.getLogger("portal.stores.persisted")

STATUS_FOR_OUTCOME = {
    ToggleOutcome.confirmed: "confirmed",
    ToggleOutcome.waitlisted: "waitlist",
    ToggleOutcome.cancelled: "cancelled",
}

LOAD_FAILED = "Failed to load activities. Please try again."
WRITE_FAILED = "Failed to update registration. Please try again."


class PersistedActivityStore(Generic[A, P]):
    persistent = True

    def __init__(
        self,
        store: ActivityStore[A, P],
        *,
        user_id: str,
        user_type: str,
        booking: BookingSettings,
        email: str = "",
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        if user_type not in ("participant", "volunteer"):
            raise ValueError(f"unsupported user type: {user_type}")
        self.store = store
        self.user_id = user_id
        self.user_type = user_type
        self.email = email
        self.booking = booking
        self.pending = False
        self.refreshed_at: datetime | None = None
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def _default_slots(self) -> int:
        return self.booking.default_participant_capacity if self.user_type == "participant" else 0

    def is_stale(self, max_age_sec: float) -> bool:
        """True until a refresh succeeds, and again once it is ``max_age_sec`` old."""
        if self.refreshed_at is None:
            return True
        return (self._clock() - self.refreshed_at).total_seconds() >= max_age_sec

    # -- loading ----------------------------------------------------------

    def _to_activity(self, row: dict[str, Any], filled: int, registration: dict[str, Any] | None) -> A:
        if self.user_type == "participant":
            return mappers.participant_activity_from_row(row, filled, registration, self.booking)
        return mappers.volunteer_activity_from_row(row, filled, registration, self.booking)

    async def _load_profile(self) -> ParticipantProfile | VolunteerProfile:
        if self.user_type == "participant":
            row = await db.ensure_profile(self.user_id, self.email, "participant")
            return mappers.participant_profile_from_row(row)
        row = await db.get_volunteer_profile(self.user_id)
        return mappers.volunteer_profile_from_row(row)

    async def refresh(self) -> bool:
        """Reload activities, this user's registrations and profile."""
        async with self._lock:
            try:
                rows = await db.list_activities()
                counts = await db.confirmed_counts(self.user_type)
                mine = await db.registrations_for_user(self.user_id, self.user_type)
                profile = await self._load_profile()
            except psycopg.Error as e:
                logger.error("refresh failed user=%s: %s", self.user_id, e)
                self.store.notify(ToggleOutcome.failed, LOAD_FAILED)
                return False

            by_activity = {str(r["activity_id"]): r for r in mine}
            activities = []
            for row in rows:
                key = str(row["id"])
                try:
                    activities.append(self._to_activity(row, counts.get(key, 0), by_activity.get(key)))
                except ValidationError as e:
                    logger.warning("skipping activity id=%s: %s", key, e)
            self.store.replace_activities(activities)
            self.store.profile = profile
            self.refreshed_at = self._clock()
            logger.info("refreshed user=%s activities=%d", self.user_id, len(activities))
            return True

    # -- toggle -----------------------------------------------------------

    async def _write(self, plan: TogglePlan[A]) -> tuple[ToggleOutcome, A]:
        """Persist ``plan``. A confirmation can come back waitlisted or full."""
        role = getattr(plan.updated, "committed_role", None)
        if plan.outcome is not ToggleOutcome.confirmed:
            status = STATUS_FOR_OUTCOME[plan.outcome]
            await db.upsert_registration(plan.activity_id, self.user_id, self.user_type, status, role)
            return plan.outcome, plan.updated

        row = await db.confirm_registration(
            plan.activity_id, self.user_id, self.user_type, role, self._default_slots
        )
        if row is not None:
            return plan.outcome, plan.updated

        current = plan.current
        logger.info("activity id=%s filled up before user=%s confirmed", plan.activity_id, self.user_id)
        self.refreshed_at = None
        if not self.store.policy.allow_waitlist:
            return ToggleOutcome.rejected_full, current.model_copy(update={"filled": current.capacity})
        await db.upsert_registration(plan.activity_id, self.user_id, self.user_type, "waitlist")
        return ToggleOutcome.waitlisted, current.model_copy(
            update={"confirmed": False, "waitlisted": True, "filled": current.capacity}
        )

    async def toggle(self, activity_id: str) -> ToggleResult[A]:
        async with self._lock:
            store = self.store
            plan = store.plan_toggle(activity_id)
            if plan.outcome is ToggleOutcome.not_found:
                return ToggleResult(plan.outcome)
            if not plan.accepted:
                return ToggleResult(plan.outcome, plan.current, store.notify(plan.outcome))

            try:
                outcome, updated = await self._write(plan)
            except psycopg.Error as e:
                logger.error("registration write failed id=%s user=%s: %s", plan.activity_id, self.user_id, e)
                return ToggleResult(
                    ToggleOutcome.failed, plan.current, store.notify(ToggleOutcome.failed, WRITE_FAILED)
                )

            try:
                filled = await db.count_confirmed(plan.activity_id, self.user_type)
            except psycopg.Error as e:
                logger.warning("recount failed id=%s, keeping local estimate: %s", plan.activity_id, e)
            else:
                if filled <= updated.capacity:
                    updated = updated.model_copy(update={"filled": filled})
                else:
                    # slot counts changed underneath this store
                    logger.warning(
                        "id=%s has %d confirmed for %d known slots, reloading on next use",
                        plan.activity_id, filled, updated.capacity,
                    )
                    self.refreshed_at = None

            store.apply(updated)
            toast = store.notify(outcome)
            logger.info("toggle id=%s user=%s outcome=%s", plan.activity_id, self.user_id, outcome.value)
            return ToggleResult(outcome, store.get(plan.activity_id), toast)

    # -- profile ----------------------------------------------------------

    async def _write_profile(self, profile: ParticipantProfile | VolunteerProfile) -> dict[str, Any] | None:
        if isinstance(profile, ParticipantProfile):
            return await db.update_profile(self.user_id, mappers.participant_profile_to_row(profile))
        return await db.upsert_volunteer_profile(self.user_id, mappers.volunteer_profile_to_row(profile))

    async def update_profile(self, patch: dict[str, Any]) -> ProfileUpdateOutcome:
        """Apply ``patch`` locally as pending, then confirm or roll back."""
        async with self._lock:
            store = self.store
            messages = store.messages
            if store.profile is None:
                store.toasts.show(messages.profile_missing, "error")
                return ProfileUpdateOutcome(status="rejected", detail=messages.profile_missing)
            merged = store.merged_profile(patch)
            if merged is None:
                store.toasts.show(messages.profile_failed, "error")
                return ProfileUpdateOutcome(status="rejected", profile=store.profile, detail=messages.profile_failed)

            previous = store.profile
            store.profile = merged
            self.pending = True
            try:
                row = await self._write_profile(merged)
            except psycopg.Error as e:
                logger.error("profile write failed user=%s: %s", self.user_id, e)
                row = None
            finally:
                self.pending = False

            if row is None:
                store.profile = previous
                store.toasts.show(messages.profile_failed, "error")
                return ProfileUpdateOutcome(status="rolled_back", profile=previous, detail=messages.profile_failed)

            store.toasts.show(messages.profile_updated, "success")
            return ProfileUpdateOutcome(status="confirmed", profile=merged)
