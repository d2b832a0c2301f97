"""Per-process lookup of the activity store behind each logged-in user."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from portal.catalog import demo_participant_activities, demo_volunteer_activities
from portal.config import Settings
from portal.models.profiles import ParticipantProfile, ProfileUpdateOutcome, VolunteerProfile
from portal.session import SessionContext
from portal.stores.base import ActivityStore, ToggleResult
from portal.stores.participant import ParticipantStore
from portal.stores.persisted import PersistedActivityStore
from portal.stores.volunteer import VolunteerStore
from portal.timewindows import local_now

logger = logging.getLogger("portal.stores.registry")


class MemoryStoreHandle:
    """Async face of a store that lives only in this process."""

    persistent = False

    def __init__(self, store: ActivityStore) -> None:
        self.store = store
        self.pending = False

    async def refresh(self) -> bool:
        return True

    async def toggle(self, activity_id: str) -> ToggleResult:
        return self.store.toggle(activity_id)

    async def update_profile(self, patch: dict[str, Any]) -> ProfileUpdateOutcome:
        store = self.store
        if not store.update_profile(patch):
            detail = store.toast.message if store.toast else None
            return ProfileUpdateOutcome(status="rejected", profile=store.profile, detail=detail)
        return ProfileUpdateOutcome(status="confirmed", profile=store.profile)


StoreHandle = MemoryStoreHandle | PersistedActivityStore


class StoreRegistry:
    """Stores keyed by ``(role, user_id)``.

    A store unused for longer than the session lifetime is evicted, since
    the session that reached it has expired by then. Database-backed stores
    reload whenever their last successful load is older than
    ``booking.reload_after_sec`` (or never happened).
    """

    def __init__(
        self,
        settings: Settings,
        *,
        persistent: bool | None = None,
        seed_catalog: bool | None = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.settings = settings
        self.persistent = settings.features.persistence if persistent is None else persistent
        self.seed_catalog = settings.features.demo_catalog if seed_catalog is None else seed_catalog
        self._clock = clock
        self._handles: dict[tuple[str, str], StoreHandle] = {}
        self._last_used: dict[tuple[str, str], datetime] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._handles)

    async def get(self, session: SessionContext) -> StoreHandle:
        """Store for the session's user, created on first use."""
        if session.role not in ("participant", "volunteer"):
            raise ValueError(f"no activity store for role {session.role}")
        key = (session.role, session.user_id)
        now = self._clock()
        async with self._lock:
            self._evict_idle(now)
            handle = self._handles.get(key)
            if handle is None:
                handle = self._build(session)
                self._handles[key] = handle
                logger.info(
                    "store created role=%s user=%s persistent=%s", session.role, session.user_id, handle.persistent
                )
            self._last_used[key] = now
        if handle.persistent and handle.is_stale(self.settings.booking.reload_after_sec):
            await handle.refresh()
        return handle

    def drop(self, user_id: str) -> int:
        """Forget every store held for ``user_id``."""
        keys = [k for k in self._handles if k[1] == user_id]
        for key in keys:
            self._forget(key)
        return len(keys)

    def clear(self) -> None:
        self._handles.clear()
        self._last_used.clear()

    def _forget(self, key: tuple[str, str]) -> None:
        self._handles.pop(key, None)
        self._last_used.pop(key, None)

    def _evict_idle(self, now: datetime) -> None:
        ttl = self.settings.session.ttl_sec
        idle = [k for k, seen in self._last_used.items() if (now - seen).total_seconds() > ttl]
        for key in idle:
            self._forget(key)
        if idle:
            logger.info("evicted %d idle stores", len(idle))

    def _build(self, session: SessionContext) -> StoreHandle:
        booking = self.settings.booking
        now = self._clock()
        if session.role == "participant":
            store = ParticipantStore(
                demo_participant_activities(now) if self.seed_catalog and not self.persistent else (),
                None if self.persistent else ParticipantProfile(id=session.user_id, email=session.email),
                weekly_cap=booking.weekly_cap,
                toast_duration=booking.participant_toast_sec,
                clock=self._clock,
            )
        else:
            store = VolunteerStore(
                demo_volunteer_activities(now) if self.seed_catalog and not self.persistent else (),
                None if self.persistent else VolunteerProfile(id=session.user_id),
                toast_duration=booking.volunteer_toast_sec,
                clock=self._clock,
            )
        if not self.persistent:
            return MemoryStoreHandle(store)
        return PersistedActivityStore(
            store,
            user_id=session.user_id,
            user_type=session.role,
            booking=booking,
            email=session.email,
            clock=self._clock,
        )
