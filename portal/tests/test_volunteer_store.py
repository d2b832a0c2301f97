"""Tests for volunteer sign-ups: hard reject when full, role stamping."""

from datetime import datetime, timedelta, timezone

import pytest

from portal.models.profiles import VolunteerProfile
from portal.stores.base import ToggleOutcome
from portal.stores.volunteer import VolunteerStore

SGT = timezone(timedelta(hours=8))


def at(day: int, hour: int) -> datetime:
    return datetime(2026, 10, day, hour, tzinfo=SGT)


@pytest.fixture
def make_store(clock):
    def _make(activities, profile=None):
        return VolunteerStore(activities, profile, clock=clock)

    return _make


class TestSignup:
    def test_signup_confirms_and_stamps_role(self, make_store, volunteer_activity):
        store = make_store([volunteer_activity(id="a", filled=1)])
        store.set_my_role("a", "Wheelchair assistance")
        result = store.toggle_signup("a")
        assert result.outcome is ToggleOutcome.confirmed
        a = store.get("a")
        assert a.is_signed_up
        assert a.filled == 2
        assert a.committed_role == "Wheelchair assistance"
        assert store.toast.message == "Registration successful!"

    def test_role_change_after_signup_keeps_committed_role(self, make_store, volunteer_activity):
        store = make_store([volunteer_activity(id="a")])
        store.toggle_signup("a")
        store.set_my_role("a", "Wheelchair assistance")
        a = store.get("a")
        assert a.my_role == "Wheelchair assistance"
        assert a.committed_role == "General support"

    def test_full_activity_rejected_without_waitlist(self, make_store, volunteer_activity):
        store = make_store([volunteer_activity(id="a", capacity=2, filled=2)])
        result = store.toggle_signup("a")
        assert result.outcome is ToggleOutcome.rejected_full
        a = store.get("a")
        assert not a.confirmed and not a.waitlisted
        assert a.filled == 2
        assert store.toast.message == "Activity is full!"
        assert store.toast.severity == "warning"

    def test_unsignup_clears_role_and_decrements(self, make_store, volunteer_activity):
        store = make_store([volunteer_activity(id="a", filled=1)])
        store.toggle_signup("a")
        result = store.toggle_signup("a")
        assert result.outcome is ToggleOutcome.cancelled
        a = store.get("a")
        assert a.committed_role is None
        assert a.filled == 1
        assert store.toast.message == "Unregistered successfully."

    def test_overlap_with_commitment_rejected(self, make_store, volunteer_activity):
        store = make_store([
            volunteer_activity(id="x", start=at(14, 10), end=at(14, 12), confirmed=True, filled=1),
            volunteer_activity(id="y", start=at(14, 11), end=at(14, 13)),
        ])
        assert store.toggle_signup("y").outcome is ToggleOutcome.rejected_clash
        assert not store.get("y").confirmed

    def test_no_weekly_cap(self, make_store, volunteer_activity):
        store = make_store([
            volunteer_activity(id=str(day), start=at(day, 9), end=at(day, 10)) for day in (12, 13, 14, 15, 16)
        ])
        outcomes = {store.toggle_signup(str(day)).outcome for day in (12, 13, 14, 15, 16)}
        assert outcomes == {ToggleOutcome.confirmed}
        assert store.weekly_count() == 5


class TestRoles:
    def test_unknown_role_ignored(self, make_store, volunteer_activity):
        store = make_store([volunteer_activity(id="a")])
        assert store.set_my_role("a", "Cook") is None
        assert store.get("a").my_role == "General support"

    def test_unknown_activity(self, make_store):
        store = make_store([])
        assert store.set_my_role("nope", "General support") is None


class TestViews:
    def test_commitments_sorted(self, make_store, volunteer_activity):
        store = make_store([
            volunteer_activity(id="b", start=at(16, 9), end=at(16, 10), confirmed=True, filled=1),
            volunteer_activity(id="a", start=at(15, 9), end=at(15, 10), confirmed=True, filled=1),
            volunteer_activity(id="c", start=at(14, 9), end=at(14, 10)),
        ])
        assert [a.id for a in store.commitments] == ["a", "b"]

    def test_only_available_keeps_own_commitments(self, make_store, volunteer_activity):
        store = make_store([
            volunteer_activity(id="mine-full", start=at(15, 9), end=at(15, 10), capacity=1, filled=1, confirmed=True),
            volunteer_activity(id="full", start=at(16, 9), end=at(16, 10), capacity=1, filled=1),
            volunteer_activity(id="open", start=at(17, 9), end=at(17, 10)),
        ])
        store.set_filters(only_available=True)
        assert [a.id for a in store.filtered_activities()] == ["mine-full", "open"]

    def test_toast_duration(self, make_store, volunteer_activity, clock):
        store = make_store([volunteer_activity(id="a")])
        store.toggle_signup("a")
        clock.advance(seconds=2.4)
        assert store.toast is not None
        clock.advance(seconds=0.1)
        assert store.toast is None


class TestProfile:
    def test_update_profile(self, make_store):
        store = make_store([], VolunteerProfile(id="v1"))
        assert store.update_profile({"bio": "Retired nurse", "languages": "English, Malay"})
        assert store.profile.bio == "Retired nurse"
        assert store.profile.gender == "Prefer not to say"
