"""Tests for row <-> entity conversion."""

from datetime import date, datetime, timedelta, timezone

from portal.config import BookingSettings
from portal.db import mappers
from portal.models.profiles import ParticipantProfile, VolunteerProfile

SGT = timezone(timedelta(hours=8))
BOOKING = BookingSettings()


def _row(**overrides):
    row = {
        "id": 42,
        "title": "Art Jamming",
        "date": date(2026, 10, 15),
        "location": "Jurong West Library",
        "time_start": "14:00",
        "time_end": "16:00",
        "participant_slots": 12,
        "volunteer_slots": 3,
        "disability_access": "Sensory Friendly",
        "description": None,
        "comments": "Bring an apron",
        "meeting_location": None,
        "meals_provided": None,
    }
    row.update(overrides)
    return row


class TestParticipantActivityFromRow:
    def test_times_and_defaults(self):
        activity = mappers.participant_activity_from_row(_row(), 4, None, BOOKING)
        assert activity.id == "42"
        assert activity.start == datetime(2026, 10, 15, 14, 0, tzinfo=SGT)
        assert activity.end == datetime(2026, 10, 15, 16, 0, tzinfo=SGT)
        assert activity.filled == 4
        assert activity.description == "Bring an apron"
        assert activity.meeting_point == "Jurong West Library"
        assert not activity.meals_provided
        assert not activity.confirmed and not activity.waitlisted

    def test_missing_times_use_configured_defaults(self):
        activity = mappers.participant_activity_from_row(_row(time_start=None, time_end=""), 0, None, BOOKING)
        assert activity.start.hour == 9
        assert activity.end.hour == 17

    def test_missing_capacity_defaults_to_twenty(self):
        activity = mappers.participant_activity_from_row(_row(participant_slots=None), 0, None, BOOKING)
        assert activity.capacity == 20

    def test_registration_status(self):
        confirmed = mappers.participant_activity_from_row(_row(), 1, {"status": "confirmed"}, BOOKING)
        waitlisted = mappers.participant_activity_from_row(_row(), 1, {"status": "waitlist"}, BOOKING)
        cancelled = mappers.participant_activity_from_row(_row(), 1, {"status": "cancelled"}, BOOKING)
        assert confirmed.confirmed
        assert waitlisted.waitlisted and not waitlisted.confirmed
        assert not cancelled.is_booked

    def test_explicit_flags_override_label(self):
        activity = mappers.participant_activity_from_row(
            _row(wheelchair_accessible=True, autism_friendly=False), 0, None, BOOKING
        )
        flags = activity.accessibility
        assert flags.wheelchair_accessible
        assert not flags.autism_friendly
        # untouched flags still come from the label
        assert flags.hearing_impaired_friendly

    def test_suitable_for_from_column_or_label(self):
        from_label = mappers.participant_activity_from_row(_row(), 0, None, BOOKING)
        assert from_label.suitable_for == ["Autism Spectrum", "Visual Impairment", "Hearing Impairment"]
        explicit = mappers.participant_activity_from_row(
            _row(suitable_disabilities=["Other", "Not a category"]), 0, None, BOOKING
        )
        assert explicit.suitable_for == ["Other"]

    def test_offset_is_configurable(self):
        booking = BookingSettings(utc_offset="+00:00")
        activity = mappers.participant_activity_from_row(_row(), 0, None, booking)
        assert activity.start == datetime(2026, 10, 15, 14, 0, tzinfo=timezone.utc)


class TestVolunteerActivityFromRow:
    def test_capacity_is_volunteer_slots(self):
        activity = mappers.volunteer_activity_from_row(_row(), 5, None, BOOKING)
        assert activity.capacity == 3
        assert activity.filled == 3
        assert activity.my_role == "General support"
        assert activity.committed_role is None

    def test_confirmed_registration_carries_role(self):
        activity = mappers.volunteer_activity_from_row(
            _row(), 1, {"status": "confirmed", "role": "Wheelchair assistance"}, BOOKING
        )
        assert activity.is_signed_up
        assert activity.my_role == "Wheelchair assistance"
        assert activity.committed_role == "Wheelchair assistance"

    def test_unknown_role_falls_back(self):
        activity = mappers.volunteer_activity_from_row(_row(), 1, {"status": "confirmed", "role": "Chef"}, BOOKING)
        assert activity.my_role == "General support"
        assert activity.committed_role is None


class TestProfiles:
    def test_participant_round_trip_of_caregiver(self):
        profile = mappers.participant_profile_from_row({
            "id": "u1",
            "full_name": "Ann",
            "email": "ann@example.com",
            "age": None,
            "disability": "Visual Impairment",
            "caregiver_info": {"name": "Bo", "phone": "999"},
        })
        assert profile.name == "Ann"
        assert profile.age == 0
        assert profile.is_caregiver
        assert profile.caregiver_phone == "999"
        assert profile.caregiver_email is None

        row = mappers.participant_profile_to_row(profile)
        assert row["caregiver_info"] == {"name": "Bo", "email": None, "phone": "999"}

    def test_unknown_disability_is_other(self):
        profile = mappers.participant_profile_from_row({"id": "u1", "disability": "Something"})
        assert profile.disability == "Other"
        assert not profile.is_caregiver

    def test_non_caregiver_writes_null(self):
        row = mappers.participant_profile_to_row(ParticipantProfile(id="u1", caregiver_name="stale"))
        assert row["caregiver_info"] is None

    def test_volunteer_profile(self):
        profile = mappers.volunteer_profile_from_row({"id": "v1", "gender": None, "bio": "Hi"})
        assert profile.gender == "Prefer not to say"
        assert profile.bio == "Hi"
        assert mappers.volunteer_profile_to_row(VolunteerProfile(id="v1", bio="Hi"))["bio"] == "Hi"
