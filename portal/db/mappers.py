"""Row <-> entity conversion for the database-backed stores.

Stored activities carry a calendar date plus ``HH:MM`` strings; these are
combined with the configured UTC offset into instants. Accessibility comes
from the explicit boolean columns, falling back per flag to the coarse
``disability_access`` label.
"""

from typing import Any

from portal.config import BookingSettings
from portal.eligibility import accessibility_from_access_label, suitable_for_from_access_label
from portal.models.activities import VOLUNTEER_ROLES, Accessibility, ParticipantActivity, VolunteerActivity
from portal.models.profiles import DISABILITIES, GENDERS, ParticipantProfile, VolunteerProfile
from portal.timewindows import combine_date_time

ACCESS_FLAGS = tuple(Accessibility.model_fields)


def activity_times(row: dict[str, Any], booking: BookingSettings):
    start = combine_date_time(row["date"], row.get("time_start") or booking.default_start_time, booking.utc_offset)
    end = combine_date_time(row["date"], row.get("time_end") or booking.default_end_time, booking.utc_offset)
    return start, end


def accessibility_from_row(row: dict[str, Any]) -> Accessibility:
    derived = accessibility_from_access_label(row.get("disability_access"))
    return Accessibility(**{
        flag: derived_value if row.get(flag) is None else bool(row[flag])
        for flag, derived_value in derived.model_dump().items()
    })


def suitable_for_from_row(row: dict[str, Any]) -> list[str]:
    explicit = row.get("suitable_disabilities")
    if isinstance(explicit, list):
        return [d for d in explicit if d in DISABILITIES]
    return suitable_for_from_access_label(row.get("disability_access"))


def participant_activity_from_row(
    row: dict[str, Any],
    filled: int,
    registration: dict[str, Any] | None,
    booking: BookingSettings,
) -> ParticipantActivity:
    start, end = activity_times(row, booking)
    capacity = row.get("participant_slots")
    if capacity is None:
        capacity = booking.default_participant_capacity
    status = registration["status"] if registration else None
    return ParticipantActivity(
        id=row["id"],
        title=row["title"],
        start=start,
        end=end,
        location=row["location"],
        capacity=capacity,
        filled=min(filled, capacity),
        confirmed=status == "confirmed",
        waitlisted=status == "waitlist",
        description=row.get("description") or row.get("comments") or row["title"],
        meeting_point=row.get("meeting_location") or row["location"],
        meals_provided=bool(row.get("meals_provided")),
        accessibility=accessibility_from_row(row),
        suitable_for=suitable_for_from_row(row),
        image=row.get("image"),
    )


def volunteer_activity_from_row(
    row: dict[str, Any],
    filled: int,
    registration: dict[str, Any] | None,
    booking: BookingSettings,
) -> VolunteerActivity:
    start, end = activity_times(row, booking)
    capacity = row.get("volunteer_slots") or 0
    confirmed = bool(registration) and registration["status"] == "confirmed"
    role = registration.get("role") if registration else None
    if role not in VOLUNTEER_ROLES:
        role = None
    fields: dict[str, Any] = {}
    if role is not None:
        fields["my_role"] = role
    return VolunteerActivity(
        id=row["id"],
        title=row["title"],
        start=start,
        end=end,
        location=row["location"],
        capacity=capacity,
        filled=min(filled, capacity),
        confirmed=confirmed,
        committed_role=role if confirmed else None,
        **fields,
    )


def participant_profile_from_row(row: dict[str, Any]) -> ParticipantProfile:
    caregiver = row.get("caregiver_info")
    disability = row.get("disability")
    return ParticipantProfile(
        id=row["id"],
        name=row.get("full_name") or "",
        email=row.get("email") or "",
        phone=row.get("phone") or "",
        age=row.get("age") or 0,
        disability=disability if disability in DISABILITIES else "Other",
        is_caregiver=caregiver is not None,
        caregiver_name=(caregiver or {}).get("name"),
        caregiver_email=(caregiver or {}).get("email"),
        caregiver_phone=(caregiver or {}).get("phone"),
        photo_url=row.get("photo_url"),
    )


def participant_profile_to_row(profile: ParticipantProfile) -> dict[str, Any]:
    caregiver = None
    if profile.is_caregiver:
        caregiver = {
            "name": profile.caregiver_name or "",
            "email": profile.caregiver_email,
            "phone": profile.caregiver_phone,
        }
    return {
        "full_name": profile.name,
        "email": profile.email,
        "phone": profile.phone,
        "age": profile.age,
        "disability": profile.disability,
        "caregiver_info": caregiver,
        "photo_url": profile.photo_url,
    }


def volunteer_profile_from_row(row: dict[str, Any]) -> VolunteerProfile:
    gender = row.get("gender")
    return VolunteerProfile(
        id=row["id"],
        full_name=row.get("full_name") or "",
        gender=gender if gender in GENDERS else "Prefer not to say",
        bio=row.get("bio") or "",
        experience=row.get("experience") or "",
        languages=row.get("languages") or "",
    )


def volunteer_profile_to_row(profile: VolunteerProfile) -> dict[str, Any]:
    return profile.model_dump(exclude={"id"})
