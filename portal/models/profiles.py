from typing import Literal

from pydantic import BaseModel, Field

Disability = Literal[
    "Physical Disability",
    "Visual Impairment",
    "Hearing Impairment",
    "Intellectual Disability",
    "Autism Spectrum",
    "Multiple Disabilities",
    "Other",
]

DISABILITIES: tuple[str, ...] = Disability.__args__

Gender = Literal["Prefer not to say", "Female", "Male", "Non-binary", "Other"]
GENDERS: tuple[str, ...] = Gender.__args__

Role = Literal["participant", "volunteer", "staff"]


class ParticipantProfile(BaseModel):
    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    age: int = Field(default=0, ge=0)
    disability: Disability = "Other"
    is_caregiver: bool = False
    caregiver_name: str | None = None
    caregiver_email: str | None = None
    caregiver_phone: str | None = None
    photo_url: str | None = None


class ParticipantProfileUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    age: int | None = Field(default=None, ge=0)
    disability: Disability | None = None
    is_caregiver: bool | None = None
    caregiver_name: str | None = None
    caregiver_email: str | None = None
    caregiver_phone: str | None = None
    photo_url: str | None = None


class VolunteerProfile(BaseModel):
    id: str
    full_name: str = ""
    gender: Gender = "Prefer not to say"
    bio: str = ""
    experience: str = ""
    languages: str = ""


class VolunteerProfileUpdate(BaseModel):
    full_name: str | None = None
    gender: Gender | None = None
    bio: str | None = None
    experience: str | None = None
    languages: str | None = None


class ProfileUpdateOutcome(BaseModel):
    """Result of a profile update that was written through to storage."""

    status: Literal["confirmed", "rolled_back", "rejected"]
    profile: ParticipantProfile | VolunteerProfile | None = None
    pending: bool = False
    detail: str | None = None
