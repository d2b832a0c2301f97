import datetime as dt
import re
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from portal.eligibility import ACCESS_LABELS
from portal.models.profiles import Disability

TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")

RegistrationStatus = Literal["confirmed", "waitlist", "cancelled"]


class _ActivityFields(BaseModel):
    image: str | None = None
    comments: str | None = None
    description: str | None = None
    activity_type: str | None = None
    disability_access: str | None = None
    meeting_location: str | None = None
    time_start: str | None = None
    time_end: str | None = None
    meals_provided: bool | None = None
    volunteer_slots: int | None = Field(default=None, ge=0)
    participant_slots: int | None = Field(default=None, ge=0)
    wheelchair_accessible: bool | None = None
    visually_impaired_friendly: bool | None = None
    hearing_impaired_friendly: bool | None = None
    intellectual_disability_friendly: bool | None = None
    autism_friendly: bool | None = None
    suitable_disabilities: list[Disability] | None = None

    @field_validator("time_start", "time_end")
    @classmethod
    def validate_time(cls, v: str | None) -> str | None:
        if v is not None and not TIME_RE.match(v):
            raise ValueError("time must be HH:MM")
        return v

    @field_validator("disability_access")
    @classmethod
    def validate_access(cls, v: str | None) -> str | None:
        if v is not None and v not in ACCESS_LABELS:
            raise ValueError(f"disability_access must be one of {', '.join(ACCESS_LABELS)}")
        return v


class ActivityCreate(_ActivityFields):
    title: str
    date: dt.date
    location: str
    category: str

    @field_validator("title", "location", "category")
    @classmethod
    def validate_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ActivityUpdate(_ActivityFields):
    title: str | None = None
    date: dt.date | None = None
    location: str | None = None
    category: str | None = None


class RegistrationStatusUpdate(BaseModel):
    ids: list[int] = Field(min_length=1)
    status: RegistrationStatus


class StatusUpdateResponse(BaseModel):
    updated: int
    status: RegistrationStatus


class UserCounts(BaseModel):
    total: int
    participant: int
    volunteer: int
    staff: int


class ActivityCounts(BaseModel):
    total: int
    upcoming: int


class RegistrationCounts(BaseModel):
    total: int
    confirmed: int
    waitlist: int
    cancelled: int


class DashboardResponse(BaseModel):
    users: UserCounts
    activities: ActivityCounts
    registrations: RegistrationCounts
    next_activity: dict[str, Any] | None = None
