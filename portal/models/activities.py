from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from portal.models.profiles import Disability
from portal.timewindows import parse_instant

VolunteerRole = Literal["General support", "Wheelchair assistance"]
VOLUNTEER_ROLES: tuple[str, ...] = VolunteerRole.__args__
DEFAULT_VOLUNTEER_ROLE: VolunteerRole = "General support"

DateWindow = Literal["all", "today", "week", "month"]
Suitability = Literal["all", "suitable"]
Area = Literal["all", "Central", "East", "West"]


class Accessibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    wheelchair_accessible: bool = False
    visually_impaired_friendly: bool = False
    hearing_impaired_friendly: bool = False
    intellectual_disability_friendly: bool = False
    autism_friendly: bool = False


class BookableActivity(BaseModel):
    """Schedulable interval with capacity and the current user's booking flags.

    ``confirmed`` counts against capacity; ``waitlisted`` does not.
    Instances are frozen and replaced wholesale by the store.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    start: datetime
    end: datetime
    location: str
    capacity: int = Field(ge=0)
    filled: int = Field(default=0, ge=0)
    confirmed: bool = False
    waitlisted: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> datetime:
        if isinstance(v, (str, datetime)):
            return parse_instant(v)
        return v

    @model_validator(mode="after")
    def check_bounds(self) -> "BookableActivity":
        if not self.start < self.end:
            raise ValueError("start must be before end")
        if self.filled > self.capacity:
            raise ValueError("filled must not exceed capacity")
        return self

    @property
    def is_full(self) -> bool:
        return self.filled >= self.capacity

    @property
    def is_booked(self) -> bool:
        return self.confirmed or self.waitlisted


class ParticipantActivity(BookableActivity):
    kind: Literal["participant"] = "participant"
    description: str = ""
    meeting_point: str = ""
    meals_provided: bool = False
    accessibility: Accessibility = Field(default_factory=Accessibility)
    suitable_for: list[Disability] = Field(default_factory=list)
    image: str | None = None

    @computed_field
    @property
    def is_registered(self) -> bool:
        return self.confirmed


class VolunteerActivity(BookableActivity):
    kind: Literal["volunteer"] = "volunteer"
    my_role: VolunteerRole = DEFAULT_VOLUNTEER_ROLE
    # role held when the sign-up was made; later role picks do not change it
    committed_role: VolunteerRole | None = None

    @computed_field
    @property
    def is_signed_up(self) -> bool:
        return self.confirmed


class ActivityFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: DateWindow = "all"
    location: str = "all"
    area: Area = "all"
    suitability: Suitability = "all"
    only_available: bool = False


class ActivityFiltersPatch(BaseModel):
    date: DateWindow | None = None
    location: str | None = None
    area: Area | None = None
    suitability: Suitability | None = None
    only_available: bool | None = None


class RoleChange(BaseModel):
    role: VolunteerRole


class ToggleResponse(BaseModel):
    outcome: str
    activity: ParticipantActivity | VolunteerActivity | None = None
    message: str | None = None
    severity: str | None = None


class WeeklyCountResponse(BaseModel):
    count: int
    cap: int | None = None


class ClashResponse(BaseModel):
    activity_id: str
    clash: bool
