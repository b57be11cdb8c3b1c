"""Event & Registration Schemas.

Invariants:
    - Naive datetimes from clients are interpreted as UTC
    - max_participants, when set, is at least 1
    - target_audience only names the three member roles; empty means everyone
"""

from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from venturenet.core.domain_types import EventStatus, ModerationAction

AudienceRole = Literal["startup", "mentor", "investor"]
EventType = Literal["networking", "workshop", "pitch", "conference", "webinar", "meetup", "other"]


def _to_utc(v: datetime | None) -> datetime | None:
    if v is None:
        return v
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    event_type: EventType | None = None
    start_date: datetime
    end_date: datetime | None = None
    location: str | None = Field(None, max_length=200)
    is_virtual: bool = False
    meeting_link: str | None = Field(None, max_length=2000)
    max_participants: int | None = Field(None, ge=1)
    registration_deadline: datetime | None = None
    requires_approval: bool = False
    is_public: bool = True
    target_audience: list[AudienceRole] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list, max_length=20)

    @field_validator("start_date", "end_date", "registration_deadline")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _to_utc(v)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()


class EventUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""
    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    event_type: EventType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    location: str | None = Field(None, max_length=200)
    is_virtual: bool | None = None
    meeting_link: str | None = Field(None, max_length=2000)
    max_participants: int | None = Field(None, ge=1)
    registration_deadline: datetime | None = None
    requires_approval: bool | None = None
    is_public: bool | None = None
    target_audience: list[AudienceRole] | None = None
    tags: list[str] | None = Field(None, max_length=20)
    status: EventStatus | None = None

    @field_validator("start_date", "end_date", "registration_deadline")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _to_utc(v)


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organizer_id: UUID | None = None
    title: str
    description: str | None = None
    event_type: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    location: str | None = None
    is_virtual: bool
    meeting_link: str | None = None
    max_participants: int | None = None
    confirmed_count: int
    registration_deadline: datetime | None = None
    requires_approval: bool
    is_public: bool
    target_audience: list[str]
    tags: list[str]
    status: str
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime


class EventCancel(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class EventStats(BaseModel):
    event_id: UUID
    total_registrations: int
    confirmed: int
    pending: int
    cancelled: int
    rejected: int
    by_type: dict[str, int]
    max_participants: int | None = None
    remaining_seats: int | None = None


class RegistrationCreate(BaseModel):
    registration_type: Literal["attendee", "speaker", "volunteer"] = "attendee"
    notes: str | None = Field(None, max_length=1000)


class RegistrationModerate(BaseModel):
    action: ModerationAction
    message: str | None = Field(None, max_length=1000)


class RegistrationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    user_id: UUID
    status: str
    registration_type: str
    notes: str | None = None
    moderator_message: str | None = None
    moderated_at: datetime | None = None
    cancelled_at: datetime | None = None
    registered_at: datetime
