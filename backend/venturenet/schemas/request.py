"""Mentorship & Investment Request Schemas.

Invariants:
    - message is required and non-blank: a startup always explains its ask
    - Only investment requests carry a pitch_deck_url
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _RequestBody(BaseModel):
    message: str = Field(min_length=1, max_length=2000)

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message cannot be empty or whitespace")
        return v


class MentorshipRequestCreate(_RequestBody):
    mentor_id: UUID


class InvestmentRequestCreate(_RequestBody):
    investor_id: UUID
    pitch_deck_url: str | None = Field(None, max_length=2000)


class RequestRespond(BaseModel):
    decision: Literal["accepted", "rejected"]
    response_message: str | None = Field(None, max_length=2000)


class MentorshipRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    startup_id: UUID
    mentor_id: UUID
    message: str
    status: str
    response_message: str | None = None
    responded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class InvestmentRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    startup_id: UUID
    investor_id: UUID
    message: str
    pitch_deck_url: str | None = None
    status: str
    response_message: str | None = None
    responded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class RequestCounts(BaseModel):
    pending: int = 0
    accepted: int = 0
    rejected: int = 0
    cancelled: int = 0


class RequestStats(BaseModel):
    """Per-kind counts from the caller's side: sent for startups, received otherwise."""
    mentorship: RequestCounts
    investment: RequestCounts


class PitchDeckOut(BaseModel):
    url: str
