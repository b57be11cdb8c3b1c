"""Connection Schemas — peer connection requests and their responses.

Invariants:
    - A response decision is "accepted" or "declined"; "rejected" is accepted as an
      alias and normalized to "declined"
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from venturenet.schemas.common import ProfileSummary


class ConnectionCreate(BaseModel):
    target_id: UUID
    message: str | None = Field(None, max_length=500)
    connection_type: str = Field("general", min_length=1, max_length=50)


class ConnectionRespond(BaseModel):
    decision: Literal["accepted", "declined", "rejected"]
    response_message: str | None = Field(None, max_length=500)

    @field_validator("decision")
    @classmethod
    def normalize_decision(cls, v: str) -> str:
        return "declined" if v == "rejected" else v


class ConnectionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    requester_id: UUID
    target_id: UUID
    connection_type: str
    status: str
    message: str | None = None
    response_message: str | None = None
    responded_at: datetime | None = None
    created_at: datetime


class ConnectionWithProfile(BaseModel):
    connection: ConnectionOut
    other: ProfileSummary


class ConnectionStats(BaseModel):
    total: int
    startups: int
    mentors: int
    investors: int
    pending_received: int
    pending_sent: int
