"""Messaging Schemas — conversations and messages.

Invariants:
    - Message content is stripped; blank content is rejected here, over-length in the
      service (the limit is configurable)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from venturenet.schemas.common import ProfileSummary


class ConversationCreate(BaseModel):
    participant_id: UUID


class MessageCreate(BaseModel):
    content: str = Field(min_length=1)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    message_type: str
    read: bool
    read_at: datetime | None = None
    deleted: bool
    created_at: datetime


class ConversationOut(BaseModel):
    id: UUID
    other: ProfileSummary
    last_message: MessageOut | None = None
    unread_count: int = 0
    updated_at: datetime


class BlockStatus(BaseModel):
    user_id: UUID
    blocked: bool
    blocked_by: bool = False


class BlockedUserOut(BaseModel):
    user: ProfileSummary
    blocked_at: datetime
