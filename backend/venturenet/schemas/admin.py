"""Admin Schemas — back-office inputs and platform statistics."""

from uuid import UUID

from pydantic import BaseModel, Field

from venturenet.core.domain_types import ProfileStatus
from venturenet.schemas.common import ActivityOut, ProfileSummary


class UserStatusUpdate(BaseModel):
    status: ProfileStatus
    reason: str | None = Field(None, max_length=1000)


class PlatformStats(BaseModel):
    total_users: int
    total_startups: int
    total_mentors: int
    total_investors: int
    total_events: int
    active_events: int
    total_registrations: int
    total_connections: int
    total_messages: int
    new_users_last_30_days: int
    role_distribution: dict[str, int]
    status_distribution: dict[str, int]


class ActivityLogOut(ActivityOut):
    user_id: UUID | None = None
    user: ProfileSummary | None = None
