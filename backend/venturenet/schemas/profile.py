"""Profile Schemas — base profile and the three role-specific extensions.

Invariants:
    - Inputs never carry id, role, email or status: those change only through
      auth or admin operations
    - startup stage and mentor availability are closed vocabularies
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

StartupStage = Literal["idea", "prototype", "mvp", "early_revenue", "growth", "scale"]
Availability = Literal["available", "busy", "unavailable"]


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    role: str
    full_name: str | None = None
    avatar_url: str | None = None
    location: str | None = None
    bio: str | None = None
    status: str
    created_at: datetime


class PublicProfileOut(BaseModel):
    """Profile as seen by other users (no email, no moderation fields)."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    role: str
    full_name: str | None = None
    avatar_url: str | None = None
    location: str | None = None
    bio: str | None = None


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(None, max_length=200)
    avatar_url: str | None = Field(None, max_length=2000)
    location: str | None = Field(None, max_length=200)
    bio: str | None = Field(None, max_length=5000)


# ─── Role-specific inputs ────────────────────────────────────────

class StartupProfileIn(BaseModel):
    company_name: str | None = Field(None, min_length=1, max_length=200)
    tagline: str | None = Field(None, max_length=300)
    description: str | None = Field(None, max_length=10_000)
    industry: str | None = Field(None, max_length=100)
    stage: StartupStage | None = None
    location: str | None = Field(None, max_length=200)
    website_url: str | None = Field(None, max_length=2000)
    logo_url: str | None = Field(None, max_length=2000)
    pitch_deck_url: str | None = Field(None, max_length=2000)
    funding_goal: Decimal | None = Field(None, ge=0)
    funding_raised: Decimal | None = Field(None, ge=0)

    @field_validator("company_name")
    @classmethod
    def strip_company_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("company_name cannot be empty or whitespace")
        return v


class MentorProfileIn(BaseModel):
    expertise_tags: list[str] | None = Field(None, max_length=50)
    industry_focus: str | None = Field(None, max_length=100)
    years_experience: int | None = Field(None, ge=0, le=80)
    availability: Availability | None = None
    is_paid: bool | None = None
    hourly_rate: Decimal | None = Field(None, ge=0)
    company: str | None = Field(None, max_length=200)
    job_title: str | None = Field(None, max_length=200)
    location: str | None = Field(None, max_length=200)


class InvestorProfileIn(BaseModel):
    fund_name: str | None = Field(None, max_length=200)
    fund_size: str | None = Field(None, max_length=100)
    industry_focus: str | None = Field(None, max_length=100)
    investment_stage: list[StartupStage] | None = None
    sectors: list[str] | None = Field(None, max_length=50)
    ticket_size_min: int | None = Field(None, ge=0)
    ticket_size_max: int | None = Field(None, ge=0)
    location: str | None = Field(None, max_length=200)

    @model_validator(mode="after")
    def check_ticket_range(self) -> "InvestorProfileIn":
        low, high = self.ticket_size_min, self.ticket_size_max
        if low is not None and high is not None and low > high:
            raise ValueError("ticket_size_min cannot exceed ticket_size_max")
        return self


ROLE_PROFILE_INPUTS = {
    "startup": StartupProfileIn,
    "mentor": MentorProfileIn,
    "investor": InvestorProfileIn,
}


# ─── Role-specific outputs ───────────────────────────────────────

class StartupProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    company_name: str
    tagline: str | None = None
    description: str | None = None
    industry: str | None = None
    stage: str | None = None
    location: str | None = None
    website_url: str | None = None
    logo_url: str | None = None
    pitch_deck_url: str | None = None
    funding_goal: Decimal | None = None
    funding_raised: Decimal
    slug: str


class MentorProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    expertise_tags: list[str]
    industry_focus: str | None = None
    years_experience: int | None = None
    availability: str | None = None
    is_paid: bool
    hourly_rate: Decimal | None = None
    company: str | None = None
    job_title: str | None = None
    location: str | None = None


class InvestorProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    fund_name: str | None = None
    fund_size: str | None = None
    industry_focus: str | None = None
    investment_stage: list[str]
    sectors: list[str]
    ticket_size_min: int | None = None
    ticket_size_max: int | None = None
    location: str | None = None


ROLE_PROFILE_OUTPUTS = {
    "startup": StartupProfileOut,
    "mentor": MentorProfileOut,
    "investor": InvestorProfileOut,
}


def dump_role_profile(role: str, row) -> dict | None:
    """Serialize whichever role-specific row a profile has, or None."""
    if row is None or role not in ROLE_PROFILE_OUTPUTS:
        return None
    return ROLE_PROFILE_OUTPUTS[role].model_validate(row).model_dump(mode="json")
