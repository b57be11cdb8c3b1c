"""Auth Schemas — signup, login and issued-session payloads."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from venturenet.schemas.profile import ProfileOut

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignupRequest(BaseModel):
    """Self-service signup. Admin accounts are provisioned, never self-registered."""
    email: str = Field(max_length=320, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)
    role: Literal["startup", "mentor", "investor"]
    full_name: str | None = Field(None, max_length=200)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(BaseModel):
    email: str = Field(max_length=320)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class SessionOut(BaseModel):
    token: str
    expires_at: datetime
    profile: ProfileOut
