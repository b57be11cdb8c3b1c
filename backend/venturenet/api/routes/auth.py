"""Auth Routes — signup, login, logout and the current profile.

Invariants:
    - The raw token appears only in signup/login responses
    - /me returns the role-specific profile alongside the base profile
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import get_current_user, get_token
from venturenet.config import Settings, get_settings
from venturenet.infrastructure.database import get_db
from venturenet.models.profile import Profile
from venturenet.schemas.auth import LoginRequest, SessionOut, SignupRequest
from venturenet.schemas.common import envelope
from venturenet.schemas.profile import ProfileOut, dump_role_profile
from venturenet.services import auth_service, profile_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    profile, token, expires_at = await auth_service.signup(
        db, settings, body.email, body.password, body.role, body.full_name,
    )
    session = SessionOut(
        token=token, expires_at=expires_at, profile=ProfileOut.model_validate(profile),
    )
    return envelope(session, status.HTTP_201_CREATED)


@router.post("/login")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    profile, token, expires_at = await auth_service.login(
        db, settings, body.email, body.password,
    )
    return envelope(SessionOut(
        token=token, expires_at=expires_at, profile=ProfileOut.model_validate(profile),
    ))


@router.post("/logout")
async def logout(
    token: str = Depends(get_token),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await auth_service.logout(db, settings, token)
    return envelope({"message": "Logged out"})


@router.get("/me")
async def me(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    role_profile = await profile_service.get_role_profile(db, user)
    return envelope({
        "profile": ProfileOut.model_validate(user),
        "role_profile": dump_role_profile(user.role, role_profile),
    })
