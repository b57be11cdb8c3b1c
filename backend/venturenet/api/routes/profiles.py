"""Profile Routes — own profile updates, public profile reads and role directories."""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import get_current_user
from venturenet.core.domain_types import Role
from venturenet.core.errors import ValidationError
from venturenet.infrastructure.database import get_db
from venturenet.models.profile import Profile
from venturenet.schemas.common import Pagination, envelope
from venturenet.schemas.profile import (
    ROLE_PROFILE_INPUTS, ProfileOut, ProfileUpdate, PublicProfileOut, dump_role_profile,
)
from venturenet.services import profile_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])

DIRECTORY_ROLES = {"startups": Role.STARTUP, "mentors": Role.MENTOR, "investors": Role.INVESTOR}


@router.patch("/me")
async def update_my_profile(
    body: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.update_profile(db, user, body.model_dump(exclude_unset=True))
    return envelope(ProfileOut.model_validate(profile))


@router.put("/me/role-profile")
async def upsert_my_role_profile(
    body: dict = Body(...),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Body shape depends on the caller's role, so it is validated here, not by FastAPI."""
    schema = ROLE_PROFILE_INPUTS.get(user.role)
    if schema is None:
        raise ValidationError(f"Role '{user.role}' has no role profile", field="role")
    try:
        data = schema.model_validate(body)
    except ValueError as e:
        raise ValidationError(f"Invalid {user.role} profile: {e}") from e
    row = await profile_service.upsert_role_profile(db, user, data.model_dump(exclude_unset=True))
    return envelope(dump_role_profile(user.role, row))


@router.get("/directory/{directory}")
async def browse_directory(
    directory: str,
    industry: str | None = Query(None),
    location: str | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    role = DIRECTORY_ROLES.get(directory)
    if role is None:
        raise ValidationError(f"Unknown directory '{directory}'", field="directory")
    rows, total = await profile_service.browse(
        db, role, industry=industry, location=location, search=search,
        page=page, limit=limit,
    )
    return envelope({
        "items": [
            {
                "profile": PublicProfileOut.model_validate(p),
                "role_profile": dump_role_profile(p.role, r),
            }
            for p, r in rows
        ],
        "pagination": Pagination.build(page, limit, total),
    })


@router.get("/startups/{slug}")
async def get_startup_by_slug(
    slug: str,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile, startup = await profile_service.get_startup_by_slug(db, slug)
    return envelope({
        "profile": PublicProfileOut.model_validate(profile),
        "role_profile": dump_role_profile(profile.role, startup),
    })


@router.get("/{profile_id}")
async def get_profile(
    profile_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.get_profile(db, profile_id)
    role_profile = await profile_service.get_role_profile(db, profile)
    return envelope({
        "profile": PublicProfileOut.model_validate(profile),
        "role_profile": dump_role_profile(profile.role, role_profile),
    })
