"""Profile Service — base profile reads/updates, role profile upsert, directory browsing.

Invariants:
    - A profile owns at most one role-specific row, matching its role
    - Startup slugs are unique; collisions get a numeric suffix
    - Browsing only lists active profiles
"""

import logging
import re
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.core.domain_types import ProfileStatus, Role
from venturenet.core.errors import ResourceNotFoundError, ValidationError
from venturenet.models.profile import ROLE_PROFILE_MODELS, Profile, StartupProfile
from venturenet.services.notifications import log_activity

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "startup"


async def _unique_slug(db: AsyncSession, base: str) -> str:
    rows = await db.execute(
        select(StartupProfile.slug).where(
            (StartupProfile.slug == base) | StartupProfile.slug.like(f"{base}-%"),
        ),
    )
    taken = set(rows.scalars().all())
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


async def get_profile(db: AsyncSession, profile_id: UUID) -> Profile:
    profile = await db.get(Profile, profile_id)
    if profile is None:
        raise ResourceNotFoundError("User", str(profile_id))
    return profile


async def get_role_profile(db: AsyncSession, profile: Profile):
    model = ROLE_PROFILE_MODELS.get(profile.role)
    if model is None:
        return None
    result = await db.execute(select(model).where(model.user_id == profile.id))
    return result.scalar_one_or_none()


async def get_startup_by_slug(db: AsyncSession, slug: str) -> tuple[Profile, StartupProfile]:
    result = await db.execute(
        select(Profile, StartupProfile)
        .join(StartupProfile, StartupProfile.user_id == Profile.id)
        .where(StartupProfile.slug == slug),
    )
    row = result.one_or_none()
    if row is None:
        raise ResourceNotFoundError("Startup", slug)
    return row[0], row[1]


async def update_profile(db: AsyncSession, profile: Profile, changes: dict) -> Profile:
    for key, value in changes.items():
        setattr(profile, key, value)
    log_activity(db, profile.id, "profile_updated", {"fields": sorted(changes)})
    await db.commit()
    return profile


async def upsert_role_profile(db: AsyncSession, profile: Profile, changes: dict):
    """Create or update the caller's role-specific profile."""
    model = ROLE_PROFILE_MODELS.get(profile.role)
    if model is None:
        raise ValidationError(f"Role '{profile.role}' has no role profile", field="role")

    row = await get_role_profile(db, profile)
    created = row is None
    if created:
        if profile.role == Role.STARTUP.value:
            if not changes.get("company_name"):
                raise ValidationError("company_name is required", field="company_name")
            changes["slug"] = await _unique_slug(db, slugify(changes["company_name"]))
        row = model(user_id=profile.id)
        db.add(row)
    for key, value in changes.items():
        setattr(row, key, value)

    log_activity(
        db, profile.id,
        f"{profile.role}_profile_{'created' if created else 'updated'}",
        {"fields": sorted(changes)},
    )
    await db.commit()
    await db.refresh(row)
    logger.info(
        f"{profile.role} profile {'created' if created else 'updated'}",
        extra={"user_id": str(profile.id)},
    )
    return row


async def browse(
    db: AsyncSession,
    role: Role,
    industry: str | None = None,
    location: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[tuple[Profile, object]], int]:
    """Active profiles of one role joined to their role row, newest first."""
    model = ROLE_PROFILE_MODELS[role.value]
    query = (
        select(Profile, model)
        .join(model, model.user_id == Profile.id)
        .where(Profile.role == role.value, Profile.status == ProfileStatus.ACTIVE.value)
    )
    if industry:
        column = model.industry if model is StartupProfile else model.industry_focus
        query = query.where(column == industry)
    if location:
        query = query.where(model.location.ilike(f"%{location}%"))
    if search:
        query = query.where(Profile.full_name.ilike(f"%{search}%"))

    total = (await db.execute(
        select(func.count()).select_from(query.subquery()),
    )).scalar_one()
    rows = await db.execute(
        query.order_by(Profile.created_at.desc())
        .limit(limit).offset((page - 1) * limit),
    )
    return [(p, r) for p, r in rows.all()], total
