"""Recommendation Routes — graph-ranked profiles for the caller, with attribute fallback."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import get_current_user
from venturenet.core.errors import ValidationError
from venturenet.infrastructure.database import get_db
from venturenet.models.profile import Profile
from venturenet.schemas.common import envelope
from venturenet.services import recommendation_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/recommendations", tags=["recommendations"])

MEMBER_ROLES = {"startup", "mentor", "investor"}


@router.get("")
async def get_recommendations(
    top_k: int = Query(8, ge=1, le=50, alias="topK"),
    target_role: str | None = Query(None, alias="targetRole"),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    roles = None
    if target_role:
        roles = [r.strip() for r in target_role.split(",") if r.strip()]
        if unknown := set(roles) - MEMBER_ROLES:
            raise ValidationError(f"Unknown role(s): {', '.join(sorted(unknown))}", field="targetRole")
    items = await recommendation_service.recommend(db, user, top_k, roles)
    return {"data": items, "count": len(items), "status": 200}
