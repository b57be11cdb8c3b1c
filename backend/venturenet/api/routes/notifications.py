"""Notification Routes — the caller's inbox and activity history."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import get_current_user
from venturenet.infrastructure.database import get_db
from venturenet.models.profile import Profile
from venturenet.schemas.common import ActivityOut, NotificationOut, envelope
from venturenet.services import notifications

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    unread: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await notifications.list_notifications(db, user.id, unread_only=unread, limit=limit)
    return envelope([NotificationOut.model_validate(n) for n in rows])


@router.post("/read-all")
async def mark_all_read(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return envelope({"marked_read": await notifications.mark_all_read(db, user.id)})


@router.get("/activity")
async def list_activity(
    limit: int = Query(50, ge=1, le=200),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await notifications.list_activity(db, user.id, limit)
    return envelope([ActivityOut.model_validate(a) for a in rows])


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await notifications.mark_read(db, user.id, notification_id)
    return envelope(NotificationOut.model_validate(notification))
