"""Admin Routes — back-office endpoints, all gated by require_admin.

Invariants:
    - Every route depends on require_admin: 401 without a valid session, 403 for non-admins
    - Listings are page-based (1-indexed) with {page, limit, total, total_pages}
"""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import require_admin
from venturenet.core.domain_types import EventStatus, ProfileStatus, Role
from venturenet.infrastructure.database import get_db
from venturenet.models.profile import Profile
from venturenet.schemas.admin import ActivityLogOut, PlatformStats, UserStatusUpdate
from venturenet.schemas.common import Pagination, ProfileSummary, envelope
from venturenet.schemas.event import EventCreate, EventOut, EventUpdate
from venturenet.schemas.profile import ProfileOut
from venturenet.services import admin_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats")
async def platform_stats(
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return envelope(PlatformStats(**await admin_service.platform_stats(db)))


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    role: Role | None = Query(None),
    status_filter: ProfileStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=200),
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users, total = await admin_service.list_users(
        db,
        role=role.value if role else None,
        status=status_filter.value if status_filter else None,
        search=search, page=page, limit=limit,
    )
    return envelope({
        "users": [ProfileOut.model_validate(u) for u in users],
        "pagination": Pagination.build(page, limit, total),
    })


@router.patch("/users/{user_id}/status")
async def update_user_status(
    user_id: UUID,
    body: UserStatusUpdate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await admin_service.update_user_status(db, admin, user_id, body.status, body.reason)
    return envelope(ProfileOut.model_validate(user))


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await admin_service.delete_user(db, admin, user_id)
    return envelope({"message": "User deleted"})


@router.get("/events")
async def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    status_filter: EventStatus | None = Query(None, alias="status"),
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await admin_service.list_events(
        db, status=status_filter.value if status_filter else None, page=page, limit=limit,
    )
    return envelope({
        "events": [
            {
                **EventOut.model_validate(e).model_dump(mode="json"),
                "organizer": ProfileSummary.model_validate(o) if o else None,
            }
            for e, o in rows
        ],
        "pagination": Pagination.build(page, limit, total),
    })


@router.post("/events", status_code=status.HTTP_201_CREATED)
async def create_event(
    body: EventCreate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    event = await admin_service.create_event(db, admin, body.model_dump())
    return envelope(EventOut.model_validate(event), status.HTTP_201_CREATED)


@router.patch("/events/{event_id}")
async def update_event(
    event_id: UUID,
    body: EventUpdate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    event = await admin_service.update_event(
        db, admin, event_id, body.model_dump(exclude_unset=True),
    )
    return envelope(EventOut.model_validate(event))


@router.delete("/events/{event_id}")
async def delete_event(
    event_id: UUID,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await admin_service.delete_event(db, admin, event_id)
    return envelope({"message": "Event deleted"})


@router.get("/activity-logs")
async def list_activity_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user_id: UUID | None = Query(None),
    action: str | None = Query(None, max_length=100),
    date_from: datetime | None = Query(None, alias="from"),
    date_to: datetime | None = Query(None, alias="to"),
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await admin_service.list_activity_logs(
        db, user_id=user_id, action=action, date_from=date_from, date_to=date_to,
        page=page, limit=limit,
    )
    return envelope({
        "logs": [
            ActivityLogOut(
                id=log.id, action=log.action, details=log.details or {},
                created_at=log.created_at, user_id=log.user_id,
                user=ProfileSummary.model_validate(user) if user else None,
            )
            for log, user in rows
        ],
        "pagination": Pagination.build(page, limit, total),
    })
