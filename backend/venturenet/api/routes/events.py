"""Event Routes — event lifecycle (create, update, cancel, stats), registration and moderation."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import get_current_user
from venturenet.core.domain_types import RegistrationStatus
from venturenet.infrastructure.database import get_db
from venturenet.models.profile import Profile
from venturenet.schemas.common import Pagination, ProfileSummary, envelope
from venturenet.schemas.event import (
    EventCancel, EventCreate, EventOut, EventStats, EventUpdate,
    RegistrationCreate, RegistrationModerate, RegistrationOut,
)
from venturenet.services import event_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    body: EventCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.create_event(db, user, body.model_dump())
    return envelope(EventOut.model_validate(event), status.HTTP_201_CREATED)


@router.get("")
async def list_events(
    upcoming: bool = Query(True),
    event_type: str | None = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    events, total = await event_service.list_events(
        db, user, upcoming=upcoming, event_type=event_type, page=page, limit=limit,
    )
    return envelope({
        "events": [EventOut.model_validate(e) for e in events],
        "pagination": Pagination.build(page, limit, total),
    })


@router.get("/registrations/me")
async def my_registrations(
    include_inactive: bool = Query(False),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await event_service.list_user_registrations(db, user.id, include_inactive)
    return envelope([
        {"registration": RegistrationOut.model_validate(r), "event": EventOut.model_validate(e)}
        for r, e in rows
    ])


@router.post("/registrations/{registration_id}/cancel")
async def cancel_registration(
    registration_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    registration = await event_service.cancel_registration(db, user, registration_id)
    return envelope(RegistrationOut.model_validate(registration))


@router.post("/registrations/{registration_id}/moderate")
async def moderate_registration(
    registration_id: UUID,
    body: RegistrationModerate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    registration = await event_service.moderate_registration(
        db, user, registration_id, body.action, body.message,
    )
    return envelope(RegistrationOut.model_validate(registration))


@router.get("/{event_id}")
async def get_event(
    event_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.get_event(db, event_id)
    return envelope(EventOut.model_validate(event))


@router.patch("/{event_id}")
async def update_event(
    event_id: UUID,
    body: EventUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.update_event(
        db, user, event_id, body.model_dump(exclude_unset=True),
    )
    return envelope(EventOut.model_validate(event))


@router.post("/{event_id}/cancel")
async def cancel_event(
    event_id: UUID,
    body: EventCancel | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.cancel_event(db, user, event_id, body.reason if body else None)
    return envelope(EventOut.model_validate(event))


@router.get("/{event_id}/stats")
async def event_stats(
    event_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return envelope(EventStats(**await event_service.event_stats(db, user, event_id)))


@router.post("/{event_id}/register", status_code=status.HTTP_201_CREATED)
async def register_for_event(
    event_id: UUID,
    body: RegistrationCreate | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    body = body or RegistrationCreate()
    registration = await event_service.register_for_event(
        db, user, event_id, body.registration_type, body.notes,
    )
    return envelope(RegistrationOut.model_validate(registration), status.HTTP_201_CREATED)


@router.get("/{event_id}/registrations")
async def list_event_registrations(
    event_id: UUID,
    status_filter: RegistrationStatus | None = Query(None, alias="status"),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await event_service.list_event_registrations(db, user, event_id, status_filter)
    return envelope([
        {"registration": RegistrationOut.model_validate(r), "user": ProfileSummary.model_validate(p)}
        for r, p in rows
    ])
