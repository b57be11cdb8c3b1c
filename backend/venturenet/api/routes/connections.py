"""Connection Routes — send, respond, cancel and remove peer connections; listings and stats."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import get_current_user
from venturenet.core.domain_types import Direction
from venturenet.infrastructure.database import get_db
from venturenet.models.profile import Profile
from venturenet.schemas.common import ProfileSummary, envelope
from venturenet.schemas.connection import (
    ConnectionCreate, ConnectionOut, ConnectionRespond, ConnectionStats, ConnectionWithProfile,
)
from venturenet.services import connection_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/connections", tags=["connections"])


def _with_profile(rows) -> list[ConnectionWithProfile]:
    return [
        ConnectionWithProfile(
            connection=ConnectionOut.model_validate(c),
            other=ProfileSummary.model_validate(p),
        )
        for c, p in rows
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_connection_request(
    body: ConnectionCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    connection = await connection_service.send_connection_request(
        db, user, body.target_id, body.message, body.connection_type,
    )
    return envelope(ConnectionOut.model_validate(connection), status.HTTP_201_CREATED)


@router.get("")
async def list_connections(
    connection_type: str | None = Query(None, alias="type"),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await connection_service.list_connections(db, user.id, connection_type)
    return envelope(_with_profile(rows))


@router.get("/pending")
async def list_pending(
    direction: Direction = Query(Direction.RECEIVED),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await connection_service.list_pending(db, user.id, direction)
    return envelope(_with_profile(rows))


@router.get("/stats")
async def connection_stats(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await connection_service.connection_stats(db, user.id)
    return envelope(ConnectionStats(**stats))


@router.post("/{connection_id}/respond")
async def respond_to_connection(
    connection_id: UUID,
    body: ConnectionRespond,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    connection = await connection_service.respond_to_connection(
        db, user, connection_id, body.decision, body.response_message,
    )
    return envelope(ConnectionOut.model_validate(connection))


@router.post("/{connection_id}/cancel")
async def cancel_connection_request(
    connection_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    connection = await connection_service.cancel_connection_request(db, user, connection_id)
    return envelope(ConnectionOut.model_validate(connection))


@router.delete("/{connection_id}")
async def remove_connection(
    connection_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await connection_service.remove_connection(db, user, connection_id)
    return envelope({"message": "Connection removed"})
