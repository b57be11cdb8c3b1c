"""Connection Service — peer-to-peer connection requests between any two members.

Invariants:
    - At most one pending/accepted connection per unordered pair; the partial unique
      index on (pair_low, pair_high) decides races the pre-check cannot see
    - Only the target responds, only the requester cancels, either party removes
    - Each transition commits together with its notification and activity log

Design Decisions:
    - Pre-check before insert gives the precise message ("Already connected" vs pending);
      the IntegrityError path covers the concurrent case with the pending message
"""

import logging
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.core.domain_types import (
    ConnectionStatus, Direction, NON_TERMINAL_CONNECTION_STATUSES, NotificationType, Role,
)
from venturenet.core.enforce_requests import (
    check_can_cancel, check_can_respond, check_is_party, check_no_open_connection,
    check_not_self, normalize_pair,
)
from venturenet.core.errors import BusinessRuleError, ConflictError, ResourceNotFoundError
from venturenet.db.base import utcnow
from venturenet.models.connection import Connection
from venturenet.models.profile import Profile
from venturenet.services.notifications import log_activity, notify

logger = logging.getLogger(__name__)


async def _get_connection(db: AsyncSession, connection_id: UUID) -> Connection:
    connection = await db.get(Connection, connection_id)
    if connection is None:
        raise ResourceNotFoundError("Connection request", str(connection_id))
    return connection


async def send_connection_request(
    db: AsyncSession,
    requester: Profile,
    target_id: UUID,
    message: str | None = None,
    connection_type: str = "general",
) -> Connection:
    if error := check_not_self(requester.id, target_id, "Cannot connect to yourself"):
        raise error
    if await db.get(Profile, target_id) is None:
        raise ResourceNotFoundError("User", str(target_id))

    low, high = normalize_pair(requester.id, target_id)
    existing = await db.execute(
        select(Connection.status).where(
            Connection.pair_low == low,
            Connection.pair_high == high,
            Connection.status.in_(NON_TERMINAL_CONNECTION_STATUSES),
        ),
    )
    if error := check_no_open_connection(existing.scalars().first()):
        raise error

    connection = Connection(
        requester_id=requester.id, target_id=target_id,
        pair_low=low, pair_high=high,
        connection_type=connection_type, message=message,
        status=ConnectionStatus.PENDING.value,
    )
    db.add(connection)
    try:
        await db.flush()
    except IntegrityError:
        logger.warning(
            "Concurrent connection request rejected by unique index",
            extra={"user_id": str(requester.id)},
        )
        await db.rollback()
        raise ConflictError("Connection request already pending", "REQUEST_PENDING")

    notify(
        db, target_id, NotificationType.CONNECTION_REQUEST,
        "New connection request",
        f"{requester.full_name or 'Someone'} wants to connect with you",
        {"connection_id": connection.id, "requester_id": requester.id},
    )
    log_activity(db, requester.id, "connection_request_sent", {
        "connection_id": connection.id, "target_id": target_id,
    })
    await db.commit()
    logger.info(
        f"Connection request {connection.id} sent",
        extra={"user_id": str(requester.id), "connection_id": str(connection.id)},
    )
    return connection


async def respond_to_connection(
    db: AsyncSession,
    caller: Profile,
    connection_id: UUID,
    decision: str,
    response_message: str | None = None,
) -> Connection:
    connection = await _get_connection(db, connection_id)
    if error := check_can_respond(connection.target_id, caller.id, connection.status):
        raise error

    connection.status = ConnectionStatus(decision).value
    connection.response_message = response_message
    connection.responded_at = utcnow()

    verb = "accepted" if decision == ConnectionStatus.ACCEPTED.value else "declined"
    notify(
        db, connection.requester_id, NotificationType.CONNECTION_RESPONSE,
        f"Connection request {verb}",
        f"{caller.full_name or 'Someone'} {verb} your connection request",
        {"connection_id": connection.id, "status": connection.status},
    )
    log_activity(db, caller.id, f"connection_request_{verb}", {
        "connection_id": connection.id,
    })
    await db.commit()
    logger.info(
        f"Connection {connection.id} {verb}",
        extra={"user_id": str(caller.id), "connection_id": str(connection.id)},
    )
    return connection


async def cancel_connection_request(
    db: AsyncSession, caller: Profile, connection_id: UUID,
) -> Connection:
    connection = await _get_connection(db, connection_id)
    if error := check_can_cancel(connection.requester_id, caller.id, connection.status):
        raise error

    connection.status = ConnectionStatus.CANCELLED.value
    log_activity(db, caller.id, "connection_request_cancelled", {
        "connection_id": connection.id,
    })
    await db.commit()
    return connection


async def remove_connection(
    db: AsyncSession, caller: Profile, connection_id: UUID,
) -> None:
    """Either party may dissolve an accepted connection; the row is deleted."""
    connection = await _get_connection(db, connection_id)
    if error := check_is_party(connection.requester_id, connection.target_id, caller.id):
        raise error
    if connection.status != ConnectionStatus.ACCEPTED.value:
        raise BusinessRuleError(
            "Only accepted connections can be removed", "NOT_CONNECTED",
        )

    await db.delete(connection)
    log_activity(db, caller.id, "connection_removed", {"connection_id": connection_id})
    await db.commit()
    logger.info(
        f"Connection {connection_id} removed",
        extra={"user_id": str(caller.id), "connection_id": str(connection_id)},
    )


def _other_party_join(user_id: UUID):
    """Join condition selecting the profile on the other side of a connection."""
    return or_(
        and_(Connection.requester_id == user_id, Profile.id == Connection.target_id),
        and_(Connection.target_id == user_id, Profile.id == Connection.requester_id),
    )


async def list_connections(
    db: AsyncSession, user_id: UUID, connection_type: str | None = None,
) -> list[tuple[Connection, Profile]]:
    query = (
        select(Connection, Profile)
        .join(Profile, _other_party_join(user_id))
        .where(Connection.status == ConnectionStatus.ACCEPTED.value)
        .order_by(Connection.updated_at.desc())
    )
    if connection_type:
        query = query.where(Connection.connection_type == connection_type)
    result = await db.execute(query)
    return [(c, p) for c, p in result.all()]


async def list_pending(
    db: AsyncSession, user_id: UUID, direction: Direction,
) -> list[tuple[Connection, Profile]]:
    if direction is Direction.RECEIVED:
        side, other = Connection.target_id, Connection.requester_id
    else:
        side, other = Connection.requester_id, Connection.target_id
    result = await db.execute(
        select(Connection, Profile)
        .join(Profile, Profile.id == other)
        .where(side == user_id, Connection.status == ConnectionStatus.PENDING.value)
        .order_by(Connection.created_at.desc()),
    )
    return [(c, p) for c, p in result.all()]


async def connection_stats(db: AsyncSession, user_id: UUID) -> dict:
    by_role = await db.execute(
        select(Profile.role, func.count())
        .select_from(Connection)
        .join(Profile, _other_party_join(user_id))
        .where(Connection.status == ConnectionStatus.ACCEPTED.value)
        .group_by(Profile.role),
    )
    counts = dict(by_role.all())

    pending_received = (await db.execute(
        select(func.count()).select_from(Connection).where(
            Connection.target_id == user_id,
            Connection.status == ConnectionStatus.PENDING.value,
        ),
    )).scalar_one()
    pending_sent = (await db.execute(
        select(func.count()).select_from(Connection).where(
            Connection.requester_id == user_id,
            Connection.status == ConnectionStatus.PENDING.value,
        ),
    )).scalar_one()

    return {
        "total": sum(counts.values()),
        "startups": counts.get(Role.STARTUP.value, 0),
        "mentors": counts.get(Role.MENTOR.value, 0),
        "investors": counts.get(Role.INVESTOR.value, 0),
        "pending_received": pending_received,
        "pending_sent": pending_sent,
    }
