"""Admin Service — privileged event/user management and platform statistics.

Invariants:
    - Callers are already verified admins (api/deps.require_admin); this layer does
      not re-check the role
    - An admin cannot change their own status or delete their own account
    - Deleting a user is a single DELETE on profiles; dependent rows go through
      ON DELETE CASCADE
    - max_participants can never be lowered below the seats already confirmed
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.core.domain_types import (
    ConnectionStatus, EventStatus, ProfileStatus, RegistrationStatus,
)
from venturenet.core.errors import (
    ResourceNotFoundError, ValidationError,
)
from venturenet.db.base import utcnow
from venturenet.models.connection import Connection
from venturenet.models.event import Event, EventRegistration
from venturenet.models.message import Message
from venturenet.models.notification import ActivityLog
from venturenet.models.profile import (
    InvestorProfile, MentorProfile, Profile, StartupProfile,
)
from venturenet.services import event_service
from venturenet.services.auth_service import revoke_all_sessions
from venturenet.services.notifications import log_activity

logger = logging.getLogger(__name__)


async def _count(db: AsyncSession, model, *criteria) -> int:
    query = select(func.count()).select_from(model)
    if criteria:
        query = query.where(*criteria)
    return (await db.execute(query)).scalar_one()


async def platform_stats(db: AsyncSession) -> dict:
    roles = dict((await db.execute(
        select(Profile.role, func.count()).group_by(Profile.role),
    )).all())
    statuses = dict((await db.execute(
        select(Profile.status, func.count()).group_by(Profile.status),
    )).all())
    return {
        "total_users": sum(roles.values()),
        "total_startups": await _count(db, StartupProfile),
        "total_mentors": await _count(db, MentorProfile),
        "total_investors": await _count(db, InvestorProfile),
        "total_events": await _count(db, Event),
        "active_events": await _count(db, Event, Event.status == EventStatus.ACTIVE.value),
        "total_registrations": await _count(
            db, EventRegistration,
            EventRegistration.status == RegistrationStatus.CONFIRMED.value,
        ),
        "total_connections": await _count(
            db, Connection, Connection.status == ConnectionStatus.ACCEPTED.value,
        ),
        "total_messages": await _count(db, Message, Message.deleted.is_(False)),
        "new_users_last_30_days": await _count(
            db, Profile, Profile.created_at >= utcnow() - timedelta(days=30),
        ),
        "role_distribution": roles,
        "status_distribution": statuses,
    }


async def list_users(
    db: AsyncSession,
    role: str | None = None,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Profile], int]:
    query = select(Profile)
    if role:
        query = query.where(Profile.role == role)
    if status:
        query = query.where(Profile.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Profile.full_name.ilike(pattern), Profile.email.ilike(pattern)))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    rows = await db.execute(
        query.order_by(Profile.created_at.desc()).limit(limit).offset((page - 1) * limit),
    )
    return list(rows.scalars().all()), total


async def list_events(
    db: AsyncSession,
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[tuple[Event, Profile | None]], int]:
    """Every event regardless of visibility, newest first, with its organizer."""
    query = select(Event, Profile).outerjoin(Profile, Profile.id == Event.organizer_id)
    if status:
        query = query.where(Event.status == status)

    total = (await db.execute(
        select(func.count()).select_from(Event).where(
            *([Event.status == status] if status else []),
        ),
    )).scalar_one()
    rows = await db.execute(
        query.order_by(Event.created_at.desc()).limit(limit).offset((page - 1) * limit),
    )
    return [(e, p) for e, p in rows.all()], total


async def create_event(db: AsyncSession, admin: Profile, data: dict) -> Event:
    return await event_service.create_event(db, admin, data)


async def update_event(
    db: AsyncSession, admin: Profile, event_id: UUID, changes: dict,
) -> Event:
    return await event_service.update_event(db, admin, event_id, changes)


async def delete_event(db: AsyncSession, admin: Profile, event_id: UUID) -> None:
    result = await db.execute(
        delete(Event).where(Event.id == event_id).execution_options(synchronize_session=False),
    )
    if result.rowcount == 0:
        raise ResourceNotFoundError("Event", str(event_id))
    log_activity(db, admin.id, "admin_event_deleted", {"event_id": event_id})
    await db.commit()
    logger.info(
        f"Event {event_id} deleted by admin",
        extra={"user_id": str(admin.id), "event_id": str(event_id)},
    )


async def update_user_status(
    db: AsyncSession,
    admin: Profile,
    user_id: UUID,
    status: ProfileStatus,
    reason: str | None = None,
) -> Profile:
    if user_id == admin.id:
        raise ValidationError("Cannot change your own status", field="user_id")
    user = await db.get(Profile, user_id)
    if user is None:
        raise ResourceNotFoundError("User", str(user_id))

    user.status = status.value
    user.status_reason = reason
    user.status_updated_at = utcnow()
    if status is not ProfileStatus.ACTIVE:
        await revoke_all_sessions(db, user.id)
    log_activity(db, admin.id, "admin_user_status_updated", {
        "target_user_id": user.id, "status": status.value, "reason": reason,
    })
    await db.commit()
    logger.info(
        f"User {user.id} status set to {status.value}",
        extra={"user_id": str(admin.id)},
    )
    return user


async def delete_user(db: AsyncSession, admin: Profile, user_id: UUID) -> None:
    if user_id == admin.id:
        raise ValidationError("Cannot delete your own account", field="user_id")
    # release seats held by the user before their registrations cascade away
    await db.execute(
        update(Event)
        .where(Event.id.in_(
            select(EventRegistration.event_id).where(
                EventRegistration.user_id == user_id,
                EventRegistration.status == RegistrationStatus.CONFIRMED.value,
            ),
        ), Event.confirmed_count > 0)
        .values(confirmed_count=Event.confirmed_count - 1)
        .execution_options(synchronize_session=False),
    )
    result = await db.execute(
        delete(Profile).where(Profile.id == user_id).execution_options(synchronize_session=False),
    )
    if result.rowcount == 0:
        raise ResourceNotFoundError("User", str(user_id))
    log_activity(db, admin.id, "admin_user_deleted", {"target_user_id": user_id})
    await db.commit()
    logger.info(
        f"User {user_id} deleted by admin",
        extra={"user_id": str(admin.id)},
    )


async def list_activity_logs(
    db: AsyncSession,
    user_id: UUID | None = None,
    action: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[tuple[ActivityLog, Profile | None]], int]:
    """Audit trail across all users, newest first; date bounds are inclusive."""
    criteria = []
    if user_id is not None:
        criteria.append(ActivityLog.user_id == user_id)
    if action:
        criteria.append(ActivityLog.action == action)
    if date_from is not None:
        criteria.append(ActivityLog.created_at >= date_from)
    if date_to is not None:
        criteria.append(ActivityLog.created_at <= date_to)

    total = await _count(db, ActivityLog, *criteria)
    rows = await db.execute(
        select(ActivityLog, Profile)
        .outerjoin(Profile, Profile.id == ActivityLog.user_id)
        .where(*criteria)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit),
    )
    return [(log, user) for log, user in rows.all()], total
