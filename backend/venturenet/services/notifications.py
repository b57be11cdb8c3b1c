"""Notifications & Activity Log — side effects staged on the caller's session, plus inbox reads.

Invariants:
    - notify() and log_activity() only db.add(); the calling service commits, so the
      transition and its side effects land together or not at all
    - Users only ever read or mark their own notifications
    - payload/details hold JSON-safe values only (ids as strings)
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.core.domain_types import NotificationType
from venturenet.core.errors import ResourceNotFoundError
from venturenet.models.notification import ActivityLog, Notification

logger = logging.getLogger(__name__)


def _jsonable(data: dict | None) -> dict:
    return {k: (str(v) if isinstance(v, UUID) else v) for k, v in (data or {}).items()}


def notify(
    db: AsyncSession,
    user_id: UUID,
    kind: NotificationType,
    title: str,
    message: str,
    payload: dict | None = None,
) -> Notification:
    notification = Notification(
        user_id=user_id, type=kind.value, title=title,
        message=message, payload=_jsonable(payload),
    )
    db.add(notification)
    logger.debug(f"Queued {kind.value} notification", extra={"user_id": str(user_id)})
    return notification


def log_activity(
    db: AsyncSession, user_id: UUID | None, action: str, details: dict | None = None,
) -> ActivityLog:
    entry = ActivityLog(user_id=user_id, action=action, details=_jsonable(details))
    db.add(entry)
    return entry


async def list_notifications(
    db: AsyncSession, user_id: UUID, unread_only: bool = False, limit: int = 50,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def mark_read(db: AsyncSession, user_id: UUID, notification_id: UUID) -> Notification:
    notification = await db.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise ResourceNotFoundError("Notification", str(notification_id))
    notification.read = True
    await db.commit()
    return notification


async def mark_all_read(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False),
    )
    await db.commit()
    return result.rowcount


async def list_activity(db: AsyncSession, user_id: UUID, limit: int = 50) -> list[ActivityLog]:
    result = await db.execute(
        select(ActivityLog)
        .where(ActivityLog.user_id == user_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit),
    )
    return list(result.scalars().all())
