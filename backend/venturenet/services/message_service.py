"""Message Service — one-to-one conversations, rate-limited sends, read receipts, soft delete, blocks.

Invariants:
    - Only the two participants can read or write a conversation
    - Sending counts against `messages:<user_id>` in the shared rate limiter before insert
    - Deleted messages keep their row; content is replaced and deleted=True
    - A block in either direction stops opening conversations and sending messages
      between the pair; existing history stays readable
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.config import Settings
from venturenet.core.domain_types import NotificationType
from venturenet.core.enforce_requests import check_not_self, normalize_pair
from venturenet.core.errors import (
    PermissionDeniedError, ResourceNotFoundError, ValidationError,
)
from venturenet.core.rate_window import rate_key
from venturenet.db.base import utcnow
from venturenet.models.message import Conversation, Message, UserBlock
from venturenet.models.profile import Profile
from venturenet.services import rate_limiter
from venturenet.services.notifications import log_activity, notify

logger = logging.getLogger(__name__)

DELETED_PLACEHOLDER = "[Message deleted]"
BLOCKED_MESSAGE = "Messaging is blocked between these users"


async def _get_conversation(
    db: AsyncSession, caller: Profile, conversation_id: UUID,
) -> Conversation:
    conversation = await db.get(Conversation, conversation_id)
    if conversation is None:
        raise ResourceNotFoundError("Conversation", str(conversation_id))
    if not conversation.has_participant(caller.id):
        raise PermissionDeniedError()
    return conversation


async def _find_conversation(db: AsyncSession, low: UUID, high: UUID) -> Conversation | None:
    result = await db.execute(
        select(Conversation).where(
            Conversation.participant1_id == low, Conversation.participant2_id == high,
        ),
    )
    return result.scalar_one_or_none()


async def get_or_create_conversation(
    db: AsyncSession, caller: Profile, other_id: UUID,
) -> tuple[Conversation, bool]:
    if error := check_not_self(caller.id, other_id, "Cannot start a conversation with yourself"):
        raise error
    if await db.get(Profile, other_id) is None:
        raise ResourceNotFoundError("User", str(other_id))
    if await is_blocked(db, caller.id, other_id):
        raise PermissionDeniedError(BLOCKED_MESSAGE)

    low, high = normalize_pair(caller.id, other_id)
    if (conversation := await _find_conversation(db, low, high)) is not None:
        return conversation, False

    conversation = Conversation(participant1_id=low, participant2_id=high)
    db.add(conversation)
    try:
        await db.commit()
    except IntegrityError:
        # the other participant opened it concurrently
        await db.rollback()
        return await _find_conversation(db, low, high), False
    return conversation, True


async def list_conversations(db: AsyncSession, caller: Profile) -> list[dict]:
    """Caller's conversations, most recently active first, with last message and unread count."""
    result = await db.execute(
        select(Conversation, Profile)
        .join(Profile, or_(
            and_(Conversation.participant1_id == caller.id, Profile.id == Conversation.participant2_id),
            and_(Conversation.participant2_id == caller.id, Profile.id == Conversation.participant1_id),
        ))
        .order_by(Conversation.updated_at.desc()),
    )
    rows = result.all()
    if not rows:
        return []
    ids = [c.id for c, _ in rows]

    unread = dict((await db.execute(
        select(Message.conversation_id, func.count())
        .where(
            Message.conversation_id.in_(ids),
            Message.sender_id != caller.id,
            Message.read.is_(False),
            Message.deleted.is_(False),
        )
        .group_by(Message.conversation_id),
    )).all())

    latest = (
        select(Message.conversation_id, func.max(Message.created_at).label("latest"))
        .where(Message.conversation_id.in_(ids))
        .group_by(Message.conversation_id)
        .subquery()
    )
    last_rows = await db.execute(
        select(Message).join(latest, and_(
            Message.conversation_id == latest.c.conversation_id,
            Message.created_at == latest.c.latest,
        )),
    )
    last_by_conversation = {m.conversation_id: m for m in last_rows.scalars().all()}

    return [
        {
            "id": conversation.id,
            "other": other,
            "last_message": last_by_conversation.get(conversation.id),
            "unread_count": unread.get(conversation.id, 0),
            "updated_at": conversation.updated_at,
        }
        for conversation, other in rows
    ]


async def send_message(
    db: AsyncSession,
    settings: Settings,
    caller: Profile,
    conversation_id: UUID,
    content: str,
    now: datetime | None = None,
) -> Message:
    now = now or utcnow()
    conversation = await _get_conversation(db, caller, conversation_id)
    if await is_blocked(db, caller.id, conversation.other_participant(caller.id)):
        raise PermissionDeniedError(BLOCKED_MESSAGE)
    if len(content) > settings.message_max_length:
        raise ValidationError(
            f"Message too long (max {settings.message_max_length} characters)",
            field="content",
        )

    await rate_limiter.hit(
        db, rate_key("messages", caller.id),
        settings.message_rate_limit, settings.message_rate_window_seconds, now,
    )

    message = Message(
        conversation_id=conversation.id, sender_id=caller.id,
        content=content, created_at=now,
    )
    db.add(message)
    conversation.updated_at = now
    await db.flush()

    recipient_id = conversation.other_participant(caller.id)
    notify(
        db, recipient_id, NotificationType.NEW_MESSAGE,
        "New message",
        f"{caller.full_name or 'Someone'} sent you a message",
        {"conversation_id": conversation.id, "message_id": message.id},
    )
    await db.commit()
    logger.info(
        f"Message {message.id} sent",
        extra={"user_id": str(caller.id), "conversation_id": str(conversation.id)},
    )
    return message


async def list_messages(
    db: AsyncSession,
    caller: Profile,
    conversation_id: UUID,
    limit: int = 50,
    before: datetime | None = None,
) -> list[Message]:
    """Up to `limit` messages older than `before`, returned oldest first."""
    await _get_conversation(db, caller, conversation_id)
    query = select(Message).where(Message.conversation_id == conversation_id)
    if before is not None:
        query = query.where(Message.created_at < before)
    result = await db.execute(query.order_by(Message.created_at.desc()).limit(limit))
    return list(reversed(result.scalars().all()))


async def mark_conversation_read(
    db: AsyncSession, caller: Profile, conversation_id: UUID,
) -> int:
    await _get_conversation(db, caller, conversation_id)
    result = await db.execute(
        update(Message)
        .where(
            Message.conversation_id == conversation_id,
            Message.sender_id != caller.id,
            Message.read.is_(False),
        )
        .values(read=True, read_at=utcnow())
        .execution_options(synchronize_session=False),
    )
    await db.commit()
    return result.rowcount


async def delete_message(db: AsyncSession, caller: Profile, message_id: UUID) -> Message:
    message = await db.get(Message, message_id)
    if message is None or message.deleted:
        raise ResourceNotFoundError("Message", str(message_id))
    if message.sender_id != caller.id:
        raise PermissionDeniedError("Only the sender can delete a message")

    message.deleted = True
    message.deleted_at = utcnow()
    message.content = DELETED_PLACEHOLDER
    log_activity(db, caller.id, "message_deleted", {
        "message_id": message.id, "conversation_id": message.conversation_id,
    })
    await db.commit()
    return message


async def unread_count(db: AsyncSession, caller: Profile) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Message)
        .join(Conversation, Conversation.id == Message.conversation_id)
        .where(
            or_(
                Conversation.participant1_id == caller.id,
                Conversation.participant2_id == caller.id,
            ),
            Message.sender_id != caller.id,
            Message.read.is_(False),
            Message.deleted.is_(False),
        ),
    )
    return result.scalar_one()


async def search_messages(
    db: AsyncSession, caller: Profile, query: str, limit: int = 50,
) -> list[Message]:
    """Case-insensitive substring search over the caller's conversations, newest first."""
    result = await db.execute(
        select(Message)
        .join(Conversation, Conversation.id == Message.conversation_id)
        .where(
            or_(
                Conversation.participant1_id == caller.id,
                Conversation.participant2_id == caller.id,
            ),
            Message.deleted.is_(False),
            Message.content.ilike(f"%{query}%"),
        )
        .order_by(Message.created_at.desc())
        .limit(limit),
    )
    return list(result.scalars().all())


async def _find_block(db: AsyncSession, blocker_id: UUID, blocked_id: UUID) -> UserBlock | None:
    result = await db.execute(
        select(UserBlock).where(
            UserBlock.blocker_id == blocker_id, UserBlock.blocked_id == blocked_id,
        ),
    )
    return result.scalar_one_or_none()


async def is_blocked(db: AsyncSession, user_a: UUID, user_b: UUID) -> bool:
    """True when either user has blocked the other."""
    result = await db.execute(
        select(func.count()).select_from(UserBlock).where(or_(
            and_(UserBlock.blocker_id == user_a, UserBlock.blocked_id == user_b),
            and_(UserBlock.blocker_id == user_b, UserBlock.blocked_id == user_a),
        )),
    )
    return result.scalar_one() > 0


async def block_status(db: AsyncSession, caller: Profile, other_id: UUID) -> dict:
    return {
        "user_id": other_id,
        "blocked": await _find_block(db, caller.id, other_id) is not None,
        "blocked_by": await _find_block(db, other_id, caller.id) is not None,
    }


async def toggle_block(db: AsyncSession, caller: Profile, other_id: UUID) -> bool:
    """Block `other_id`, or lift the caller's existing block. Returns the new state."""
    if error := check_not_self(caller.id, other_id, "Cannot block yourself"):
        raise error
    if await db.get(Profile, other_id) is None:
        raise ResourceNotFoundError("User", str(other_id))

    existing = await _find_block(db, caller.id, other_id)
    if existing is not None:
        await db.execute(delete(UserBlock).where(UserBlock.id == existing.id))
        log_activity(db, caller.id, "user_unblocked", {"user_id": other_id})
        blocked = False
    else:
        db.add(UserBlock(blocker_id=caller.id, blocked_id=other_id))
        log_activity(db, caller.id, "user_blocked", {"user_id": other_id})
        blocked = True
    try:
        await db.commit()
    except IntegrityError:
        # a concurrent toggle already inserted the same block
        await db.rollback()
        return True
    logger.info(
        f"User {other_id} {'blocked' if blocked else 'unblocked'}",
        extra={"user_id": str(caller.id)},
    )
    return blocked


async def list_blocked(db: AsyncSession, caller: Profile) -> list[tuple[UserBlock, Profile]]:
    result = await db.execute(
        select(UserBlock, Profile)
        .join(Profile, Profile.id == UserBlock.blocked_id)
        .where(UserBlock.blocker_id == caller.id)
        .order_by(UserBlock.created_at.desc()),
    )
    return [(b, p) for b, p in result.all()]
