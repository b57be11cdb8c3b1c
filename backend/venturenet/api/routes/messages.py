"""Messaging Routes — conversations, sends, read receipts, soft delete, search and user blocks."""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import get_current_user
from venturenet.config import Settings, get_settings
from venturenet.infrastructure.database import get_db
from venturenet.models.profile import Profile
from venturenet.schemas.common import ProfileSummary, envelope
from venturenet.schemas.message import (
    BlockedUserOut, BlockStatus, ConversationCreate, ConversationOut, MessageCreate, MessageOut,
)
from venturenet.services import message_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.get("/conversations")
async def list_conversations(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await message_service.list_conversations(db, user)
    return envelope([
        ConversationOut(
            id=row["id"],
            other=ProfileSummary.model_validate(row["other"]),
            last_message=(
                MessageOut.model_validate(row["last_message"]) if row["last_message"] else None
            ),
            unread_count=row["unread_count"],
            updated_at=row["updated_at"],
        )
        for row in rows
    ])


@router.post("/conversations")
async def open_conversation(
    body: ConversationCreate,
    response: Response,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conversation, created = await message_service.get_or_create_conversation(
        db, user, body.participant_id,
    )
    code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    response.status_code = code
    return envelope({
        "id": conversation.id,
        "participant_ids": [conversation.participant1_id, conversation.participant2_id],
        "created": created,
    }, code)


@router.get("/unread-count")
async def unread_count(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return envelope({"unread": await message_service.unread_count(db, user)})


@router.get("/search")
async def search_messages(
    q: str = Query(..., min_length=2, max_length=200),
    limit: int = Query(50, ge=1, le=200),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    messages = await message_service.search_messages(db, user, q, limit)
    return envelope([MessageOut.model_validate(m) for m in messages])


@router.get("/blocks")
async def list_blocked(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await message_service.list_blocked(db, user)
    return envelope([
        BlockedUserOut(user=ProfileSummary.model_validate(p), blocked_at=b.created_at)
        for b, p in rows
    ])


@router.get("/blocks/{user_id}")
async def block_status(
    user_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return envelope(BlockStatus(**await message_service.block_status(db, user, user_id)))


@router.post("/blocks/{user_id}")
async def toggle_block(
    user_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    blocked = await message_service.toggle_block(db, user, user_id)
    return envelope(BlockStatus(user_id=user_id, blocked=blocked))


@router.get("/conversations/{conversation_id}")
async def list_messages(
    conversation_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    before: datetime | None = Query(None),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    messages = await message_service.list_messages(db, user, conversation_id, limit, before)
    return envelope([MessageOut.model_validate(m) for m in messages])


@router.post("/conversations/{conversation_id}", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: UUID,
    body: MessageCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    message = await message_service.send_message(db, settings, user, conversation_id, body.content)
    return envelope(MessageOut.model_validate(message), status.HTTP_201_CREATED)


@router.post("/conversations/{conversation_id}/read")
async def mark_read(
    conversation_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await message_service.mark_conversation_read(db, user, conversation_id)
    return envelope({"marked_read": updated})


@router.delete("/{message_id}")
async def delete_message(
    message_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await message_service.delete_message(db, user, message_id)
    return envelope(MessageOut.model_validate(message))
