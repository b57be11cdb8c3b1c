"""Request Service — startup-to-mentor and startup-to-investor request workflows.

Invariants:
    - Only startups send; mentorship targets a mentor, investment targets an investor
    - At most one pending/accepted request per (startup, target) pair; the partial
      unique index backs the pre-check under concurrency
    - Only the addressed mentor/investor responds; only the sending startup cancels
    - A response sets status, response_message and responded_at in one commit with
      the notification to the startup

Design Decisions:
    - One workflow parameterized by RequestKind: the two request types differ only in
      their table, target column and the optional pitch deck
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.core.domain_types import (
    Direction, NON_TERMINAL_REQUEST_STATUSES, NotificationType, RequestKind, RequestStatus, Role,
)
from venturenet.core.enforce_requests import (
    check_can_cancel, check_can_respond, check_is_party, check_no_open_request,
    check_request_roles, check_sender_role,
)
from venturenet.core.errors import (
    ConflictError, PermissionDeniedError, ResourceNotFoundError,
)
from venturenet.db.base import utcnow
from venturenet.infrastructure.storage import AttachmentStore
from venturenet.models.profile import Profile
from venturenet.models.request import InvestmentRequest, MentorshipRequest
from venturenet.services.notifications import log_activity, notify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RequestKindConfig:
    model: type
    target_field: str
    label: str
    request_type: NotificationType
    response_type: NotificationType


_KINDS = {
    RequestKind.MENTORSHIP: _RequestKindConfig(
        MentorshipRequest, "mentor_id", "Mentorship",
        NotificationType.MENTORSHIP_REQUEST, NotificationType.MENTORSHIP_RESPONSE,
    ),
    RequestKind.INVESTMENT: _RequestKindConfig(
        InvestmentRequest, "investor_id", "Investment",
        NotificationType.INVESTMENT_REQUEST, NotificationType.INVESTMENT_RESPONSE,
    ),
}


async def _get_request(db: AsyncSession, kind: RequestKind, request_id: UUID):
    cfg = _KINDS[kind]
    row = await db.get(cfg.model, request_id)
    if row is None:
        raise ResourceNotFoundError(f"{cfg.label} request", str(request_id))
    return row


async def send_request(
    db: AsyncSession,
    kind: RequestKind,
    sender: Profile,
    target_id: UUID,
    message: str,
    pitch_deck_url: str | None = None,
):
    cfg = _KINDS[kind]
    if error := check_sender_role(kind, sender.role):
        raise error
    target = await db.get(Profile, target_id)
    if target is None:
        raise ResourceNotFoundError("User", str(target_id))
    if error := check_request_roles(kind, sender.role, target.role):
        raise error

    target_col = getattr(cfg.model, cfg.target_field)
    existing = await db.execute(
        select(cfg.model.status).where(
            cfg.model.startup_id == sender.id,
            target_col == target_id,
            cfg.model.status.in_(NON_TERMINAL_REQUEST_STATUSES),
        ),
    )
    if error := check_no_open_request(kind, existing.scalars().first()):
        raise error

    fields = {"startup_id": sender.id, cfg.target_field: target_id, "message": message}
    if kind is RequestKind.INVESTMENT:
        fields["pitch_deck_url"] = pitch_deck_url
    row = cfg.model(status=RequestStatus.PENDING.value, **fields)
    db.add(row)
    try:
        await db.flush()
    except IntegrityError:
        logger.warning(
            f"Concurrent {kind.value} request rejected by unique index",
            extra={"user_id": str(sender.id)},
        )
        await db.rollback()
        raise ConflictError(f"{cfg.label} request already pending", "REQUEST_PENDING")

    notify(
        db, target_id, cfg.request_type,
        f"New {kind.value} request",
        f"{sender.full_name or 'A startup'} sent you a {kind.value} request",
        {"request_id": row.id, "startup_id": sender.id},
    )
    log_activity(db, sender.id, f"{kind.value}_request_sent", {
        "request_id": row.id, "target_id": target_id,
    })
    await db.commit()
    logger.info(
        f"{cfg.label} request {row.id} sent",
        extra={"user_id": str(sender.id)},
    )
    return row


async def respond_to_request(
    db: AsyncSession,
    kind: RequestKind,
    caller: Profile,
    request_id: UUID,
    decision: str,
    response_message: str | None = None,
):
    cfg = _KINDS[kind]
    row = await _get_request(db, kind, request_id)
    if error := check_can_respond(row.target_id, caller.id, row.status):
        raise error

    row.status = RequestStatus(decision).value
    row.response_message = response_message
    row.responded_at = utcnow()

    notify(
        db, row.startup_id, cfg.response_type,
        f"{cfg.label} request {row.status}",
        f"{caller.full_name or 'Your contact'} {row.status} your {kind.value} request",
        {"request_id": row.id, "status": row.status},
    )
    log_activity(db, caller.id, f"{kind.value}_request_{row.status}", {"request_id": row.id})
    await db.commit()
    logger.info(
        f"{cfg.label} request {row.id} {row.status}",
        extra={"user_id": str(caller.id)},
    )
    return row


async def cancel_request(
    db: AsyncSession, kind: RequestKind, caller: Profile, request_id: UUID,
):
    row = await _get_request(db, kind, request_id)
    if error := check_can_cancel(row.startup_id, caller.id, row.status):
        raise error

    row.status = RequestStatus.CANCELLED.value
    log_activity(db, caller.id, f"{kind.value}_request_cancelled", {"request_id": row.id})
    await db.commit()
    return row


async def get_request(
    db: AsyncSession, kind: RequestKind, caller: Profile, request_id: UUID,
):
    row = await _get_request(db, kind, request_id)
    if error := check_is_party(row.startup_id, row.target_id, caller.id):
        raise error
    return row


async def list_requests(
    db: AsyncSession,
    kind: RequestKind,
    caller: Profile,
    direction: Direction,
    status: RequestStatus | None = None,
):
    cfg = _KINDS[kind]
    side = (
        cfg.model.startup_id if direction is Direction.SENT
        else getattr(cfg.model, cfg.target_field)
    )
    query = select(cfg.model).where(side == caller.id).order_by(cfg.model.created_at.desc())
    if status is not None:
        query = query.where(cfg.model.status == status.value)
    result = await db.execute(query)
    return list(result.scalars().all())


async def request_stats(db: AsyncSession, caller: Profile) -> dict:
    """Status counts per kind, from the side the caller's role plays."""
    stats = {}
    for kind, cfg in _KINDS.items():
        side = (
            cfg.model.startup_id if caller.role == Role.STARTUP.value
            else getattr(cfg.model, cfg.target_field)
        )
        result = await db.execute(
            select(cfg.model.status, func.count())
            .where(side == caller.id)
            .group_by(cfg.model.status),
        )
        counts = {s.value: 0 for s in RequestStatus}
        counts.update(dict(result.all()))
        stats[kind.value] = counts
    return stats


async def upload_pitch_deck(
    store: AttachmentStore, caller: Profile, filename: str, content: bytes,
) -> str:
    if caller.role != Role.STARTUP.value:
        raise PermissionDeniedError("Only startups can upload pitch decks")
    return await store.save("pitch-decks", caller.id, filename, content)
