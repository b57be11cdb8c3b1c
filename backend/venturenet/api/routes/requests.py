"""Request Routes — mentorship and investment request workflows plus pitch-deck upload.

Invariants:
    - Both request kinds expose the same verbs under their own prefix
    - Pitch decks are uploaded first; the returned URL is then sent with the request
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.api.deps import get_attachment_store, get_current_user
from venturenet.core.domain_types import Direction, RequestKind, RequestStatus
from venturenet.infrastructure.database import get_db
from venturenet.infrastructure.storage import AttachmentStore
from venturenet.models.profile import Profile
from venturenet.schemas.common import envelope
from venturenet.schemas.request import (
    InvestmentRequestCreate, InvestmentRequestOut, MentorshipRequestCreate,
    MentorshipRequestOut, PitchDeckOut, RequestRespond, RequestStats,
)
from venturenet.services import request_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/requests", tags=["requests"])

_OUT = {
    RequestKind.MENTORSHIP: MentorshipRequestOut,
    RequestKind.INVESTMENT: InvestmentRequestOut,
}


def _dump(kind: RequestKind, row):
    return _OUT[kind].model_validate(row)


@router.post("/mentorship", status_code=status.HTTP_201_CREATED)
async def send_mentorship_request(
    body: MentorshipRequestCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    row = await request_service.send_request(
        db, RequestKind.MENTORSHIP, user, body.mentor_id, body.message,
    )
    return envelope(_dump(RequestKind.MENTORSHIP, row), status.HTTP_201_CREATED)


@router.post("/investment", status_code=status.HTTP_201_CREATED)
async def send_investment_request(
    body: InvestmentRequestCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    row = await request_service.send_request(
        db, RequestKind.INVESTMENT, user, body.investor_id, body.message, body.pitch_deck_url,
    )
    return envelope(_dump(RequestKind.INVESTMENT, row), status.HTTP_201_CREATED)


@router.post("/pitch-decks", status_code=status.HTTP_201_CREATED)
async def upload_pitch_deck(
    file: UploadFile = File(...),
    user: Profile = Depends(get_current_user),
    store: AttachmentStore = Depends(get_attachment_store),
):
    content = await file.read()
    url = await request_service.upload_pitch_deck(store, user, file.filename or "", content)
    return envelope(PitchDeckOut(url=url), status.HTTP_201_CREATED)


@router.get("/stats")
async def request_stats(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await request_service.request_stats(db, user)
    return envelope(RequestStats(**stats))


@router.get("/{kind}")
async def list_requests(
    kind: RequestKind,
    direction: Direction = Query(Direction.SENT),
    status_filter: RequestStatus | None = Query(None, alias="status"),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rows = await request_service.list_requests(db, kind, user, direction, status_filter)
    return envelope([_dump(kind, r) for r in rows])


@router.get("/{kind}/{request_id}")
async def get_request(
    kind: RequestKind,
    request_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    row = await request_service.get_request(db, kind, user, request_id)
    return envelope(_dump(kind, row))


@router.post("/{kind}/{request_id}/respond")
async def respond_to_request(
    kind: RequestKind,
    request_id: UUID,
    body: RequestRespond,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    row = await request_service.respond_to_request(
        db, kind, user, request_id, body.decision, body.response_message,
    )
    return envelope(_dump(kind, row))


@router.post("/{kind}/{request_id}/cancel")
async def cancel_request(
    kind: RequestKind,
    request_id: UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    row = await request_service.cancel_request(db, kind, user, request_id)
    return envelope(_dump(kind, row))
