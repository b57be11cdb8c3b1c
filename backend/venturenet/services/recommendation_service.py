"""Recommendation Service — gathers relationships and attributes, ranks through core/recommendations.

Invariants:
    - Graph edges: accepted mentorships, pending/accepted investment requests, and
      co-attendance of the caller's confirmed events
    - Results only contain active profiles of the target roles, never the caller
    - When the graph yields fewer than top_k, attribute-similar candidates fill the rest
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.core.domain_types import (
    ProfileStatus, RegistrationStatus, RelationshipKind, RequestStatus, Role,
)
from venturenet.core.recommendations import (
    Relationship, adjacency_embeddings, build_graph, rank_similar, score_attributes,
    target_roles_for,
)
from venturenet.models.event import EventRegistration
from venturenet.models.profile import (
    InvestorProfile, MentorProfile, Profile, StartupProfile,
)
from venturenet.models.request import InvestmentRequest, MentorshipRequest

logger = logging.getLogger(__name__)

CANDIDATE_POOL = 200


async def _relationships(db: AsyncSession, user_id: UUID) -> tuple[list[Relationship], dict[str, int]]:
    """Graph edges plus, per co-attendee, how many events they share with the user."""
    rels: list[Relationship] = []

    mentorships = await db.execute(
        select(MentorshipRequest.startup_id, MentorshipRequest.mentor_id)
        .where(MentorshipRequest.status == RequestStatus.ACCEPTED.value),
    )
    for startup_id, mentor_id in mentorships.all():
        rels.append(Relationship(str(startup_id), str(mentor_id), RelationshipKind.MENTORSHIP_COMPLETED))

    investments = await db.execute(
        select(InvestmentRequest.startup_id, InvestmentRequest.investor_id)
        .where(InvestmentRequest.status.in_(
            [RequestStatus.PENDING.value, RequestStatus.ACCEPTED.value],
        )),
    )
    for startup_id, investor_id in investments.all():
        rels.append(Relationship(str(startup_id), str(investor_id), RelationshipKind.INVESTMENT_INTEREST))

    my_events = (
        select(EventRegistration.event_id)
        .where(
            EventRegistration.user_id == user_id,
            EventRegistration.status == RegistrationStatus.CONFIRMED.value,
        )
        .scalar_subquery()
    )
    co_attendees = await db.execute(
        select(EventRegistration.user_id).where(
            EventRegistration.event_id.in_(my_events),
            EventRegistration.status == RegistrationStatus.CONFIRMED.value,
            EventRegistration.user_id != user_id,
        ),
    )
    shared: dict[str, int] = {}
    for (other_id,) in co_attendees.all():
        other = str(other_id)
        shared[other] = shared.get(other, 0) + 1
        rels.append(Relationship(str(user_id), other, RelationshipKind.EVENT_PARTICIPATION))
    return rels, shared


async def _attributes(db: AsyncSession, user_ids: list[UUID]) -> dict[str, dict]:
    """industry/stage/location/slug per user, normalized across the three role tables."""
    attrs: dict[str, dict] = {}
    if not user_ids:
        return attrs
    startups = await db.execute(select(StartupProfile).where(StartupProfile.user_id.in_(user_ids)))
    for s in startups.scalars().all():
        attrs[str(s.user_id)] = {
            "id": str(s.user_id), "industry": s.industry, "stage": s.stage,
            "location": s.location, "slug": s.slug,
        }
    for model in (MentorProfile, InvestorProfile):
        rows = await db.execute(select(model).where(model.user_id.in_(user_ids)))
        for r in rows.scalars().all():
            attrs[str(r.user_id)] = {
                "id": str(r.user_id), "industry": r.industry_focus, "stage": None,
                "location": r.location, "slug": None,
            }
    return attrs


def _card(profile: Profile, reasons: list[str], score: float | None, source: str) -> dict:
    return {
        "id": profile.id,
        "full_name": profile.full_name,
        "avatar_url": profile.avatar_url,
        "role": profile.role,
        "reasons": reasons,
        "score": score,
        "source": source,
    }


async def recommend(
    db: AsyncSession,
    caller: Profile,
    top_k: int = 8,
    target_roles: list[str] | None = None,
) -> list[dict]:
    roles = target_roles_for(caller.role, target_roles)
    rels, shared = await _relationships(db, caller.id)

    ranked_ids = rank_similar(
        str(caller.id), adjacency_embeddings(build_graph(rels)), max(top_k * 3, 12),
    )
    by_id: dict[str, Profile] = {}
    if ranked_ids:
        rows = await db.execute(
            select(Profile).where(
                Profile.id.in_([UUID(i) for i in ranked_ids]),
                Profile.status == ProfileStatus.ACTIVE.value,
            ),
        )
        by_id = {str(p.id): p for p in rows.scalars().all()}

    final: list[dict] = []
    for rid in ranked_ids:
        profile = by_id.get(rid)
        if profile is None or profile.role not in roles:
            continue
        reasons = []
        if shared.get(rid):
            reasons.append(f"Attended {shared[rid]} event(s) together")
        final.append(_card(profile, reasons, None, "graph"))
        if len(final) >= top_k:
            return final

    candidates = (await db.execute(
        select(Profile)
        .where(
            Profile.role.in_(roles),
            Profile.id != caller.id,
            Profile.status == ProfileStatus.ACTIVE.value,
        )
        .limit(CANDIDATE_POOL),
    )).scalars().all()
    seen = {str(c["id"]) for c in final}
    attrs = await _attributes(db, [caller.id] + [c.id for c in candidates])
    mine = attrs.get(str(caller.id), {})

    scored = []
    for candidate in candidates:
        cid = str(candidate.id)
        if cid in seen or cid not in attrs:
            continue
        match = score_attributes(mine, attrs[cid])
        if match is not None:
            scored.append((match, candidate))
    scored.sort(key=lambda pair: (-pair[0].score, pair[0].id))

    for match, candidate in scored[: top_k - len(final)]:
        final.append(_card(candidate, match.reasons, match.score, "attributes"))
    logger.info(
        f"Computed {len(final)} recommendations",
        extra={"user_id": str(caller.id)},
    )
    return final
