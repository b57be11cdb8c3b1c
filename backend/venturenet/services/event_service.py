"""Event Service — events and their registrations: create, update, cancel, list, register, moderate.

Invariants:
    - A seat is claimed by one conditional UPDATE on events.confirmed_count; if it
      matches no row the event is full, whatever any in-memory copy of the event says
    - Seat claim, registration insert, notifications and activity log share one commit;
      any failure rolls the claim back with the rest
    - Leaving the confirmed state (cancel) releases exactly one seat
    - Pending registrations hold no seat; approval claims one
    - Cancelling an event notifies every pending or confirmed registrant in the same commit

Design Decisions:
    - `now` is injectable on every time-dependent operation so deadline and start-date
      rules are testable without freezing the clock
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.core.domain_types import (
    ACTIVE_REGISTRATION_STATUSES, BLOCKING_REGISTRATION_STATUSES, EventStatus,
    ModerationAction, NotificationType, RegistrationStatus, Role,
)
from venturenet.core.enforce_events import (
    check_audience, check_can_cancel_event, check_can_cancel_registration,
    check_can_manage_event, check_can_moderate, check_can_organize,
    check_date_order, check_event_open, check_not_registered,
    initial_registration_status, moderated_status,
)
from venturenet.core.errors import (
    BusinessRuleError, ConflictError, ResourceNotFoundError,
)
from venturenet.db.base import utcnow
from venturenet.models.event import Event, EventRegistration
from venturenet.models.profile import Profile
from venturenet.services.notifications import log_activity, notify

logger = logging.getLogger(__name__)

NULLABLE_EVENT_FIELDS = {
    "description", "event_type", "end_date", "location", "meeting_link",
    "max_participants", "registration_deadline",
}


async def get_event(db: AsyncSession, event_id: UUID) -> Event:
    event = await db.get(Event, event_id)
    if event is None:
        raise ResourceNotFoundError("Event", str(event_id))
    return event


async def _get_registration(db: AsyncSession, registration_id: UUID) -> EventRegistration:
    registration = await db.get(EventRegistration, registration_id)
    if registration is None:
        raise ResourceNotFoundError("Registration", str(registration_id))
    return registration


async def claim_seat(db: AsyncSession, event_id: UUID) -> bool:
    """Atomically take one seat; False when the event is at capacity."""
    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            or_(
                Event.max_participants.is_(None),
                Event.confirmed_count < Event.max_participants,
            ),
        )
        .values(confirmed_count=Event.confirmed_count + 1)
        .execution_options(synchronize_session=False),
    )
    return result.rowcount == 1


async def release_seat(db: AsyncSession, event_id: UUID) -> None:
    await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.confirmed_count > 0)
        .values(confirmed_count=Event.confirmed_count - 1)
        .execution_options(synchronize_session=False),
    )


async def create_event(
    db: AsyncSession, organizer: Profile, data: dict,
) -> Event:
    if error := check_can_organize(organizer.role):
        raise error
    if error := check_date_order(
        data["start_date"], data.get("end_date"), data.get("registration_deadline"),
    ):
        raise error

    event = Event(organizer_id=organizer.id, status=EventStatus.ACTIVE.value, **data)
    db.add(event)
    await db.flush()
    log_activity(db, organizer.id, "event_created", {"event_id": event.id})
    await db.commit()
    logger.info(
        f"Event {event.id} created",
        extra={"user_id": str(organizer.id), "event_id": str(event.id)},
    )
    return event


async def update_event(
    db: AsyncSession,
    caller: Profile,
    event_id: UUID,
    changes: dict,
    now: datetime | None = None,
) -> Event:
    """Partial update by the organizer or an admin.

    None only clears nullable columns; for the rest it means "leave as is". Setting
    status to cancelled goes through the same path as cancel_event, so registrants
    are notified either way.
    """
    event = await get_event(db, event_id)
    if error := check_can_manage_event(event.organizer_id, caller.id, caller.role):
        raise error

    changes = {
        k: (v.value if isinstance(v, EventStatus) else v)
        for k, v in changes.items()
        if v is not None or k in NULLABLE_EVENT_FIELDS
    }
    cancelling = False
    if changes.get("status") == EventStatus.CANCELLED.value:
        del changes["status"]
        cancelling = event.status != EventStatus.CANCELLED.value
    if error := check_date_order(
        changes.get("start_date", event.start_date),
        changes.get("end_date", event.end_date),
        changes.get("registration_deadline", event.registration_deadline),
    ):
        raise error
    new_max = changes.get("max_participants", event.max_participants)
    if new_max is not None and new_max < event.confirmed_count:
        raise BusinessRuleError(
            "max_participants cannot be below the number of confirmed registrations",
            "CAPACITY_BELOW_CONFIRMED",
        )

    for key, value in changes.items():
        setattr(event, key, value)
    if cancelling:
        await _mark_cancelled(db, event, None, now or utcnow())
    log_activity(db, caller.id, "event_updated", {
        "event_id": event.id, "fields": sorted(changes) + (["status"] if cancelling else []),
    })
    await db.commit()
    logger.info(
        f"Event {event.id} updated",
        extra={"user_id": str(caller.id), "event_id": str(event.id)},
    )
    return event


async def _mark_cancelled(
    db: AsyncSession, event: Event, reason: str | None, now: datetime,
) -> int:
    """Flip the event to cancelled and stage a notification per active registrant."""
    event.status = EventStatus.CANCELLED.value
    event.cancellation_reason = reason
    event.cancelled_at = now
    registrants = (await db.execute(
        select(EventRegistration.user_id).where(
            EventRegistration.event_id == event.id,
            EventRegistration.status.in_(ACTIVE_REGISTRATION_STATUSES),
        ),
    )).scalars().all()
    for user_id in registrants:
        notify(
            db, user_id, NotificationType.EVENT_CANCELLED,
            "Event cancelled",
            f'The event "{event.title}" has been cancelled',
            {"event_id": event.id, "reason": reason},
        )
    return len(registrants)


async def cancel_event(
    db: AsyncSession,
    caller: Profile,
    event_id: UUID,
    reason: str | None = None,
    now: datetime | None = None,
) -> Event:
    event = await get_event(db, event_id)
    if error := check_can_manage_event(event.organizer_id, caller.id, caller.role):
        raise error
    if error := check_can_cancel_event(event.status):
        raise error

    notified = await _mark_cancelled(db, event, reason, now or utcnow())
    log_activity(db, caller.id, "event_cancelled", {"event_id": event.id, "reason": reason})
    await db.commit()
    logger.info(
        f"Event {event.id} cancelled, {notified} registrant(s) notified",
        extra={"user_id": str(caller.id), "event_id": str(event.id)},
    )
    return event


async def event_stats(db: AsyncSession, caller: Profile, event_id: UUID) -> dict:
    """Registration counts by status and by type, plus remaining seats."""
    event = await get_event(db, event_id)
    if error := check_can_manage_event(event.organizer_id, caller.id, caller.role):
        raise error
    by_status = dict((await db.execute(
        select(EventRegistration.status, func.count())
        .where(EventRegistration.event_id == event_id)
        .group_by(EventRegistration.status),
    )).all())
    by_type = dict((await db.execute(
        select(EventRegistration.registration_type, func.count())
        .where(
            EventRegistration.event_id == event_id,
            EventRegistration.status.in_(ACTIVE_REGISTRATION_STATUSES),
        )
        .group_by(EventRegistration.registration_type),
    )).all())
    return {
        "event_id": event.id,
        "total_registrations": sum(
            by_status.get(s, 0) for s in ACTIVE_REGISTRATION_STATUSES
        ),
        "confirmed": by_status.get(RegistrationStatus.CONFIRMED.value, 0),
        "pending": by_status.get(RegistrationStatus.PENDING.value, 0),
        "cancelled": by_status.get(RegistrationStatus.CANCELLED.value, 0),
        "rejected": by_status.get(RegistrationStatus.REJECTED.value, 0),
        "by_type": by_type,
        "max_participants": event.max_participants,
        "remaining_seats": (
            None if event.max_participants is None
            else max(event.max_participants - event.confirmed_count, 0)
        ),
    }


async def list_events(
    db: AsyncSession,
    viewer: Profile,
    upcoming: bool = True,
    event_type: str | None = None,
    page: int = 1,
    limit: int = 20,
    now: datetime | None = None,
) -> tuple[list[Event], int]:
    """Active public events the viewer's role may attend, soonest first."""
    now = now or utcnow()
    query = select(Event).where(
        Event.status == EventStatus.ACTIVE.value, Event.is_public.is_(True),
    )
    if upcoming:
        query = query.where(Event.start_date >= now)
    if event_type:
        query = query.where(Event.event_type == event_type)
    result = await db.execute(query.order_by(Event.start_date.asc()))

    # target_audience is a JSON list; membership is filtered here for portability
    visible = [
        e for e in result.scalars().all()
        if viewer.role == Role.ADMIN.value or check_audience(e.target_audience, viewer.role) is None
    ]
    start = (page - 1) * limit
    return visible[start:start + limit], len(visible)


async def register_for_event(
    db: AsyncSession,
    user: Profile,
    event_id: UUID,
    registration_type: str = "attendee",
    notes: str | None = None,
    now: datetime | None = None,
) -> EventRegistration:
    now = now or utcnow()
    event = await get_event(db, event_id)
    if error := check_event_open(event.status, event.registration_deadline, now):
        raise error
    if error := check_audience(event.target_audience, user.role):
        raise error

    existing = await db.execute(
        select(EventRegistration.status).where(
            EventRegistration.event_id == event_id,
            EventRegistration.user_id == user.id,
            EventRegistration.status.in_(BLOCKING_REGISTRATION_STATUSES),
        ),
    )
    if error := check_not_registered(existing.scalars().first()):
        raise error

    status = initial_registration_status(event.requires_approval)
    if status is RegistrationStatus.CONFIRMED:
        if not await claim_seat(db, event_id):
            raise BusinessRuleError("Event is full", "EVENT_FULL")
    elif not await _has_capacity(db, event_id):
        raise BusinessRuleError("Event is full", "EVENT_FULL")

    registration = EventRegistration(
        event_id=event_id, user_id=user.id, status=status.value,
        registration_type=registration_type, notes=notes,
    )
    db.add(registration)
    try:
        await db.flush()
    except IntegrityError:
        logger.warning(
            "Concurrent registration rejected by unique index",
            extra={"user_id": str(user.id), "event_id": str(event_id)},
        )
        await db.rollback()
        raise ConflictError("Already registered for this event", "ALREADY_REGISTERED")

    confirmed = status is RegistrationStatus.CONFIRMED
    notify(
        db, user.id, NotificationType.REGISTRATION_CONFIRMATION,
        "Registration confirmed" if confirmed else "Registration submitted",
        f"You are registered for {event.title}" if confirmed
        else f"Your registration for {event.title} is awaiting approval",
        {"event_id": event_id, "registration_id": registration.id, "status": status.value},
    )
    if event.organizer_id and event.organizer_id != user.id:
        notify(
            db, event.organizer_id, NotificationType.EVENT_REGISTRATION,
            "New event registration",
            f"{user.full_name or 'Someone'} registered for {event.title}",
            {"event_id": event_id, "registration_id": registration.id, "user_id": user.id},
        )
    log_activity(db, user.id, "event_registered", {
        "event_id": event_id, "registration_id": registration.id, "status": status.value,
    })
    await db.commit()
    logger.info(
        f"Registration {registration.id} {status.value}",
        extra={"user_id": str(user.id), "event_id": str(event_id)},
    )
    return registration


async def _has_capacity(db: AsyncSession, event_id: UUID) -> bool:
    result = await db.execute(
        select(Event.id).where(
            Event.id == event_id,
            or_(
                Event.max_participants.is_(None),
                Event.confirmed_count < Event.max_participants,
            ),
        ),
    )
    return result.scalar_one_or_none() is not None


async def cancel_registration(
    db: AsyncSession,
    caller: Profile,
    registration_id: UUID,
    now: datetime | None = None,
) -> EventRegistration:
    now = now or utcnow()
    registration = await _get_registration(db, registration_id)
    event = await get_event(db, registration.event_id)
    if error := check_can_cancel_registration(
        registration.user_id, caller.id, registration.status, event.start_date, now,
    ):
        raise error

    if registration.status == RegistrationStatus.CONFIRMED.value:
        await release_seat(db, event.id)
    registration.status = RegistrationStatus.CANCELLED.value
    registration.cancelled_at = now

    if event.organizer_id and event.organizer_id != caller.id:
        notify(
            db, event.organizer_id, NotificationType.REGISTRATION_CANCELLED,
            "Registration cancelled",
            f"{caller.full_name or 'A participant'} cancelled their registration for {event.title}",
            {"event_id": event.id, "registration_id": registration.id},
        )
    log_activity(db, caller.id, "event_registration_cancelled", {
        "event_id": event.id, "registration_id": registration.id,
    })
    await db.commit()
    logger.info(
        f"Registration {registration.id} cancelled",
        extra={"user_id": str(caller.id), "registration_id": str(registration.id)},
    )
    return registration


async def moderate_registration(
    db: AsyncSession,
    caller: Profile,
    registration_id: UUID,
    action: ModerationAction,
    message: str | None = None,
    now: datetime | None = None,
) -> EventRegistration:
    """Organizer (or admin) approves or rejects a pending registration."""
    now = now or utcnow()
    registration = await _get_registration(db, registration_id)
    event = await get_event(db, registration.event_id)
    organizer_id = caller.id if caller.role == Role.ADMIN.value else event.organizer_id
    if error := check_can_moderate(organizer_id, caller.id, registration.status):
        raise error

    new_status = moderated_status(action)
    if new_status is RegistrationStatus.CONFIRMED and not await claim_seat(db, event.id):
        raise BusinessRuleError("Event is full", "EVENT_FULL")

    registration.status = new_status.value
    registration.moderator_message = message
    registration.moderated_at = now

    notify(
        db, registration.user_id, NotificationType.REGISTRATION_MODERATED,
        f"Registration {'approved' if action is ModerationAction.APPROVE else 'rejected'}",
        message or f"Your registration for {event.title} was {new_status.value}",
        {"event_id": event.id, "registration_id": registration.id, "status": new_status.value},
    )
    log_activity(db, caller.id, f"event_registration_{action.value}d", {
        "event_id": event.id, "registration_id": registration.id,
    })
    await db.commit()
    logger.info(
        f"Registration {registration.id} {new_status.value}",
        extra={"user_id": str(caller.id), "registration_id": str(registration.id)},
    )
    return registration


async def list_user_registrations(
    db: AsyncSession, user_id: UUID, include_inactive: bool = False,
) -> list[tuple[EventRegistration, Event]]:
    query = (
        select(EventRegistration, Event)
        .join(Event, Event.id == EventRegistration.event_id)
        .where(EventRegistration.user_id == user_id)
        .order_by(Event.start_date.asc())
    )
    if not include_inactive:
        query = query.where(EventRegistration.status.in_(ACTIVE_REGISTRATION_STATUSES))
    result = await db.execute(query)
    return [(r, e) for r, e in result.all()]


async def list_event_registrations(
    db: AsyncSession,
    caller: Profile,
    event_id: UUID,
    status: RegistrationStatus | None = None,
) -> list[tuple[EventRegistration, Profile]]:
    event = await get_event(db, event_id)
    if error := check_can_manage_event(event.organizer_id, caller.id, caller.role):
        raise error
    query = (
        select(EventRegistration, Profile)
        .join(Profile, Profile.id == EventRegistration.user_id)
        .where(EventRegistration.event_id == event_id)
        .order_by(EventRegistration.registered_at.asc())
    )
    if status is not None:
        query = query.where(EventRegistration.status == status.value)
    result = await db.execute(query)
    return [(r, p) for r, p in result.all()]

