"""Event Enforcement - pure organizer, deadline, status and ownership checks.

Invariants:
    - All functions are PURE: `now` is always passed in, never read from the clock
    - Return an error instance on violation, None on success
    - Capacity is NOT checked here: it is claimed atomically by the service
"""

from datetime import datetime, timezone
from uuid import UUID

from venturenet.core.domain_types import (
    EventStatus, ModerationAction, RegistrationStatus, Role,
)
from venturenet.core.errors import (
    BusinessRuleError, ConflictError, PermissionDeniedError, VentureNetError,
)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


ORGANIZER_ROLES = (Role.MENTOR.value, Role.INVESTOR.value, Role.ADMIN.value)


def check_can_organize(role: str) -> VentureNetError | None:
    if role not in ORGANIZER_ROLES:
        return PermissionDeniedError("Only mentors, investors and admins can create events")
    return None


def check_can_manage_event(
    organizer_id: UUID | None, caller_id: UUID, caller_role: str,
) -> VentureNetError | None:
    """Organizers manage their own events; admins manage any."""
    if caller_role == Role.ADMIN.value or organizer_id == caller_id:
        return None
    return PermissionDeniedError("Only the organizer can manage this event")


def check_can_cancel_event(status: str) -> VentureNetError | None:
    if status == EventStatus.CANCELLED.value:
        return BusinessRuleError("Event is already cancelled", "EVENT_ALREADY_CANCELLED")
    if status == EventStatus.COMPLETED.value:
        return BusinessRuleError("Completed events cannot be cancelled", "EVENT_COMPLETED")
    return None


def check_event_open(
    status: str, registration_deadline: datetime | None, now: datetime,
) -> VentureNetError | None:
    if status != EventStatus.ACTIVE.value:
        return BusinessRuleError(
            "Event is not available for registration", "EVENT_NOT_ACTIVE",
        )
    if registration_deadline is not None and as_utc(registration_deadline) < now:
        return BusinessRuleError(
            "Registration deadline has passed", "DEADLINE_PASSED",
        )
    return None


def check_audience(target_audience: list[str] | None, role: str) -> VentureNetError | None:
    """Empty or missing audience means everyone may register."""
    if target_audience and role not in target_audience:
        return PermissionDeniedError("This event is not open to your role")
    return None


def check_not_registered(existing_status: str | None) -> VentureNetError | None:
    if existing_status == RegistrationStatus.CONFIRMED.value:
        return ConflictError("Already registered for this event", "ALREADY_REGISTERED")
    if existing_status == RegistrationStatus.PENDING.value:
        return ConflictError("Registration is pending approval", "REGISTRATION_PENDING")
    if existing_status == RegistrationStatus.REJECTED.value:
        return BusinessRuleError("Registration was rejected", "REGISTRATION_REJECTED")
    return None


def initial_registration_status(requires_approval: bool) -> RegistrationStatus:
    if requires_approval:
        return RegistrationStatus.PENDING
    return RegistrationStatus.CONFIRMED


def check_can_cancel_registration(
    owner_id: UUID,
    caller_id: UUID,
    status: str,
    event_start: datetime | None,
    now: datetime,
) -> VentureNetError | None:
    if owner_id != caller_id:
        return PermissionDeniedError()
    if event_start is not None and as_utc(event_start) < now:
        return BusinessRuleError(
            "Cannot cancel registration for events that have already started",
            "EVENT_STARTED",
        )
    if status not in (
        RegistrationStatus.PENDING.value, RegistrationStatus.CONFIRMED.value,
    ):
        return BusinessRuleError("Registration is not active", "NOT_ACTIVE")
    return None


def check_can_moderate(
    organizer_id: UUID | None, caller_id: UUID, status: str,
) -> VentureNetError | None:
    if organizer_id != caller_id:
        return PermissionDeniedError()
    if status != RegistrationStatus.PENDING.value:
        return BusinessRuleError(
            "Only pending registrations can be moderated", "NOT_PENDING",
        )
    return None


def moderated_status(action: ModerationAction) -> RegistrationStatus:
    if action is ModerationAction.APPROVE:
        return RegistrationStatus.CONFIRMED
    return RegistrationStatus.REJECTED


def check_date_order(
    start_date: datetime, end_date: datetime | None, registration_deadline: datetime | None,
) -> VentureNetError | None:
    """Organizer-supplied dates must be internally consistent."""
    if end_date is not None and as_utc(end_date) < as_utc(start_date):
        return BusinessRuleError("end_date must be after start_date", "INVALID_DATES")
    if registration_deadline is not None and as_utc(registration_deadline) > as_utc(start_date):
        return BusinessRuleError(
            "registration_deadline must be before start_date", "INVALID_DATES",
        )
    return None
