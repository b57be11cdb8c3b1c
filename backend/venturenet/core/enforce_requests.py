"""Request Lifecycle Enforcement - pure checks for connection, mentorship and investment requests.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Return an error instance on violation, None on success; callers raise it
    - PENDING is the only state a request may leave

Design Decisions:
    - Error instances over booleans: the service raises exactly what the check decided,
      so the message and status code live next to the rule
"""

from uuid import UUID

from venturenet.core.domain_types import (
    ConnectionStatus, RequestKind, RequestStatus, Role,
)
from venturenet.core.errors import (
    BusinessRuleError, ConflictError, PermissionDeniedError, ValidationError,
    VentureNetError,
)

# Role a startup must address for each request kind.
TARGET_ROLE_BY_KIND = {
    RequestKind.MENTORSHIP: Role.MENTOR,
    RequestKind.INVESTMENT: Role.INVESTOR,
}


def normalize_pair(a: UUID, b: UUID) -> tuple[UUID, UUID]:
    """Order two profile ids so (A, B) and (B, A) map to the same key."""
    return (a, b) if str(a) <= str(b) else (b, a)


def check_not_self(sender_id: UUID, target_id: UUID, message: str) -> VentureNetError | None:
    if sender_id == target_id:
        return ValidationError(message, field="target_id")
    return None


def check_no_open_connection(existing_status: str | None) -> VentureNetError | None:
    """Only a pending or accepted connection blocks a new request."""
    if existing_status == ConnectionStatus.ACCEPTED.value:
        return ConflictError("Already connected", "ALREADY_CONNECTED")
    if existing_status == ConnectionStatus.PENDING.value:
        return ConflictError("Connection request already pending", "REQUEST_PENDING")
    return None


def check_no_open_request(kind: RequestKind, existing_status: str | None) -> VentureNetError | None:
    label = kind.value.capitalize()
    if existing_status == RequestStatus.PENDING.value:
        return ConflictError(f"{label} request already pending", "REQUEST_PENDING")
    if existing_status == RequestStatus.ACCEPTED.value:
        return ConflictError(f"{label} already established", "ALREADY_ESTABLISHED")
    return None


def check_sender_role(kind: RequestKind, sender_role: str | None) -> VentureNetError | None:
    if sender_role != Role.STARTUP.value:
        return PermissionDeniedError(f"Only startups can send {kind.value} requests")
    return None


def check_request_roles(
    kind: RequestKind, sender_role: str | None, target_role: str | None,
) -> VentureNetError | None:
    """Startups address mentors for mentorship and investors for investment."""
    if error := check_sender_role(kind, sender_role):
        return error
    expected = TARGET_ROLE_BY_KIND[kind]
    if target_role != expected.value:
        article = "an" if expected is Role.INVESTOR else "a"
        return ValidationError(f"Target user is not {article} {expected.value}", field="target_id")
    return None


def check_can_respond(
    target_id: UUID, caller_id: UUID, status: str,
) -> VentureNetError | None:
    if target_id != caller_id:
        return PermissionDeniedError()
    if status != RequestStatus.PENDING.value:
        return BusinessRuleError(
            "Request has already been responded to", "ALREADY_RESPONDED",
        )
    return None


def check_can_cancel(
    requester_id: UUID, caller_id: UUID, status: str,
) -> VentureNetError | None:
    if requester_id != caller_id:
        return PermissionDeniedError()
    if status != RequestStatus.PENDING.value:
        return BusinessRuleError("Can only cancel pending requests", "NOT_PENDING")
    return None


def check_is_party(
    requester_id: UUID, target_id: UUID, caller_id: UUID,
) -> VentureNetError | None:
    if caller_id not in (requester_id, target_id):
        return PermissionDeniedError()
    return None
