"""Domain Types - enums shared by models, schemas and services.

Invariants:
    - All valid states encoded as Enums, no raw string matching in services
    - Requests and connections stay open while PENDING or ACCEPTED: an open row blocks a
      second one for the same pair, a terminal row (rejected/declined/cancelled) does not
    - A REJECTED registration blocks re-registration; only CANCELLED frees the pair
    - str Enums serialize to JSON and to String columns without custom encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    STARTUP = "startup"
    MENTOR = "mentor"
    INVESTOR = "investor"
    ADMIN = "admin"


class ProfileStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class RequestStatus(str, Enum):
    """Lifecycle of mentorship and investment requests."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ConnectionStatus(str, Enum):
    """Lifecycle of peer connections. DECLINED plays the role of REJECTED."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class RequestKind(str, Enum):
    MENTORSHIP = "mentorship"
    INVESTMENT = "investment"


class Direction(str, Enum):
    """Which side of a request the caller is listing."""
    SENT = "sent"
    RECEIVED = "received"


class EventStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class ModerationAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class NotificationType(str, Enum):
    CONNECTION_REQUEST = "connection_request"
    CONNECTION_RESPONSE = "connection_response"
    MENTORSHIP_REQUEST = "mentorship_request"
    MENTORSHIP_RESPONSE = "mentorship_response"
    INVESTMENT_REQUEST = "investment_request"
    INVESTMENT_RESPONSE = "investment_response"
    EVENT_REGISTRATION = "event_registration"
    EVENT_UPDATED = "event_updated"
    EVENT_CANCELLED = "event_cancelled"
    REGISTRATION_CONFIRMATION = "registration_confirmation"
    REGISTRATION_CANCELLED = "registration_cancelled"
    REGISTRATION_MODERATED = "registration_moderated"
    NEW_MESSAGE = "new_message"


class RelationshipKind(str, Enum):
    """Edge kinds of the recommendation graph."""
    MENTORSHIP_COMPLETED = "mentorship_completed"
    INVESTMENT_INTEREST = "investment_interest"
    EVENT_PARTICIPATION = "event_participation"


NON_TERMINAL_REQUEST_STATUSES = (
    RequestStatus.PENDING.value, RequestStatus.ACCEPTED.value,
)
NON_TERMINAL_CONNECTION_STATUSES = (
    ConnectionStatus.PENDING.value, ConnectionStatus.ACCEPTED.value,
)
ACTIVE_REGISTRATION_STATUSES = (
    RegistrationStatus.PENDING.value, RegistrationStatus.CONFIRMED.value,
)
# rows that stop the same user registering for the event again
BLOCKING_REGISTRATION_STATUSES = ACTIVE_REGISTRATION_STATUSES + (
    RegistrationStatus.REJECTED.value,
)
