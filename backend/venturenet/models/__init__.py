"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Profile is the identity root; every user-owned row cascades from profiles.id

Design Decisions:
    - One file per entity family for locality
    - All models imported here so Base.metadata knows every table before
      create_all() or Alembic autogenerate runs
"""

from venturenet.models.profile import (  # noqa: F401
    InvestorProfile, MentorProfile, Profile, StartupProfile,
)
from venturenet.models.auth_session import AuthSession  # noqa: F401
from venturenet.models.connection import Connection  # noqa: F401
from venturenet.models.request import InvestmentRequest, MentorshipRequest  # noqa: F401
from venturenet.models.event import Event, EventRegistration  # noqa: F401
from venturenet.models.notification import ActivityLog, Notification  # noqa: F401
from venturenet.models.message import Conversation, Message, UserBlock  # noqa: F401
from venturenet.models.rate_limit import RateLimitCounter  # noqa: F401
