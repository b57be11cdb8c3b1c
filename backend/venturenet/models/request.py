"""Mentorship & Investment Request ORM - startup-initiated, role-scoped requests.

Invariants:
    - startup_id references a startup profile; mentor_id / investor_id the addressed role
    - At most one pending/accepted row per (startup, target) pair (partial unique index)
    - responded_at is set exactly when status leaves pending via a response
    - pitch_deck_url exists only on investment requests
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from venturenet.db.base import Base, utcnow

OPEN_REQUEST_PREDICATE = text("status IN ('pending', 'accepted')")


class MentorshipRequest(Base):
    __tablename__ = "mentorship_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    mentor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    response_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    __table_args__ = (
        Index(
            "uq_mentorship_requests_open_pair", "startup_id", "mentor_id",
            unique=True,
            postgresql_where=OPEN_REQUEST_PREDICATE,
            sqlite_where=OPEN_REQUEST_PREDICATE,
        ),
    )

    @property
    def target_id(self) -> uuid.UUID:
        return self.mentor_id


class InvestmentRequest(Base):
    __tablename__ = "investment_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    investor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    pitch_deck_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    response_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    __table_args__ = (
        Index(
            "uq_investment_requests_open_pair", "startup_id", "investor_id",
            unique=True,
            postgresql_where=OPEN_REQUEST_PREDICATE,
            sqlite_where=OPEN_REQUEST_PREDICATE,
        ),
    )

    @property
    def target_id(self) -> uuid.UUID:
        return self.investor_id
