"""Connection ORM - directed storage of an undirected networking relationship.

Invariants:
    - requester_id != target_id
    - (pair_low, pair_high) is the sorted pair; (A, B) and (B, A) share it
    - At most one pending/accepted row per pair (partial unique index)
    - status transitions: pending -> accepted | declined | cancelled, all terminal
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from venturenet.db.base import Base, utcnow

OPEN_CONNECTION_PREDICATE = text("status IN ('pending', 'accepted')")


class Connection(Base):
    __tablename__ = "connections"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    target_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    pair_low: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    pair_high: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    connection_type: Mapped[str] = mapped_column(
        String(50), nullable=False, default="general",
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
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
            "uq_connections_open_pair", "pair_low", "pair_high",
            unique=True,
            postgresql_where=OPEN_CONNECTION_PREDICATE,
            sqlite_where=OPEN_CONNECTION_PREDICATE,
        ),
    )
