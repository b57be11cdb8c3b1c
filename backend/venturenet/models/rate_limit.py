"""RateLimitCounter ORM - fixed-window counters shared by every API process.

Invariants:
    - One row per (key, window_start)
    - count only grows through an atomic `count = count + 1` UPDATE
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from venturenet.db.base import Base


class RateLimitCounter(Base):
    __tablename__ = "rate_limit_counters"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    window_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), primary_key=True,
    )
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
