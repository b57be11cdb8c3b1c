"""Rate Limiter — fixed-window counters stored in the database, shared by all API processes.

Invariants:
    - One row per (key, window_start); the increment is a single upsert whose conflict
      branch only fires while count < limit, so two processes cannot both take the last slot
    - Rows from earlier windows of the same key are pruned on each hit
    - Counting happens in the caller's transaction: a failed action does not spend a slot

Design Decisions:
    - Dialect insert (PostgreSQL / SQLite) for ON CONFLICT DO UPDATE ... WHERE; both
      backends support it and RETURNING tells us whether the slot was granted
"""

import logging
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.core.errors import RateLimitError
from venturenet.core.rate_window import retry_after, window_start
from venturenet.db.base import utcnow
from venturenet.models.rate_limit import RateLimitCounter

logger = logging.getLogger(__name__)

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


async def hit(
    db: AsyncSession,
    key: str,
    limit: int,
    window_seconds: int,
    now: datetime | None = None,
) -> int:
    """Count one action against key; raise RateLimitError once limit is reached.

    Returns the count in the current window including this hit.
    """
    now = now or utcnow()
    start = window_start(now, window_seconds)

    await db.execute(
        delete(RateLimitCounter)
        .where(RateLimitCounter.key == key, RateLimitCounter.window_start < start)
        .execution_options(synchronize_session=False),
    )

    insert = _INSERTS[db.get_bind().dialect.name]
    stmt = (
        insert(RateLimitCounter)
        .values(key=key, window_start=start, count=1)
        .on_conflict_do_update(
            index_elements=[RateLimitCounter.key, RateLimitCounter.window_start],
            set_={"count": RateLimitCounter.count + 1},
            where=RateLimitCounter.count < limit,
        )
        .returning(RateLimitCounter.count)
    )
    count = (await db.execute(stmt)).scalar_one_or_none()
    if count is None:
        wait = retry_after(now, window_seconds)
        logger.warning(f"Rate limit hit for {key}", extra={"error_code": "RATE_LIMITED"})
        raise RateLimitError(wait)
    return count
