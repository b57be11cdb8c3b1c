"""Common Schemas — response envelope and pagination shared by every route module.

Invariants:
    - Success bodies are {"data": ..., "status": <http status>}
    - page is 1-based; total_pages is 0 when there are no rows
"""

import math
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


def envelope(data: Any, status_code: int = 200) -> dict:
    """Wrap a payload in the success envelope. FastAPI encodes nested models."""
    return {"data": data, "status": status_code}


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            page=page, limit=limit, total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        )


class ProfileSummary(BaseModel):
    """Public card of another user, embedded in connection and message payloads."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    role: str
    full_name: str | None = None
    avatar_url: str | None = None


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    title: str
    message: str
    payload: dict
    read: bool
    created_at: datetime


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: str
    details: dict
    created_at: datetime
