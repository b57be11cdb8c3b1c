"""Route Dependencies — bearer-token authentication, role gates and shared resources.

Invariants:
    - Missing, unknown, revoked or expired tokens → 401 (AuthenticationError)
    - Authenticated non-admins on admin routes → 403 (PermissionDeniedError)
    - Dependencies share the request's AsyncSession through FastAPI's per-request cache
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from venturenet.config import Settings, get_settings
from venturenet.core.domain_types import Role
from venturenet.core.errors import AuthenticationError, PermissionDeniedError
from venturenet.infrastructure.database import get_db
from venturenet.infrastructure.storage import AttachmentStore
from venturenet.models.profile import Profile
from venturenet.services import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_token),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Profile:
    return await auth_service.resolve_token(db, settings, token)


async def require_admin(user: Profile = Depends(get_current_user)) -> Profile:
    if user.role != Role.ADMIN.value:
        raise PermissionDeniedError("Admin access required")
    return user


def get_attachment_store(settings: Settings = Depends(get_settings)) -> AttachmentStore:
    return AttachmentStore(
        settings.upload_dir, settings.public_base_url, settings.max_upload_bytes,
    )
