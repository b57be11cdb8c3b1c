"""Auth Service — password credentials and bearer-token sessions for every role.

Invariants:
    - Tokens are random (secrets.token_urlsafe) and returned exactly once; the database
      only stores HMAC-SHA256(token, SESSION_SECRET)
    - A session resolves only while not revoked, not expired, and its profile is active
    - Profile.role is the only authorization claim; admins use the same sessions

Design Decisions:
    - Password hashes come from werkzeug.security; the method string is stored with the hash,
      so rows hashed under an older method still verify
    - Keyed digest over plain SHA-256: a leaked table is useless without the secret
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from venturenet.config import Settings
from venturenet.core.domain_types import ProfileStatus
from venturenet.core.enforce_events import as_utc
from venturenet.core.errors import (
    AuthenticationError, ConflictError, PermissionDeniedError,
)
from venturenet.db.base import utcnow
from venturenet.models.auth_session import AuthSession
from venturenet.models.profile import Profile
from venturenet.services.notifications import log_activity

logger = logging.getLogger(__name__)

PASSWORD_METHOD = "scrypt"


def hash_password(password: str, method: str = PASSWORD_METHOD) -> str:
    return generate_password_hash(password, method=method)


def verify_password(password: str, stored: str) -> bool:
    return check_password_hash(stored, password)


def token_digest(token: str, secret: str) -> str:
    return hmac.new(secret.encode(), token.encode(), hashlib.sha256).hexdigest()


def _check_active(profile: Profile) -> None:
    if profile.status != ProfileStatus.ACTIVE.value:
        raise PermissionDeniedError(f"Account is {profile.status}")


def issue_session(
    db: AsyncSession, settings: Settings, profile: Profile,
) -> tuple[str, datetime]:
    """Stage a new session row; the caller commits."""
    token = secrets.token_urlsafe(32)
    expires_at = utcnow() + timedelta(hours=settings.session_ttl_hours)
    db.add(AuthSession(
        profile_id=profile.id,
        token_digest=token_digest(token, settings.session_secret),
        expires_at=expires_at,
    ))
    return token, expires_at


async def signup(
    db: AsyncSession,
    settings: Settings,
    email: str,
    password: str,
    role: str,
    full_name: str | None = None,
) -> tuple[Profile, str, datetime]:
    existing = await db.execute(select(Profile.id).where(Profile.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Email already registered", "EMAIL_TAKEN")

    profile = Profile(
        email=email, password_hash=hash_password(password),
        role=role, full_name=full_name,
    )
    db.add(profile)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already registered", "EMAIL_TAKEN")

    token, expires_at = issue_session(db, settings, profile)
    log_activity(db, profile.id, "signup", {"role": role})
    await db.commit()
    logger.info(f"Profile {profile.id} signed up as {role}", extra={"user_id": str(profile.id)})
    return profile, token, expires_at


async def login(
    db: AsyncSession, settings: Settings, email: str, password: str,
) -> tuple[Profile, str, datetime]:
    result = await db.execute(select(Profile).where(Profile.email == email))
    profile = result.scalar_one_or_none()
    if profile is None or not verify_password(password, profile.password_hash):
        logger.warning("Failed login attempt")
        raise AuthenticationError("Invalid email or password")
    _check_active(profile)

    token, expires_at = issue_session(db, settings, profile)
    log_activity(db, profile.id, "login")
    await db.commit()
    return profile, token, expires_at


async def resolve_token(db: AsyncSession, settings: Settings, token: str) -> Profile:
    """Map a bearer token to its active profile or raise 401/403."""
    digest = token_digest(token, settings.session_secret)
    result = await db.execute(
        select(AuthSession, Profile)
        .join(Profile, Profile.id == AuthSession.profile_id)
        .where(AuthSession.token_digest == digest),
    )
    row = result.one_or_none()
    if row is None:
        raise AuthenticationError("Invalid or expired session")
    session, profile = row
    if session.revoked or as_utc(session.expires_at) <= utcnow():
        raise AuthenticationError("Invalid or expired session")
    _check_active(profile)
    return profile


async def logout(db: AsyncSession, settings: Settings, token: str) -> None:
    await db.execute(
        update(AuthSession)
        .where(AuthSession.token_digest == token_digest(token, settings.session_secret))
        .values(revoked=True),
    )
    await db.commit()


async def revoke_all_sessions(db: AsyncSession, profile_id) -> None:
    """Stage revocation of every session of a profile; the caller commits."""
    await db.execute(
        update(AuthSession)
        .where(AuthSession.profile_id == profile_id, AuthSession.revoked.is_(False))
        .values(revoked=True),
    )
