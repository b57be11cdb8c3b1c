"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys enforced
    - get_db and get_settings dependencies overridden for the test app
    - db_manager patched so the readiness check sees the test engine
    - make_user inserts profiles directly and issues real bearer sessions

Design Decisions:
    - StaticPool: the test session and request sessions share one in-memory connection
    - Fixture passwords use a cheap pbkdf2 method: the default scrypt cost is exercised in
      test_auth, not for every fixture user
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from venturenet.config import Settings, get_settings
from venturenet.db.base import Base
from venturenet.infrastructure.database import (
    get_db, DatabaseSessionManager, enable_sqlite_foreign_keys,
)
import venturenet.infrastructure.database as db_module
from venturenet.main import app
from venturenet.models.profile import Profile
from venturenet.services.auth_service import hash_password, issue_session

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        session_secret="test-session-secret",
        message_rate_limit=5,
        message_rate_window_seconds=3600,
        message_max_length=200,
        upload_dir=str(tmp_path / "uploads"),
        public_base_url="http://test",
        max_upload_bytes=1024,
    )


@pytest.fixture
async def client(test_engine, test_session_factory, settings):
    """FastAPI test client with DB and settings dependencies overridden."""
    async def override_get_db():
        manager = db_module.db_manager
        async with manager.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def make_user(test_db, settings):
    """Factory: insert an active profile and return (profile, bearer token)."""
    counter = {"n": 0}

    async def _make(role: str = "startup", full_name: str | None = None, status: str = "active"):
        counter["n"] += 1
        profile = Profile(
            email=f"{role}{counter['n']}@example.com",
            password_hash=hash_password(TEST_PASSWORD, method="pbkdf2:sha256:1000"),
            role=role,
            full_name=full_name or f"{role.title()} {counter['n']}",
            status=status,
        )
        test_db.add(profile)
        await test_db.flush()
        token, _ = issue_session(test_db, settings, profile)
        await test_db.commit()
        return profile, token

    return _make


@pytest.fixture
def auth():
    """Build bearer headers: auth(token)."""
    def _headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}
    return _headers
