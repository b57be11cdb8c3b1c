"""Session manager: rollback, error mapping, health check."""

import pytest
from sqlalchemy import text

from venturenet.core.errors import DatabaseError
from venturenet.infrastructure.database import DatabaseSessionManager


@pytest.fixture
async def manager():
    m = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    yield m
    await m.dispose()


async def test_health_check_passes(manager):
    assert await manager.health_check() is True


async def test_operational_error_mapped(manager):
    with pytest.raises(DatabaseError) as exc:
        async with manager.session() as db:
            await db.execute(text("SELECT * FROM no_such_table"))
    assert exc.value.operation == "execute"
    assert exc.value.http_status == 503


async def test_other_exceptions_propagate_unchanged(manager):
    with pytest.raises(KeyError):
        async with manager.session():
            raise KeyError("x")
