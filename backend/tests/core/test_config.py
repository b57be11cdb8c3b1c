"""Settings loading and database URL normalisation."""

import pytest
from pydantic import ValidationError

from venturenet.config import Settings, normalize_database_url


@pytest.mark.parametrize("raw, expected", [
    ("postgresql://u:p@db/vn", "postgresql+asyncpg://u:p@db/vn"),
    ("postgres://u:p@db/vn", "postgresql+asyncpg://u:p@db/vn"),
    ("sqlite:///local.db", "sqlite+aiosqlite:///local.db"),
    ("postgresql+asyncpg://u:p@db/vn", "postgresql+asyncpg://u:p@db/vn"),
    ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
])
def test_normalize_database_url(raw, expected):
    assert normalize_database_url(raw) == expected


def test_settings_apply_async_driver():
    s = Settings(database_url="postgresql://u:p@db/vn", session_secret="x")
    assert s.database_url == "postgresql+asyncpg://u:p@db/vn"


def test_blank_session_secret_rejected():
    with pytest.raises(ValidationError):
        Settings(database_url="sqlite+aiosqlite:///:memory:", session_secret="   ")


def test_defaults():
    s = Settings(database_url="sqlite+aiosqlite:///:memory:", session_secret="x")
    assert s.message_max_length == 2000
    assert s.log_format == "json"
