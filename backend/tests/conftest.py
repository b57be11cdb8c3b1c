"""Root conftest — shared test configuration."""

import os

os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")
