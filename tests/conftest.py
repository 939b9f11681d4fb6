"""Shared test configuration.

The settings are read when ``app.infrastructure.database`` is imported, so the
environment must be prepared before any application module is loaded.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "helpdesk_notifications_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["LOG_LEVEL"] = "DEBUG"

from app.config import get_settings  # noqa: E402

get_settings.cache_clear()

from app.infrastructure.notifications import StreamClosedError  # noqa: E402


class RecordingStream:
    """Stand-in for a client stream that records every event written to it."""

    def __init__(self, *, fail: bool = False) -> None:
        self.events = []
        self.fail = fail
        self.closed = False
        self.send_attempts = 0

    def send(self, event) -> None:
        self.send_attempts += 1
        if self.fail or self.closed:
            raise StreamClosedError("client went away")
        self.events.append(event)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def make_stream():
    """Return a factory of :class:`RecordingStream` objects."""

    return RecordingStream


@pytest.fixture
def db_session():
    """Yield a session bound to a freshly created schema."""

    from app.infrastructure.database import Base, SessionLocal, engine, initialize_database

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
