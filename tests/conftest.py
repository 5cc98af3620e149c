"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of ecoreward.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine, event  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from ecoreward.database.models import Base, User  # noqa: E402


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all EcoReward tables.

    Uses StaticPool so every session (and ``asyncio.to_thread`` worker)
    shares the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine for multi-threaded tests.

    Each thread gets its own connection.  Transactions open with
    ``BEGIN IMMEDIATE`` so writers queue on SQLite's busy timeout instead of
    failing on lock upgrade.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ecoreward.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def make_user(
    engine: Engine,
    user_id: str = "user-1",
    *,
    name: str | None = "Alice",
    points: int = 0,
    streak: int = 0,
    last_activity_date: datetime | None = None,
    daily_scan_limit: int = 2,
    daily_scan_count: int = 0,
    last_scan_date: str | None = None,
) -> str:
    """Insert a users row directly, bypassing the services."""
    with Session(engine) as session:
        session.add(User(
            id=user_id,
            name=name,
            points=points,
            streak=streak,
            last_activity_date=last_activity_date,
            daily_scan_limit=daily_scan_limit,
            daily_scan_count=daily_scan_count,
            last_scan_date=last_scan_date,
        ))
        session.commit()
    return user_id


def make_token(sub: str = "user-1", *, is_admin: bool = False, **claims) -> str:
    """Mint a bearer JWT signed with the test secret."""
    import jwt

    from ecoreward.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "is_admin": is_admin, **claims},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def load_user(engine: Engine, user_id: str) -> User:
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        session.expunge(user)
        return user
