"""
Shared test fixtures for the Solaris test suite.

Async throughout (aiosqlite + AsyncSession). Three users are seeded for
every test: an admin (id 1), a member (id 2) and the training manager
(id 3). Requests act as the admin unless a test calls ``act_as``.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
# Use async sqlite driver
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TIMEZONE_OFFSET"] = "+00:00"
os.environ["TRAINING_MANAGER_EMAIL"] = ""

from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from solaris.api.v1.deps import get_current_active_user, get_db
from solaris.core.security import get_password_hash
from solaris.db.base import Base
from solaris.main import app
from solaris.models.user import User

ADMIN_ID = 1
MEMBER_ID = 2
TRAINER_ID = 3
PASSWORD = "secret123"

# Hashed once; bcrypt is deliberately slow
_PASSWORD_HASH = get_password_hash(PASSWORD)

# Create a test engine for the entire session
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

_acting = {"user_id": ADMIN_ID}


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables and seed users before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestingSessionLocal() as session:
        session.add_all(
            [
                User(id=ADMIN_ID, email="admin@example.com", hashed_password=_PASSWORD_HASH,
                     name="Ada Admin", role="admin", is_training_manager=False, is_active=True),
                User(id=MEMBER_ID, email="member@example.com", hashed_password=_PASSWORD_HASH,
                     name="Mia Member", role="member", is_training_manager=False, is_active=True),
                User(id=TRAINER_ID, email="trainer@example.com", hashed_password=_PASSWORD_HASH,
                     name="Theo Trainer", role="member", is_training_manager=True, is_active=True),
            ]
        )
        await session.commit()

    _acting["user_id"] = ADMIN_ID
    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Release the pooled connection so the next test binds to its own loop
    await test_engine.dispose()


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


# ── Auth Overrides ──────────────────────────────────────────────────
async def _override_get_current_active_user(db: AsyncSession = Depends(get_db)) -> User:
    result = await db.execute(select(User).where(User.id == _acting["user_id"]))
    return result.scalar_one()


app.dependency_overrides[get_current_active_user] = _override_get_current_active_user


@pytest.fixture
def act_as():
    """Switch the acting user for subsequent requests: ``act_as(MEMBER_ID)``."""

    def _switch(user_id: int) -> None:
        _acting["user_id"] = user_id

    return _switch


@pytest.fixture
def real_auth():
    """Disable the acting-user override so requests need a real token."""
    override = app.dependency_overrides.pop(get_current_active_user)
    yield
    app.dependency_overrides[get_current_active_user] = override


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session
