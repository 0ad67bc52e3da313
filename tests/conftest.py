"""Shared test fixtures."""

from __future__ import annotations

import os

os.environ["FGD_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["FGD_CAPTCHA_ENABLED"] = "false"
os.environ["FGD_RATE_LIMIT_BACKEND"] = "memory"
os.environ["FGD_JWT_SECRET"] = "test-secret"
os.environ["FGD_LOG_FORMAT"] = "console"

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from fgd.auth.jwt import create_access_token  # noqa: E402
from fgd.config import get_settings  # noqa: E402
from fgd.database import close_db, create_schema, drop_schema, get_engine, init_db  # noqa: E402
from fgd.db.models import Group, User  # noqa: E402
from fgd.main import create_app  # noqa: E402
from fgd.middleware.rate_limit import InMemoryRateLimiter  # noqa: E402
from fgd.reputation.seed import seed_badges  # noqa: E402

get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory schema per test, plus a session for setup and assertions."""
    settings = get_settings()
    await init_db(settings.database_url)
    await create_schema()
    async with AsyncSession(get_engine(), expire_on_commit=False) as session:
        yield session
    await drop_schema()
    await close_db()


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """DB session with the default badge definitions present."""
    await seed_badges(db_session)
    return db_session


@pytest.fixture
def app(db_session: AsyncSession) -> FastAPI:
    """Application with a limiter generous enough never to trip during a test."""
    return create_app(rate_limiter=InMemoryRateLimiter(limit=10_000, window_seconds=60))


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(autouse=True)
def mock_email_service(monkeypatch):
    """Mock the email service to prevent actual email sending."""
    mock_service = MagicMock()
    mock_service.send_template = AsyncMock(return_value=True)
    mock_service.send_email = AsyncMock(return_value=True)

    monkeypatch.setattr("fgd.email.notifications.get_email_service", lambda *a, **kw: mock_service)
    return mock_service


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory creating committed users. Moderators use role='admin'."""

    async def _make(
        *,
        role: str = "user",
        email: str | None = None,
        display_name: str | None = "Tester",
        is_banned: bool = False,
    ) -> User:
        auth_id = uuid.uuid4().hex
        user = User(
            auth_id=auth_id,
            email=email or f"{auth_id[:12]}@example.com",
            display_name=display_name,
            role=role,
            is_banned=is_banned,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_group(db_session: AsyncSession):
    """Factory creating committed groups, active unless told otherwise."""

    async def _make(*, submitter: User | None = None, status: str = "active", name: str = "Hiking Buddies") -> Group:
        group = Group(
            name=name,
            url=f"https://www.facebook.com/groups/{uuid.uuid4().hex[:16]}",
            description="Weekend hikes around the bay",
            submitted_by=submitter.id if submitter else None,
            status=status,
        )
        db_session.add(group)
        await db_session.commit()
        return group

    return _make


@pytest.fixture
def auth_headers():
    """Build a bearer header the auth dependency accepts for ``user``."""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user.auth_id, user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers
