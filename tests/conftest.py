"""
Pytest configuration and fixtures for FitAI Pro tests
"""

from datetime import datetime, timedelta, UTC
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.router import router as api_router
from fitai.database.crud import create_user
from fitai.database.engine import build_engine, build_session_maker, create_tables, get_session
from fitai.database.models import Base, User
from fitai.services.auth_service import AuthService


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_EMAIL = "admin@fitai.test"


@pytest_asyncio.fixture(scope="function")
async def test_db_engine():
    """
    Create test database engine
    """
    engine = build_engine(TEST_DATABASE_URL)
    await create_tables(engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(test_db_engine):
    return build_session_maker(test_db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """
    Create test database session
    """
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def admin_allowlist(monkeypatch):
    """Single known admin email for every test"""
    monkeypatch.setattr("fitai.services.auth_service.ADMIN_EMAILS", [ADMIN_EMAIL])


@pytest.fixture
def make_user(db_session):
    """
    Factory for users

    Usage:
        user = await make_user("ana@example.com", created_hours_ago=48)
    """

    async def _make_user(
        email: str = "user@example.com",
        password: str = "secret123",
        full_name: str = "Usuário Teste",
        created_hours_ago: Optional[float] = None,
    ) -> User:
        user = await create_user(
            db_session,
            email=email,
            password_hash=AuthService.hash_password(password),
            full_name=full_name,
        )
        if created_hours_ago is not None:
            user.created_at = datetime.now(UTC) - timedelta(hours=created_hours_ago)
            await db_session.commit()
        return user

    return _make_user


def auth_headers(user: User) -> dict:
    token = AuthService.create_access_token(user.id, user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def app(db_session) -> FastAPI:
    """
    API app sharing the test session through a dependency override
    """
    application = FastAPI()
    application.include_router(api_router, prefix="/api")

    async def _override_session():
        yield db_session

    application.dependency_overrides[get_session] = _override_session
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
