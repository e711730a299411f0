import os

# Must be set before any newsfeed module reads the settings
os.environ["ENVIRONMENT"] = "testing"
os.environ["TEST_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from typing import AsyncGenerator, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from newsfeed.main import app
from newsfeed.db.session import get_db, get_session_factory
from newsfeed.exceptions import UnauthorizedError
from newsfeed.models import Base
from newsfeed.models.user import User
from newsfeed.schemas.auth_schema import TokenData
from newsfeed.services.auth_service import get_current_user, get_optional_user
from newsfeed.services.user_service import pwd_context

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Password123!"
TEST_PASSWORD_HASH = pwd_context.hash(TEST_PASSWORD)

@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging data and calling services directly"""
    async with session_factory() as session:
        yield session

class Viewer:
    """Who the overridden auth dependencies report as the caller"""

    def __init__(self):
        self.identity: Optional[TokenData] = None

    def login(self, user: User):
        self.identity = TokenData(user_id=user.id, username=user.username)

    def logout(self):
        self.identity = None

@pytest.fixture
def viewer() -> Viewer:
    return Viewer()

@pytest.fixture
async def test_client(session_factory, viewer) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, wired to the test database"""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_current_user() -> TokenData:
        if viewer.identity is None:
            raise UnauthorizedError()
        return viewer.identity

    async def override_optional_user() -> Optional[TokenData]:
        return viewer.identity

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_current_user] = override_current_user
    app.dependency_overrides[get_optional_user] = override_optional_user

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

@pytest.fixture
def make_user(test_db):
    """Factory creating users straight in the database"""

    async def _make_user(username: str, **fields) -> User:
        user = User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            password=fields.pop("password", TEST_PASSWORD_HASH),
            first_name=fields.pop("first_name", username.capitalize()),
            last_name=fields.pop("last_name", "Tester"),
            **fields,
        )
        test_db.add(user)
        await test_db.commit()
        await test_db.refresh(user)
        return user

    return _make_user
