# tests/conftest.py
"""
Shared pytest fixtures.

The environment is set before the application is imported so that
settings, the module-level engine and the storage root point at test
locations:
- SQLite in memory (aiosqlite) instead of Postgres
- a temporary directory for bucket storage
- no vendor API keys
"""
import os
import tempfile

os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="copymode-storage-")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("GROQ_API_KEY", None)
os.environ.pop("OPENAI_API_KEY", None)

from typing import AsyncGenerator, Dict  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from copymode.core.config import settings  # noqa: E402
from copymode.core.database import Base, get_db  # noqa: E402
from copymode.core.security import create_access_token, get_password_hash  # noqa: E402
from copymode.main import app  # noqa: E402
from copymode.models import Agent, ContentType, Expert, User  # noqa: E402

API = settings.API_V1_PREFIX
TEST_PASSWORD = "secret123"


def embedding(value: float = 0.1):
    """A vector with the configured dimension."""
    return [value] * settings.EMBEDDING_DIMENSIONS


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
async def test_engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ============================================================================
# FastAPI Application and Client
# ============================================================================

@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app, with get_db using the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================================
# Users and Authentication
# ============================================================================

async def create_user(session: AsyncSession, email: str, role: str = "user", **kwargs) -> User:
    user = User(
        email=email,
        name=kwargs.pop("name", email.split("@")[0].title()),
        role=role,
        hashed_password=get_password_hash(kwargs.pop("password", TEST_PASSWORD)),
        **kwargs
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def admin_user(db_session) -> User:
    return await create_user(db_session, "admin@example.com", role="admin")


@pytest.fixture
async def regular_user(db_session) -> User:
    return await create_user(db_session, "user@example.com")


@pytest.fixture
async def other_user(db_session) -> User:
    return await create_user(db_session, "other@example.com")


@pytest.fixture
def admin_headers(admin_user) -> Dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def user_headers(regular_user) -> Dict[str, str]:
    return auth_headers(regular_user)


@pytest.fixture
def other_headers(other_user) -> Dict[str, str]:
    return auth_headers(other_user)


# ============================================================================
# Domain Objects
# ============================================================================

@pytest.fixture
async def agent(db_session, admin_user) -> Agent:
    agent = Agent(
        name="Direct Response",
        description="Sales copy",
        prompt="You write punchy direct response copy.",
        temperature=0.9,
        knowledge_files=[],
        created_by=admin_user.id
    )
    db_session.add(agent)
    await db_session.commit()
    await db_session.refresh(agent)
    return agent


@pytest.fixture
async def expert(db_session, regular_user) -> Expert:
    expert = Expert(
        name="Yoga Studio",
        niche="Yoga for beginners",
        target_audience="Office workers",
        benefits="Less back pain",
        user_id=regular_user.id
    )
    db_session.add(expert)
    await db_session.commit()
    await db_session.refresh(expert)
    return expert


@pytest.fixture
async def content_type(db_session, admin_user) -> ContentType:
    content_type = ContentType(
        name="Instagram Post",
        description="Caption with hashtags",
        user_id=admin_user.id
    )
    db_session.add(content_type)
    await db_session.commit()
    await db_session.refresh(content_type)
    return content_type
