"""
StackIt Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Services are tested against a real (in-memory SQLite) database so the
       upserts, bulk updates and constraints behave as they do in production.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, fresh schema per test):
    ├── engine:       in-memory sqlite+aiosqlite engine with the full schema
    ├── db_session:   AsyncSession bound to that engine
    ├── make_user:    factory that inserts a User
    ├── alice / bob / carol: three ready-made users
    └── test_client:  HTTPX AsyncClient talking to the app over ASGI, with the
                      app's engine and session factory pointed at `engine`
"""

import os

# Override settings BEFORE any app import; app.config builds its singleton
# at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  (registers every table)
from app.database import Base, create_session_factory
from app.models.user import User


@pytest_asyncio.fixture
async def engine():
    """
    In-memory SQLite engine with all tables created.

    StaticPool keeps a single connection, so every session in the test (and
    the app, when `test_client` is used) sees the same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """
    AsyncSession for service-level tests.

    Usage:
        async def test_vote(db_session, alice, bob):
            await question_service.vote(db_session, question_id, bob, "upvote")
    """
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """Factory: `await make_user("dave")` inserts and returns a User."""

    async def _make_user(username: str) -> User:
        user = User(username=username, email=f"{username}@example.com")
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest_asyncio.fixture
async def alice(make_user):
    return await make_user("alice")


@pytest_asyncio.fixture
async def bob(make_user):
    return await make_user("bob")


@pytest_asyncio.fixture
async def carol(make_user):
    return await make_user("carol")


@pytest_asyncio.fixture
async def test_client(engine):
    """
    Async HTTP client for endpoint tests.

    ASGITransport does not run the lifespan, so the engine and session factory
    are installed on app.state directly.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/health")
            assert response.status_code == 200
    """
    from app.main import app

    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.state.engine = None
    app.state.session_factory = None


# ══════════════════════════════════════════════════════════════════════════
# Content Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def question(db_session, alice):
    """A question asked by alice, tagged react + jwt."""
    from app.schemas.question import QuestionCreate
    from app.services.question_service import question_service

    created = await question_service.create_question(
        db_session,
        alice,
        QuestionCreate(
            title="How to implement JWT authentication in React?",
            description="I need to store the token and refresh it before it expires.",
            tags=["react", "jwt"],
        ),
    )
    return created


@pytest_asyncio.fixture
async def answer(db_session, bob, question):
    """bob's answer to alice's question."""
    from app.schemas.answer import AnswerCreate
    from app.services.answer_service import answer_service

    return await answer_service.create_answer(
        db_session,
        bob,
        AnswerCreate(
            content="Keep the access token in memory and the refresh token in an httpOnly cookie.",
            question_id=question.id,
        ),
    )
