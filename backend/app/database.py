"""
StackIt Backend — Database Engine & Session Management
=======================================================

What:  Async SQLAlchemy engine factory, session factory, declarative base, and
       the FastAPI session dependency.
Why:   Centralizes all database connection logic in one place.
How:   The application lifespan builds ONE engine + session factory at startup
       and stores them on `app.state`; the per-request dependency pulls the
       factory from there. Nothing connects at import time.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at startup; sessions are created per-request.

Why not a module-level engine:
    An explicitly constructed handle has an explicit lifecycle (create in the
    lifespan, dispose on shutdown) and lets tests hand the app an in-memory
    engine without patching globals.

Atomic writes:
    Vote and tag counters rely on `INSERT ... ON CONFLICT`. `insert_for()` picks
    the dialect-specific insert construct (PostgreSQL in production, SQLite in
    tests); both expose the same `on_conflict_do_*` API.
"""

import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings
from app.exceptions import DatabaseError

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations and
    the test suite uses for `create_all`.
    """
    pass


# ── Engine Factory ────────────────────────────────────────────────────────
def create_engine(settings: Settings) -> AsyncEngine:
    """
    Build the async engine from settings.

    Pool sizing only applies to server databases; SQLite's async pool does not
    accept `pool_size` / `max_overflow`.
    """
    kwargs = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,  # Recycle after 1 hour to prevent stale connections
        )
    return create_async_engine(settings.database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: Prevents lazy-loading issues after commit
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory stored on app.state
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Raises:
        DatabaseError: any SQLAlchemy failure while the request used the
            session, or on commit. The original exception is logged here and
            never reaches the client. Application errors propagate unchanged.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Storage failure, transaction rolled back: %s", str(e), exc_info=True)
            raise DatabaseError(context={"exception": type(e).__name__}) from e
        except Exception:
            # Rollback for ANY failure, including non-DB errors raised after a write
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Dialect Helpers ───────────────────────────────────────────────────────
def insert_for(session: AsyncSession, model):
    """
    Return a dialect-specific INSERT for `model` supporting ON CONFLICT.

    Raises:
        NotImplementedError: For dialects without an upsert construct.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upserts are not supported on dialect '{dialect}'")


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
