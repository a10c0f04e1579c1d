"""
Alembic Migration Environment
===============================

What:  Applies the StackIt schema (users, tags, question_tags, questions,
       question_votes, answers, answer_votes, answer_comments, answer_edits,
       notifications) through the same async driver the app uses.
How:   The URL always comes from app.config (DATABASE_URL), never from an ini
       file. Online runs open one NullPool connection and hand it to Alembic
       via `run_sync`.

Dialects:
    Migrations are written for PostgreSQL (UUID primary keys, JSONB
    notification metadata, timezone-aware timestamps). The models use the portable
    `Uuid` / `JSON` types so the test suite can `create_all` on SQLite; type
    comparison is therefore off for --autogenerate, otherwise every UUID and
    JSONB column would show up as a spurious change. Against SQLite, ALTERs
    are rendered in batch mode.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from app.config import settings
from app.database import Base

# Registers every StackIt table on Base.metadata
import app.models  # noqa: F401

config = context.config

# Logging config is optional; the CLI may run without an ini file
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

config.set_main_option("sqlalchemy.url", settings.database_url)


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=False,
        render_as_batch=settings.is_sqlite,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout without connecting."""
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    _configure(connection=connection)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """
    Connect with the async driver and apply pending revisions.

    NullPool: a migration run is one short-lived connection, so there is
    nothing to keep warm.
    """
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
