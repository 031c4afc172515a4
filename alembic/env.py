"""Alembic migration environment.

Runs migrations through the async engine; the database URL always comes
from ``workflow_builder.core.config.settings`` rather than alembic.ini.
"""

import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context
from workflow_builder.core.config import settings

# Models must be imported for autogenerate to see their tables
from workflow_builder.models import Base, WorkflowRule  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

_ASYNC_SCHEMES = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
}


def get_url() -> str:
    """Async database URL from settings.

    Raises:
        ValueError: If DATABASE_URL is not configured.
    """
    if settings.DATABASE_URL is None:
        raise ValueError("DATABASE_URL is not set. Please configure it in your .env file.")

    url = str(settings.DATABASE_URL)
    for prefix, replacement in _ASYNC_SCHEMES.items():
        if url.startswith(prefix):
            return url.replace(prefix, replacement, 1)
    return url


def check_production_safety() -> None:
    """Refuse to migrate a production database without confirmation.

    Requires ``CONFIRM_PRODUCTION_MIGRATION=true`` when
    ``ENVIRONMENT=production``.

    Raises:
        RuntimeError: If the confirmation is missing.
    """
    if os.getenv("ENVIRONMENT", "").lower() != "production":
        return
    if os.getenv("CONFIRM_PRODUCTION_MIGRATION", "").lower() != "true":
        raise RuntimeError(
            "Production migration requires CONFIRM_PRODUCTION_MIGRATION=true."
        )


def run_migrations_offline() -> None:
    """Emit migration SQL without connecting."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations over an async connection."""
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable = async_engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    check_production_safety()
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
