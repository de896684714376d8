"""
Alembic Migration Environment
===============================

What:  Runs the MySQL migrations with the same async driver the app uses.
How:   The connection URL is built from the MYSQL_* settings, not from
       alembic.ini, so there is one source of configuration. The SQLite
       backend does not use Alembic; it applies schema.sql on first open.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from horoscope_desk.config import settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Plain SQL migrations; there are no ORM models to autogenerate from.
target_metadata = None

database_url = URL.create(
    "mysql+aiomysql",
    username=settings.mysql_user,
    password=settings.mysql_password or None,
    host=settings.mysql_host,
    port=settings.mysql_port,
    database=settings.mysql_database,
)


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=database_url.render_as_string(hide_password=False),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = create_async_engine(database_url, poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
