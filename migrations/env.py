import asyncio
import logging

from alembic import context
import alembic_postgresql_enum  # noqa: F401
from sqlalchemy import MetaData
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

import models  # noqa: F401
from src.core.database.base import Base
from src.main.config import config as app_config

target_metadata: MetaData = Base.metadata
logger = logging.getLogger("alembic.env")

# Tables owned by Postgres extensions
IGNORED_TABLES = frozenset({"spatial_ref_sys"})


def include_object(object, name, type_, reflected, compare_to):  # noqa: A002
    return not (type_ == "table" and name in IGNORED_TABLES)


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout without touching a database."""
    context.configure(
        url=app_config.postgres.dsn_async,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        include_object=include_object,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = create_async_engine(app_config.postgres.dsn_async)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()
    logger.info("Migrations applied to %s", app_config.postgres.POSTGRES_DB)


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
