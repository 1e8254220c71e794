"""Migration environment for the landing-versions metadata schema.

The database URL comes from ``src.config.settings`` so migrations and the
service always target the same database.
"""

import asyncio
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import src.entities  # noqa: F401,E402
from src.config import settings  # noqa: E402
from src.database import Base  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


async def _run_online() -> None:
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(lambda conn: _configure(connection=conn))
    await engine.dispose()


if context.is_offline_mode():
    _configure(url=settings.database_url, literal_binds=True, dialect_opts={"paramstyle": "named"})
else:
    asyncio.run(_run_online())
