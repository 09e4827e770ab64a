import asyncio

from alembic import context

from gallery.config import get_settings
from gallery.credentials import fetch_database_credentials
from gallery.db import Base, create_engine
from gallery import models  # noqa: F401  registers the images table

target_metadata = Base.metadata


def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    settings = get_settings()
    engine = create_engine(settings, fetch_database_credentials(settings))
    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await engine.dispose()


asyncio.run(run_migrations_online())
