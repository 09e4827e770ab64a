import os
import ssl
from typing import AsyncGenerator

import structlog
from fastapi import Request
from sqlalchemy import inspect, text
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from gallery.config import Settings
from gallery.credentials import DatabaseCredentials

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


def database_url(settings: Settings, creds: DatabaseCredentials) -> URL:
    return URL.create(
        "postgresql+asyncpg",
        username=creds.username,
        password=creds.password,
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        database=creds.database,
    )


def ssl_context(ca_path: str) -> ssl.SSLContext:
    if os.path.exists(ca_path):
        logger.info("db_ssl_verified", ca_path=ca_path)
        return ssl.create_default_context(cafile=ca_path)
    # No bundle: still encrypted, certificate not verified
    logger.warning("db_ssl_unverified", ca_path=ca_path)
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def create_engine(settings: Settings, creds: DatabaseCredentials) -> AsyncEngine:
    return create_async_engine(
        database_url(settings, creds),
        echo=False,
        pool_pre_ping=True,
        pool_recycle=1800,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        connect_args={"ssl": ssl_context(settings.DB_SSL_CA_PATH)},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def ensure_table(engine: AsyncEngine) -> bool:
    """Create the images table if it is missing. Returns True when it was created."""
    from gallery.models import ImageRecord

    async with engine.begin() as conn:
        exists = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).has_table(ImageRecord.__tablename__)
        )
        if exists:
            logger.info("images_table_exists")
            return False
        await conn.run_sync(Base.metadata.create_all)
    logger.info("images_table_ready")
    return True


async def check_db(engine) -> bool:
    if engine is None:
        return False
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise RuntimeError("Database is not configured for this gallery mode.")
    async with factory() as session:
        yield session
