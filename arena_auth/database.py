"""Async engine and sessions for the profile directory."""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from arena_auth.config import settings
from arena_auth.models.profiles import profiles


def async_database_url(url: str) -> str:
    """Point a PostgreSQL URL at the asyncpg driver."""
    for prefix in ("postgresql+asyncpg://", "postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix) :]
    return url


DATABASE_URL = async_database_url(settings.database_url)

# Lookups are single-row reads, so a small pool is enough
engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_recycle=1800,
    connect_args={"server_settings": {"application_name": settings.app_name}},
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def check_database_connection() -> bool:
    """Whether the profiles table can be queried, i.e. reachable and migrated."""
    try:
        async with engine.connect() as conn:
            await conn.execute(select(profiles.c.user_id).limit(1))
    except (SQLAlchemyError, OSError):
        return False
    return True
