"""
Database session configuration.

Async SQLAlchemy engine and session factory. PostgreSQL (asyncpg) in
deployment; SQLite (aiosqlite) URLs are accepted for local runs, where the
pool sizing options do not apply.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from parcel_backend.app.core.config import settings


def engine_options(database_url: str) -> dict:
    options = {"echo": settings.db_echo, "pool_pre_ping": True}
    if not make_url(database_url).get_backend_name().startswith("sqlite"):
        options.update(pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

# expire_on_commit=False: handlers serialize ORM objects after the service commits
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    Uncommitted work is rolled back if the request fails.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
