"""
Async engine and session factory (SQLAlchemy 2.0).

PostgreSQL via asyncpg in deployment; SQLite via aiosqlite for development
and tests.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from learnpath.config import Settings, get_settings


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    # Module rows rely on ON DELETE CASCADE from their pathway
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def build_engine(settings: Settings) -> AsyncEngine:
    if settings.database_url.startswith("sqlite"):
        # One connection per session: two open sessions never share a SQLite transaction
        sqlite_engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )
        event.listen(sqlite_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine

    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


engine = build_engine(get_settings())

# expire_on_commit=False: ORM rows stay readable after a UnitOfWork commits
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Commits whatever the handler left pending. Graph mutations have already
    committed through their own UnitOfWork by then.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables. Alembic revisions remain the source of truth in deployment."""
    from learnpath.kernel.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
