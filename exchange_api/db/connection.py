"""
Database engine and session management (SQLAlchemy async).

SQLite is the default store; any async SQLAlchemy URL (MySQL, PostgreSQL)
works through DATABASE_URL. Tables are created from the ORM metadata on
startup, there are no migrations.
"""
from typing import AsyncIterator, Optional
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from exchange_api.db.models import Base
from exchange_api.config import settings
import logging

logger = logging.getLogger(__name__)

# Set by init_db, cleared by close_db
engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker] = None


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine with options suited to the backend.

    SQLite shares one connection (StaticPool) so in-memory databases keep
    their tables; server databases get pre-ping and hourly recycling.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_session_maker(db_engine: AsyncEngine) -> async_sessionmaker:
    # expire_on_commit=False: repositories return plain dataclasses, but
    # User rows are still read after the Unit of Work commits
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(db_engine: AsyncEngine) -> None:
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db(database_url: Optional[str] = None):
    """
    Initialize the module-level engine and create missing tables.

    Args:
        database_url: Optional override of settings.database_url
    """
    global engine, async_session_maker

    database_url = database_url or settings.database_url
    logger.info(f"Initializing database: {database_url.split('://')[0]}")

    engine = build_engine(database_url)
    async_session_maker = build_session_maker(engine)
    await create_tables(engine)

    logger.info("✅ Database initialized successfully")


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding one session per request.

    Routes wrap their work in a Unit of Work, which commits or rolls back
    on its own; this only rolls back and closes if something escapes it.
    """
    if async_session_maker is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with async_session_maker() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            await session.close()


async def close_db():
    """Dispose the engine; init_db must run again before the next session."""
    global engine, async_session_maker
    if engine:
        await engine.dispose()
        engine = None
        async_session_maker = None
        logger.info("Database connection closed")
