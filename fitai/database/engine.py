"""
Database engine for FitAI Pro

PostgreSQL (asyncpg) in production; SQLite (aiosqlite) for local runs and tests.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from config.config import DATABASE_URL, ENVIRONMENT
from fitai.database.models import Base

logger = logging.getLogger(__name__)


engine: AsyncEngine | None = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(url: str) -> AsyncEngine:
    """
    Create an async engine with pool settings for the URL's backend

    SQLite gets a single shared connection (StaticPool) so an in-memory
    database survives across sessions. PostgreSQL gets a sized queue pool.
    """
    if is_sqlite_url(url):
        return create_async_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    is_production = ENVIRONMENT == "production"
    return create_async_engine(
        url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=10 if is_production else 5,
        max_overflow=20 if is_production else 10,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args={
            "statement_cache_size": 0,  # pgbouncer transaction mode
            "server_settings": {"application_name": "fitai_api", "jit": "off"},
        },
    )


def build_session_maker(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows stay readable after commit; services return them to the routers
    return async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    global engine

    if engine is None:
        engine = build_engine(DATABASE_URL)
        logger.info(
            f"Database engine created ({engine.dialect.name}, environment: {ENVIRONMENT})"
        )

    return engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    global AsyncSessionLocal

    if AsyncSessionLocal is None:
        AsyncSessionLocal = build_session_maker(get_engine())

    return AsyncSessionLocal


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request

    Usage:
        async def handler(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with get_session_maker()() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Session error: {e}", exc_info=True)
            raise


async def create_tables(eng: AsyncEngine) -> None:
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """
    Create missing tables on startup

    Schema changes on PostgreSQL go through alembic; this only covers a fresh
    database and SQLite runs.
    """
    logger.info("Creating database tables...")
    await create_tables(get_engine())
    logger.info("Database tables ready")


async def dispose_engine() -> None:
    """Close all pooled connections (application shutdown)"""
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")
        engine = None
        AsyncSessionLocal = None
