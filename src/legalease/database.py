"""
Database Configuration and Connection
"""
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
import structlog

from .config import settings
from .schema import SCHEMA_STATEMENTS

logger = structlog.get_logger()

# Create async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


async def apply_schema():
    """Create missing tables and indexes"""
    async with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(text(statement))
    logger.info("Database schema applied", statements=len(SCHEMA_STATEMENTS))


async def init_database():
    """Initialize database connection"""
    logger.info("Initializing database connection", url=settings.DATABASE_URL.split('@')[-1])

    # Test connection
    async with engine.begin() as conn:
        await conn.run_sync(lambda _: None)

    if settings.AUTO_MIGRATE:
        await apply_schema()

    logger.info("Database connection established")


async def close_database():
    """Close database connection"""
    logger.info("Closing database connection")
    await engine.dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
