"""
Database connection setup and session management.
"""
from typing import Any, AsyncGenerator, Dict
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from cryptofolio.config import settings


# Database URL from settings
DATABASE_URL = settings.database_url

# Plain PostgreSQL URLs are served through asyncpg
ASYNC_DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)


# Declarative Base class
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def engine_options(url: str) -> Dict[str, Any]:
    """Connection pool options for the given database URL."""
    if url.startswith("sqlite"):
        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.endswith("://"):
            # A single shared connection keeps the in-memory database alive
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    }


# Asynchronous engine (for FastAPI)
async_engine = create_async_engine(
    ASYNC_DATABASE_URL,
    echo=False,
    **engine_options(ASYNC_DATABASE_URL)
)

# Asynchronous session factory
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


# Dependency for FastAPI endpoints
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get database session.

    Usage in FastAPI:
        @router.get("/")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Create all tables (development and tests, migrations should be preferred)
async def create_tables():
    """Create all database tables. Use migrations in production."""
    # Register every model on the metadata before creating
    import cryptofolio.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Drop all tables (used for testing only)
async def drop_tables():
    """Drop all database tables. DANGER: Use only in testing."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
