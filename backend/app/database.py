"""Database configuration and session management."""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from app.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict:
    """Pool and driver options for the configured backend."""
    if url.startswith("postgresql+asyncpg://"):
        return {
            "pool_size": 20,
            "max_overflow": 50,
            "pool_pre_ping": True,
            # Disable prepared statement caching for pgbouncer compatibility
            "connect_args": {
                "server_settings": {
                    "jit": "off",
                },
                "prepared_statement_cache_size": 0,
            },
        }
    return {}


engine = create_async_engine(
    settings.async_database_url,
    echo=False,  # Disable SQL query logging (too verbose)
    **_engine_options(settings.async_database_url),
)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """Dependency returning the factory used for work outside the request session."""
    return AsyncSessionLocal
