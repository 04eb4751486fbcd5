import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.config import Settings

logger = logging.getLogger(__name__)

# The database is optional: without DATABASE_URL the service reads timelines
# straight from the GitHub API and none of this is constructed.


def create_engine(settings: Settings) -> AsyncEngine | None:
    """Create the async engine, or None when no database is configured."""
    if not settings.database_enabled:
        return None

    return create_async_engine(
        settings.database_url,
        echo=False,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Detects stale connections before use
        pool_recycle=300,  # Recycle connections every 5 min
        pool_timeout=30,  # Wait up to 30s for a connection from pool
        connect_args={
            "command_timeout": 30,  # Query timeout in seconds (prevents hung queries)
        },
    )


def create_session_maker(engine: AsyncEngine) -> sessionmaker:
    """Build the session factory bound to engine."""
    return sessionmaker(  # type: ignore[call-overload]
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def ping_database(session_maker: sessionmaker) -> bool:
    """Check that the database answers a trivial query."""
    try:
        async with session_maker() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database unreachable, using GitHub API for timelines: {e}")
        return False
