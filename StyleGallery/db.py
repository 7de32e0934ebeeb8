# db.py
import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

# Import the centralized settings object
from settings import settings

# --- Configuration & Setup ---
logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Rewrites Heroku/Render style Postgres URLs to the asyncpg driver."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


DATABASE_URL = normalize_database_url(settings.DATABASE_URL)

if DATABASE_URL.startswith("postgresql+asyncpg://"):
    logger.info("✅ Connecting to PostgreSQL database.")
else:
    logger.info("✅ Using local SQLite database for development.")


# --- SQLAlchemy Engine & Session ---

def build_engine(url: str):
    """
    Creates the async engine.

    Connection pool sizing only applies to server databases; SQLite
    uses its own pool classes which reject those arguments.
    """
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=False,
        pool_size=10,
        max_overflow=5,
        pool_timeout=30,
        pool_recycle=1800,  # recycle before idle connections get dropped upstream
    )


engine = build_engine(DATABASE_URL)

# `expire_on_commit=False` keeps loaded attributes usable after commit,
# handlers read counters and titles after the write.
async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Base class for declarative models. All models in `models.py` inherit from this.
Base = declarative_base()


async def init_models() -> None:
    """Create database tables if they do not exist yet."""
    # Importing registers every model on Base.metadata
    import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified/created.")


# --- FastAPI Dependency ---

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session to each request.

    Uses an `async with` block to ensure the session is always
    closed correctly, even if an error occurs.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
