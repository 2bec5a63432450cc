"""
Database connection management and session handling.
"""

import logging
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)
from sqlalchemy.pool import NullPool

from .config import get_settings
from .models.base import Base
from .utils.retry import retry_async, RetryConfig

logger = logging.getLogger(__name__)


def create_database_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create and configure the database engine with connection pooling."""
    settings = get_settings()
    url = make_url(database_url or settings.database_url)

    if url.get_backend_name() == "sqlite":
        # One connection per session; concurrent writers wait on the busy timeout
        return create_async_engine(
            url,
            poolclass=NullPool,
            echo=settings.debug,
            connect_args={"timeout": 30},
        )

    return create_async_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,  # Validate connections before use
        pool_recycle=3600,   # Recycle connections every hour
        echo=settings.debug,
        connect_args={
            "server_settings": {
                "application_name": "ticketgate",
            }
        }
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory for database sessions."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables known to the model metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class DatabaseManager:
    """Database manager for handling connections and sessions."""

    def __init__(self):
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    async def initialize(self, database_url: Optional[str] = None) -> None:
        """Initialize the engine and create tables, retrying while the database comes up."""
        settings = get_settings()
        self.engine = create_database_engine(database_url)
        self.session_factory = create_session_factory(self.engine)

        await retry_async(
            create_tables,
            RetryConfig(max_attempts=settings.database_connect_attempts, base_delay=1.0, max_delay=15.0),
            (OperationalError, InterfaceError, ConnectionError, OSError),
            (),
            self.engine,
        )

        logger.info("Database manager initialized")

    async def close(self) -> None:
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database manager closed")
        self.engine = None
        self.session_factory = None

    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Return the session factory, failing loudly if not initialized."""
        if self.session_factory is None:
            raise RuntimeError("Database manager not initialized")
        return self.session_factory


# Global database manager instance
db_manager = DatabaseManager()


async def init_database() -> None:
    """Initialize database connection and create tables."""
    logger.info("Initializing database connection...")
    await db_manager.initialize()
    logger.info("Database initialized successfully")


async def close_database() -> None:
    """Close database connections."""
    logger.info("Closing database connections...")
    await db_manager.close()
    logger.info("Database connections closed")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for the global database manager."""
    return db_manager.get_session_factory()
