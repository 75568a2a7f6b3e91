import contextlib
from typing import AsyncIterator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.sql import text
from portfolio_ask.exceptions import DatabaseConnectionError
from portfolio_ask.logging_config import get_logger
from portfolio_ask.models.base import Base
# Import models so they are registered with Base metadata
from portfolio_ask.models.rag_chunk import RagChunk  # noqa: F401

log = get_logger(__name__)


class DatabaseManager:
    """
    Owns the async engine for one database URL.

    Created once by the application lifespan (or a script) and handed to the
    vector store and, through ``configure_reindex``, to the re-index workflow.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise DatabaseConnectionError("DATABASE_URL is not configured")
        # Ensure we use the async driver
        url = database_url.replace("postgresql://", "postgresql+psycopg://", 1)

        self.engine = create_async_engine(
            url,
            echo=False,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False
        )

    async def init_db(self):
        """Initialize database: create extension and tables."""
        async with self.engine.begin() as conn:
            # 1. Enable pgvector extension
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            # 2. Create all tables defined in Base
            await conn.run_sync(Base.metadata.create_all)
        log.info("database_initialized", tables=sorted(Base.metadata.tables))

    @contextlib.asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Provide a transactional scope around a series of operations."""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def dispose(self):
        await self.engine.dispose()
