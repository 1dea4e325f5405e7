from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging

from barcache.core.exceptions import StorageFailureError

logger = logging.getLogger(__name__)

# SQLAlchemy declarative base for models
Base = declarative_base()


class Database:
    """
    Owns the async engine and session factory for the local cache database.

    Constructed once by the service container and shared by every
    component that needs a session.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        engine_kwargs = {"echo": echo, "future": True}
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection, otherwise every session sees an empty db
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    async def create_all(self) -> None:
        """Create tables for all registered models."""
        # Register mapped classes on Base.metadata
        import barcache.models  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StorageFailureError("create_all", details={"error": str(e)}) from e
        logger.info(f"Cache schema ready at {self.engine.url.render_as_string(hide_password=True)}")

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self, operation: str = "session") -> AsyncIterator[AsyncSession]:
        """
        Transactional session scope.

        Commits on success and rolls back on failure. Storage errors are
        re-raised as StorageFailureError.
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Cache database operation {operation} failed: {e}")
            raise StorageFailureError(operation, details={"error": str(e)}) from e
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()
