"""Database configuration and session management."""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, StaticPool


# Base class for models
Base = declarative_base()


class Database:
    """Owns the async engine and session factory for one process."""

    def __init__(self, url: str, echo: bool = False):
        engine_kwargs = {
            "echo": echo,
            "pool_pre_ping": True,
        }

        if url.startswith("sqlite") and ":memory:" in url:
            engine_kwargs.update(
                {
                    "poolclass": StaticPool,
                    "connect_args": {"check_same_thread": False},
                }
            )
        elif url.startswith("sqlite"):
            # each session gets its own connection
            engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs.update(
                {
                    "pool_size": 10,
                    "max_overflow": 20,
                }
            )

        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    async def create_all(self) -> None:
        """Create tables for every mapped model."""
        import taskrelay.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Close database connections."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting database session."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
