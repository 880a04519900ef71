"""Database configuration and connection management."""

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import Settings


class Database:
    """
    Storage handle owning the async engine and session factory.

    Built once by the application lifespan and disposed on shutdown.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs: Any):
        """Create the engine and session factory for ``url``."""
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a handle with pooling options suited to the configured backend."""
        url = settings.async_database_url
        kwargs: dict[str, Any] = {"pool_pre_ping": True}

        if make_url(url).get_backend_name() == "postgresql":
            kwargs.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_recycle=3600,
                connect_args={
                    "server_settings": {
                        "application_name": settings.app_name,
                    },
                },
            )

        return cls(url, echo=settings.debug, **kwargs)

    async def check_connection(self) -> bool:
        """Check if database connection is healthy."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """Return the storage handle attached to the running application."""
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with get_database(request).sessionmaker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
