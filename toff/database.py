"""Async SQLAlchemy engine and session management.

The same ORM code runs against the local embedded SQLite database
(``sqlite+aiosqlite``) and a hosted PostgreSQL database (``postgresql+asyncpg``);
the backend is selected purely by ``DATABASE_URL``.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class Database:
    """Owns one async engine and its session factory."""

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        engine: Optional[AsyncEngine] = None,
    ) -> None:
        self.url = url
        self._echo = echo
        self._engine = engine
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        if engine is not None:
            self._session_factory = self._make_factory(engine)

    @staticmethod
    def _make_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected; call connect() first.")
        return self._engine

    def connect(self) -> None:
        """Create the engine (idempotent)."""
        if self._engine is not None:
            return
        if self.is_sqlite:
            # SQLite: single file, no server-side pool sizing
            self._engine = create_async_engine(
                self.url,
                echo=self._echo,
                connect_args={"check_same_thread": False},
            )
        else:
            self._engine = create_async_engine(
                self.url,
                echo=self._echo,
                pool_size=10,
                max_overflow=20,
                pool_pre_ping=True,
            )
        self._session_factory = self._make_factory(self._engine)

    async def create_all(self) -> None:
        """Create any missing tables (local development convenience)."""
        # Import model modules so every table is registered on Base.metadata
        import toff.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def session(self) -> AsyncSession:
        if self._session_factory is None:
            raise RuntimeError("Database is not connected; call connect() first.")
        return self._session_factory()
