"""Shared FastAPI dependencies backed by the service context."""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from toff.config import Settings
from toff.context import ServiceContext
from toff.notifications.mailer import Mailer
from toff.notifications.service import Notifier


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context


def get_app_settings(request: Request) -> Settings:
    return get_context(request).settings


def get_mailer(request: Request) -> Mailer:
    return get_context(request).mailer


def get_notifier(request: Request) -> Notifier:
    context = get_context(request)
    return Notifier(context.mailer, context.settings)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yield an async database session."""
    async with get_context(request).database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
