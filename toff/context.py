"""Explicitly constructed service context: settings, database, mail transport."""

from __future__ import annotations

import logging
from typing import Optional

from toff.config import Settings
from toff.database import Database
from toff.notifications.mailer import Mailer

logger = logging.getLogger(__name__)


class ServiceContext:
    """Everything a request handler needs beyond its own arguments.

    Built once by the application factory and stored on ``app.state.context``.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        database: Optional[Database] = None,
        mailer: Optional[Mailer] = None,
    ) -> None:
        self.settings = settings
        self.database = database or Database(
            settings.DATABASE_URL,
            echo=settings.ENVIRONMENT == "development" and settings.LOG_LEVEL == "debug",
        )
        self.mailer = mailer or Mailer.from_settings(settings)

    async def startup(self) -> None:
        self.database.connect()
        if self.settings.AUTO_CREATE_TABLES:
            await self.database.create_all()
        logger.info(
            "Service context started (database=%s, email_enabled=%s)",
            "sqlite" if self.database.is_sqlite else "postgresql",
            self.mailer.enabled,
        )

    async def shutdown(self) -> None:
        await self.database.dispose()
        logger.info("Service context stopped")
