"""Application configuration via environment variables."""

import json
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database: local embedded SQLite by default, hosted PostgreSQL in deployment
    DATABASE_URL: str = "sqlite+aiosqlite:///./toff.db"
    DATABASE_URL_SYNC: str = "sqlite:///./toff.db"
    AUTO_CREATE_TABLES: bool = False

    # Auth: JWT_SECRET MUST be set via environment / .env (no default)
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_HOURS: int = 24

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "info"
    CORS_ORIGINS: str = '["http://localhost:3000"]'
    APP_URL: str = "http://localhost:3000"

    # Email
    EMAIL_ENABLED: bool = False
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: int = 15
    EMAIL_FROM: str = '"TOFF System" <notifications@toff.app>'
    ADMIN_EMAIL: Optional[str] = None

    # Destructive admin operations
    ALLOW_DATA_RESET: bool = False
    RESET_CONFIRMATION_PHRASE: str = "DELETE toff"

    # Ledger defaults (seeded on first access per user per year)
    DEFAULT_VACATION_DAYS: int = 22
    DEFAULT_SICK_DAYS: int = 8
    DEFAULT_PAID_LEAVE: int = 0
    DEFAULT_PERSONAL_DAYS: int = 3

    # Overtime
    OVERTIME_LAST_WEEK_ONLY: bool = True
    HOURS_PER_DAY: int = 8

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS JSON string into a list."""
        try:
            return json.loads(self.CORS_ORIGINS)
        except (json.JSONDecodeError, TypeError):
            return ["http://localhost:3000"]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()
