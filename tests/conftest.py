"""Shared test fixtures — async DB, app/client, fake mailer, user factories, auth helpers.

Uses SQLite + aiosqlite in memory for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import smtplib
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Iterable, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import toff.models  # noqa: F401
from toff.auth.service import open_session
from toff.balance.models import TimeOffBalance
from toff.common.constants import RequestStatus, TimeOffType, UserRole
from toff.common.dates import working_days
from toff.common.rate_limit import limiter
from toff.config import Settings
from toff.context import ServiceContext
from toff.database import Base, Database
from toff.main import create_app
from toff.notifications.mailer import Mailer
from toff.notifications.service import Notifier
from toff.overtime.models import OvertimeRequest
from toff.time_off.models import TimeOffRequest
from toff.users.models import User

# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


def make_settings(**overrides) -> Settings:
    values = dict(
        JWT_SECRET=os.environ["JWT_SECRET"],
        DATABASE_URL=TEST_DATABASE_URL,
        ENVIRONMENT="test",
        LOG_LEVEL="warning",
        APP_URL="http://toff.app",
        EMAIL_ENABLED=True,
        ADMIN_EMAIL=None,
        OVERTIME_LAST_WEEK_ONLY=False,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    limiter.reset()
    yield


# ── Fake mail transport ─────────────────────────────────────────────

@dataclass
class SentMessage:
    to: str
    subject: str
    html: str


class FakeMailer(Mailer):
    """Records messages instead of talking SMTP; can fail for chosen recipients."""

    def __init__(self, *, enabled: bool = True, fail_for: Iterable[str] = ()) -> None:
        super().__init__(
            enabled=enabled,
            host="localhost",
            port=25,
            sender='"TOFF System" <notifications@toff.app>',
        )
        self.sent: list[SentMessage] = []
        self.fail_for = set(fail_for)

    async def send(self, to: str, subject: str, html: str) -> bool:
        if not self.enabled:
            return False
        if to in self.fail_for:
            raise smtplib.SMTPRecipientsRefused({to: (550, b"mailbox unavailable")})
        self.sent.append(SentMessage(to=to, subject=subject, html=html))
        return True

    def to(self, address: str) -> list[SentMessage]:
        return [m for m in self.sent if m.to == address]


# ── Settings / context ──────────────────────────────────────────────

@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def notifier(mailer, settings) -> Notifier:
    return Notifier(mailer, settings)


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(settings, mailer):
    """Create a fresh app wired to the in-memory engine and fake mailer."""
    context = ServiceContext(
        settings,
        database=Database(TEST_DATABASE_URL, engine=engine),
        mailer=mailer,
    )
    yield create_app(context=context)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def make_user(
    db: AsyncSession,
    *,
    name: str = "Test User",
    email: Optional[str] = None,
    role: UserRole = UserRole.employee,
    supervisor_id: Optional[uuid.UUID] = None,
    is_active: bool = True,
) -> User:
    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email or f"user-{uuid.uuid4().hex[:8]}@toff.app",
        role=role,
        supervisor_id=supervisor_id,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    return user


async def make_time_off(
    db: AsyncSession,
    user: User,
    start: date,
    end: date,
    *,
    type_: TimeOffType = TimeOffType.vacation,
    status: RequestStatus = RequestStatus.approved,
    stored_days: Optional[int] = None,
) -> TimeOffRequest:
    """Insert a request directly (bypassing the lifecycle) for report tests."""
    request = TimeOffRequest(
        id=uuid.uuid4(),
        user_id=user.id,
        start_date=start,
        end_date=end,
        type=type_,
        status=status,
        working_days=working_days(start, end) if stored_days is None else stored_days,
    )
    db.add(request)
    await db.commit()
    return request


async def make_overtime(
    db: AsyncSession,
    user: User,
    hours: str,
    *,
    day: date = date(2025, 3, 28),
    status: RequestStatus = RequestStatus.pending,
) -> OvertimeRequest:
    request = OvertimeRequest(
        id=uuid.uuid4(),
        user_id=user.id,
        hours=Decimal(hours),
        request_date=day,
        month=day.month,
        year=day.year,
        status=status,
    )
    db.add(request)
    await db.commit()
    return request


async def make_balance(
    db: AsyncSession,
    user: User,
    year: int,
    *,
    vacation: str = "22",
    sick: str = "8",
    paid_leave: str = "0",
    personal: str = "3",
) -> TimeOffBalance:
    balance = TimeOffBalance(
        user_id=user.id,
        year=year,
        vacation_days=Decimal(vacation),
        sick_days=Decimal(sick),
        paid_leave=Decimal(paid_leave),
        personal_days=Decimal(personal),
    )
    db.add(balance)
    await db.commit()
    return balance


@pytest.fixture
async def employee(db) -> User:
    return await make_user(db, name="Erin Employee", email="erin@toff.app")


@pytest.fixture
async def manager(db) -> User:
    return await make_user(
        db, name="Max Manager", email="max@toff.app", role=UserRole.manager,
    )


@pytest.fixture
async def admin(db) -> User:
    return await make_user(
        db, name="Ada Admin", email="ada@toff.app", role=UserRole.admin,
    )


# ── Auth helpers ────────────────────────────────────────────────────

async def bearer_for(db: AsyncSession, user: User, settings: Settings) -> dict[str, str]:
    """Open a real session for *user* and return Bearer auth headers."""
    token = await open_session(db, user, settings)
    await db.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def employee_headers(db, employee, settings) -> dict[str, str]:
    return await bearer_for(db, employee, settings)


@pytest.fixture
async def admin_headers(db, admin, settings) -> dict[str, str]:
    return await bearer_for(db, admin, settings)


@pytest.fixture
async def manager_headers(db, manager, settings) -> dict[str, str]:
    return await bearer_for(db, manager, settings)
