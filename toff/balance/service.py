"""Balance service — yearly allotment ledger with derived usage.

Business logic:
  - Lazy creation of the (user, year) row seeded with the default allotment
  - Signed adjustments that never drive an allotment negative, nor below the
    days already used for capped categories (vacation, paid leave, personal)
  - Summary of allotment, used and remaining days per category
"""

from __future__ import annotations

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from toff.balance.models import TimeOffBalance
from toff.balance.schemas import BalanceSummaryOut, CategoryBalance
from toff.common.audit import create_audit_entry
from toff.common.constants import (
    BALANCE_FIELDS,
    CAPPED_TYPES,
    AuditAction,
    EntityType,
    TimeOffType,
)
from toff.common.exceptions import BadRequestException
from toff.config import Settings
from toff.time_off.usage import used_days

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float]

# Scale of the Numeric(6,2) ledger columns
LEDGER_QUANTUM = Decimal("0.01")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_ledger_scale(value: Number) -> Decimal:
    """Round *value* half-up to the two decimals a balance column stores."""
    return _to_decimal(value).quantize(LEDGER_QUANTUM, rounding=ROUND_HALF_UP)


def default_allotment(settings: Settings) -> dict[str, Decimal]:
    return {
        "vacation_days": Decimal(settings.DEFAULT_VACATION_DAYS),
        "sick_days": Decimal(settings.DEFAULT_SICK_DAYS),
        "paid_leave": Decimal(settings.DEFAULT_PAID_LEAVE),
        "personal_days": Decimal(settings.DEFAULT_PERSONAL_DAYS),
    }


# ═════════════════════════════════════════════════════════════════════
# BalanceService
# ═════════════════════════════════════════════════════════════════════


class BalanceService:
    """Async ledger operations."""

    @staticmethod
    async def _find(
        db: AsyncSession, user_id: uuid.UUID, year: int,
    ) -> Optional[TimeOffBalance]:
        result = await db.execute(
            select(TimeOffBalance).where(
                TimeOffBalance.user_id == user_id,
                TimeOffBalance.year == year,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def get_or_create_balance(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        settings: Settings,
    ) -> TimeOffBalance:
        """Return the (user, year) row, creating it with the default allotment."""
        balance = await BalanceService._find(db, user_id, year)
        if balance is not None:
            return balance

        balance = TimeOffBalance(user_id=user_id, year=year, **default_allotment(settings))
        try:
            async with db.begin_nested():
                db.add(balance)
                await db.flush()
        except IntegrityError:
            # A concurrent request created the row first; use theirs
            logger.info("Balance for user %s/%s created concurrently; re-reading", user_id, year)
            existing = await BalanceService._find(db, user_id, year)
            if existing is None:
                raise
            return existing

        logger.info("Created default balance for user %s, year %s", user_id, year)
        return balance

    @staticmethod
    def _validate(
        category: TimeOffType,
        new_value: Decimal,
        used: int,
    ) -> None:
        field = BALANCE_FIELDS[category]
        if new_value < 0:
            raise BadRequestException(
                f"{field} cannot be negative.",
                errors={field: [f"Resulting allotment {new_value} is below zero."]},
            )
        if category in CAPPED_TYPES and new_value < used:
            raise BadRequestException(
                f"{field} cannot be lower than the {used} day(s) already used.",
                errors={field: [f"Resulting allotment {new_value} is below used days ({used})."]},
            )

    @staticmethod
    async def apply_delta(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        category: TimeOffType,
        delta: Number,
        settings: Settings,
        *,
        actor_id: Optional[uuid.UUID] = None,
        reason: Optional[str] = None,
    ) -> TimeOffBalance:
        """Add a signed *delta* to one category's allotment (all-or-nothing)."""
        balance = await BalanceService.get_or_create_balance(db, user_id, year, settings)
        field = BALANCE_FIELDS[category]

        # Rounded before validation so the stored value and the audit entry agree
        amount = to_ledger_scale(delta)
        previous = _to_decimal(getattr(balance, field))
        new_value = previous + amount
        used = (await used_days(db, user_id, year))[category]
        BalanceService._validate(category, new_value, used)

        setattr(balance, field, new_value)
        await db.flush()

        await create_audit_entry(
            db,
            action=AuditAction.balance_adjust,
            entity_type=EntityType.balance,
            entity_id=balance.id,
            actor_id=actor_id,
            details={
                "user_id": str(user_id),
                "year": year,
                "field": field,
                "previous": str(previous),
                "new": str(new_value),
                "delta": str(amount),
                "reason": reason,
            },
        )
        return balance

    @staticmethod
    async def set_allotments(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        changes: dict[TimeOffType, Number],
        settings: Settings,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> TimeOffBalance:
        """Overwrite the given counters; every value is validated before any is applied."""
        balance = await BalanceService.get_or_create_balance(db, user_id, year, settings)
        used = await used_days(db, user_id, year)

        targets = {category: to_ledger_scale(value) for category, value in changes.items()}
        for category, value in targets.items():
            BalanceService._validate(category, value, used[category])

        previous: dict[str, str] = {}
        new: dict[str, str] = {}
        for category, value in targets.items():
            field = BALANCE_FIELDS[category]
            previous[field] = str(getattr(balance, field))
            new[field] = str(value)
            setattr(balance, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action=AuditAction.balance_adjust,
            entity_type=EntityType.balance,
            entity_id=balance.id,
            actor_id=actor_id,
            details={"user_id": str(user_id), "year": year, "previous": previous, "new": new},
        )
        return balance

    @staticmethod
    async def get_balance_summary(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        settings: Settings,
    ) -> BalanceSummaryOut:
        """Allotment plus derived used / remaining days per category."""
        balance = await BalanceService.get_or_create_balance(db, user_id, year, settings)
        used = await used_days(db, user_id, year)

        categories = []
        for category, field in BALANCE_FIELDS.items():
            allotted = _to_decimal(getattr(balance, field))
            categories.append(
                CategoryBalance(
                    type=category,
                    allotted=allotted,
                    used=used[category],
                    remaining=allotted - used[category],
                )
            )

        return BalanceSummaryOut(
            id=balance.id,
            user_id=balance.user_id,
            year=balance.year,
            vacation_days=balance.vacation_days,
            sick_days=balance.sick_days,
            paid_leave=balance.paid_leave,
            personal_days=balance.personal_days,
            categories=categories,
        )

    @staticmethod
    async def remaining(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        category: TimeOffType,
        settings: Settings,
    ) -> Decimal:
        balance = await BalanceService.get_or_create_balance(db, user_id, year, settings)
        used = (await used_days(db, user_id, year))[category]
        return _to_decimal(getattr(balance, BALANCE_FIELDS[category])) - used
