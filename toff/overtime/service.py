"""Overtime service layer — submission window, decisions with ledger credit, rollup.

Approving overtime credits ``hours / HOURS_PER_DAY`` vacation days to the
ledger for the request's year, in the same transaction as the status change.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence, Union

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from toff.auth.dependencies import has_role
from toff.balance.service import BalanceService, to_ledger_scale
from toff.common.audit import create_audit_entry
from toff.common.constants import (
    TERMINAL_STATUSES,
    AuditAction,
    EntityType,
    RequestStatus,
    TimeOffType,
    UserRole,
)
from toff.common.dates import days_until_month_end, is_last_week_of_month
from toff.common.exceptions import (
    BadRequestException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
)
from toff.notifications.service import DispatchResult, Notifier
from toff.overtime.models import OvertimeRequest
from toff.overtime.schemas import OvertimeRollupOut
from toff.users.models import User
from toff.users.service import UserService

logger = logging.getLogger(__name__)


def hours_to_days(hours: Decimal, hours_per_day: int) -> Decimal:
    """Convert overtime *hours* to vacation days at ledger precision."""
    return to_ledger_scale(Decimal(hours) / Decimal(hours_per_day))


# ═════════════════════════════════════════════════════════════════════
# OvertimeService
# ═════════════════════════════════════════════════════════════════════


class OvertimeService:
    """Async overtime request operations."""

    @staticmethod
    async def _load(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        refresh: bool = False,
    ) -> Optional[OvertimeRequest]:
        query = (
            select(OvertimeRequest)
            .where(OvertimeRequest.id == request_id)
            .options(selectinload(OvertimeRequest.user))
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        return (await db.execute(query)).scalars().first()

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit(
        db: AsyncSession,
        user: User,
        hours: Union[Decimal, float],
        notifier: Notifier,
        *,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> tuple[OvertimeRequest, DispatchResult]:
        """Create a PENDING overtime request bucketed by *today*'s month/year."""
        settings = notifier.settings
        today = today or date.today()

        amount = Decimal(str(hours))
        if amount <= 0:
            raise BadRequestException(
                "Hours must be greater than zero.",
                errors={"hours": ["Must be greater than 0."]},
            )
        if amount != to_ledger_scale(amount):
            raise BadRequestException(
                "Hours can have at most two decimal places.",
                errors={"hours": [f"{amount} has more than two decimal places."]},
            )
        if settings.OVERTIME_LAST_WEEK_ONLY and not is_last_week_of_month(today):
            raise ForbiddenException(
                "Overtime requests can only be submitted during the last week "
                f"of the month ({days_until_month_end(today)} day(s) until month end)."
            )

        request = OvertimeRequest(
            user_id=user.id,
            hours=amount,
            request_date=today,
            month=today.month,
            year=today.year,
            status=RequestStatus.pending,
            notes=notes,
        )
        db.add(request)
        await db.flush()

        await create_audit_entry(
            db,
            action=AuditAction.create,
            entity_type=EntityType.overtime_request,
            entity_id=request.id,
            actor_id=user.id,
            details={"hours": str(amount), "month": today.month, "year": today.year},
        )
        admin_emails = await UserService.admin_emails(db, settings)
        await db.commit()
        logger.info("Overtime request %s submitted by %s (%s h)", request.id, user.email, amount)

        request = await OvertimeService._load(db, request.id, refresh=True)
        dispatch = await notifier.overtime_submitted(request, user, admin_emails)
        return request, dispatch

    # ─────────────────────────────────────────────────────────────────
    # Decide
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def decide(
        db: AsyncSession,
        request_id: uuid.UUID,
        new_status: RequestStatus,
        actor: User,
        notifier: Notifier,
    ) -> OvertimeRequest:
        """Approve (crediting vacation days) or reject a PENDING request."""
        settings = notifier.settings
        if not has_role(actor, UserRole.admin):
            raise ForbiddenException("Only admins can decide overtime requests.")
        if new_status not in TERMINAL_STATUSES:
            raise BadRequestException(
                "Status must be APPROVED or REJECTED.",
                errors={"status": [f"'{new_status.value}' is not a decision."]},
            )

        request = await OvertimeService._load(db, request_id)
        if request is None:
            raise NotFoundException("OvertimeRequest", request_id)
        if request.status != RequestStatus.pending:
            raise ConflictError(
                f"Overtime request is already {request.status.value}.",
                errors={"status": [request.status.value]},
            )

        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(OvertimeRequest)
            .where(
                OvertimeRequest.id == request_id,
                OvertimeRequest.status == RequestStatus.pending,
            )
            .values(status=new_status, reviewed_by=actor.id, reviewed_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        # The losing racer stops here, before any ledger credit
        if result.rowcount != 1:
            raise ConflictError("Overtime request was decided by another reviewer.")

        details = {"old_status": RequestStatus.pending.value, "new_status": new_status.value}
        if new_status == RequestStatus.approved:
            credit = hours_to_days(request.hours, settings.HOURS_PER_DAY)
            await BalanceService.apply_delta(
                db,
                request.user_id,
                request.year,
                TimeOffType.vacation,
                credit,
                settings,
                actor_id=actor.id,
                reason=f"Overtime {request.id}: {request.hours} h",
            )
            details["credited_days"] = str(credit)

        await create_audit_entry(
            db,
            action=AuditAction.approve if new_status == RequestStatus.approved else AuditAction.reject,
            entity_type=EntityType.overtime_request,
            entity_id=request_id,
            actor_id=actor.id,
            details=details,
        )
        await db.commit()
        logger.info("Overtime request %s %s by %s", request_id, new_status.value, actor.email)

        request = await OvertimeService._load(db, request_id, refresh=True)
        dispatch = await notifier.overtime_decided(request, request.user)
        if dispatch.failed:
            logger.warning("Decision email for overtime request %s was not delivered", request_id)
        return request

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_requests(db: AsyncSession, user: User) -> Sequence[OvertimeRequest]:
        """ADMIN → all PENDING; others → own."""
        query = select(OvertimeRequest).options(selectinload(OvertimeRequest.user))
        if has_role(user, UserRole.admin):
            query = query.where(OvertimeRequest.status == RequestStatus.pending)
        else:
            query = query.where(OvertimeRequest.user_id == user.id)
        query = query.order_by(OvertimeRequest.created_at.desc())
        return (await db.execute(query)).scalars().all()

    @staticmethod
    async def rollup(
        db: AsyncSession,
        year: int,
        hours_per_day: int,
        user_id: Optional[uuid.UUID] = None,
    ) -> list[OvertimeRollupOut]:
        """Approved overtime hours per user for *year*, converted to days."""
        total = func.sum(OvertimeRequest.hours).label("total_hours")
        query = (
            select(User.id, User.name, User.email, total)
            .select_from(OvertimeRequest)
            .join(User, User.id == OvertimeRequest.user_id)
            .where(
                OvertimeRequest.status == RequestStatus.approved,
                OvertimeRequest.year == year,
            )
            .group_by(User.id, User.name, User.email)
            .order_by(User.name)
        )
        if user_id is not None:
            query = query.where(OvertimeRequest.user_id == user_id)

        return [
            OvertimeRollupOut(
                user_id=uid,
                name=name,
                email=email,
                year=year,
                total_hours=Decimal(str(hours)),
                days=hours_to_days(Decimal(str(hours)), hours_per_day),
            )
            for uid, name, email, hours in (await db.execute(query)).all()
        ]
