"""Time-off service layer — submission, decisions, listings, used days.

Business logic:
  - PENDING → APPROVED | REJECTED; terminal states never change
  - Decisions are a single conditional UPDATE guarded by status = PENDING,
    so of two racing deciders exactly one wins
  - Used days are derived from approved requests, never stored
  - The transition is committed before any notification is sent
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from toff.auth.dependencies import has_role
from toff.balance.service import BalanceService
from toff.common.audit import create_audit_entry
from toff.common.constants import (
    BALANCE_FIELDS,
    CAPPED_TYPES,
    TERMINAL_STATUSES,
    AuditAction,
    EntityType,
    RequestStatus,
    UserRole,
)
from toff.common.dates import working_days
from toff.common.exceptions import (
    BadRequestException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
)
from toff.notifications.service import DispatchResult, Notifier
from toff.time_off.models import TimeOffRequest
from toff.time_off.schemas import (
    RequestScope,
    TimeOffRequestCreate,
    UsedDaysOut,
    UserUsedDaysOut,
)
from toff.time_off.usage import empty_usage, used_days, used_days_by_user
from toff.users.models import User
from toff.users.service import UserService

logger = logging.getLogger(__name__)


def usage_out(year: int, usage: dict) -> dict:
    return {"year": year, **{BALANCE_FIELDS[t]: days for t, days in usage.items()}}


# ═════════════════════════════════════════════════════════════════════
# TimeOffService
# ═════════════════════════════════════════════════════════════════════


class TimeOffService:
    """Async time-off request operations."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _load(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        refresh: bool = False,
    ) -> Optional[TimeOffRequest]:
        query = (
            select(TimeOffRequest)
            .where(TimeOffRequest.id == request_id)
            .options(selectinload(TimeOffRequest.user))
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
        data: TimeOffRequestCreate,
        notifier: Notifier,
    ) -> tuple[TimeOffRequest, DispatchResult]:
        """Create a PENDING request, commit, then notify requester and admins."""
        if data.start_date > data.end_date:
            raise BadRequestException(
                "Start date must be on or before end date.",
                errors={"end_date": ["Must not be before start_date."]},
            )

        request = TimeOffRequest(
            user_id=user.id,
            start_date=data.start_date,
            end_date=data.end_date,
            type=data.type,
            status=RequestStatus.pending,
            reason=data.reason,
            working_days=working_days(data.start_date, data.end_date),
        )
        db.add(request)
        await db.flush()

        await create_audit_entry(
            db,
            action=AuditAction.create,
            entity_type=EntityType.time_off_request,
            entity_id=request.id,
            actor_id=user.id,
            details={
                "type": data.type.value,
                "start_date": data.start_date.isoformat(),
                "end_date": data.end_date.isoformat(),
                "working_days": request.working_days,
            },
        )
        admin_emails = await UserService.admin_emails(db, notifier.settings)
        await db.commit()
        logger.info(
            "Time-off request %s submitted by %s (%s, %d day(s))",
            request.id, user.email, data.type.value, request.working_days,
        )

        request = await TimeOffService._load(db, request.id, refresh=True)
        dispatch = await notifier.time_off_submitted(request, user, admin_emails)
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
        *,
        note: Optional[str] = None,
    ) -> TimeOffRequest:
        """Approve or reject a PENDING request (ADMIN only)."""
        if not has_role(actor, UserRole.admin):
            raise ForbiddenException("Only admins can decide time-off requests.")
        if new_status not in TERMINAL_STATUSES:
            raise BadRequestException(
                "Status must be APPROVED or REJECTED.",
                errors={"status": [f"'{new_status.value}' is not a decision."]},
            )

        request = await TimeOffService._load(db, request_id)
        if request is None:
            raise NotFoundException("TimeOffRequest", request_id)
        if request.status != RequestStatus.pending:
            raise ConflictError(
                f"Time-off request is already {request.status.value}.",
                errors={"status": [request.status.value]},
            )

        if new_status == RequestStatus.approved and request.type in CAPPED_TYPES:
            remaining = await BalanceService.remaining(
                db, request.user_id, request.start_date.year, request.type,
                notifier.settings,
            )
            if request.working_days > remaining:
                raise BadRequestException(
                    f"Insufficient {request.type.value} balance: "
                    f"{remaining} day(s) remaining, {request.working_days} requested.",
                )

        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(TimeOffRequest)
            .where(
                TimeOffRequest.id == request_id,
                TimeOffRequest.status == RequestStatus.pending,
            )
            .values(
                status=new_status,
                reviewed_by=actor.id,
                reviewed_at=now,
                review_note=note,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Time-off request was decided by another reviewer.")

        await create_audit_entry(
            db,
            action=AuditAction.approve if new_status == RequestStatus.approved else AuditAction.reject,
            entity_type=EntityType.time_off_request,
            entity_id=request_id,
            actor_id=actor.id,
            details={"old_status": RequestStatus.pending.value, "new_status": new_status.value, "note": note},
        )
        await db.commit()
        logger.info("Time-off request %s %s by %s", request_id, new_status.value, actor.email)

        request = await TimeOffService._load(db, request_id, refresh=True)
        dispatch = await notifier.time_off_decided(request, request.user, note)
        if dispatch.failed:
            logger.warning("Decision email for time-off request %s was not delivered", request_id)
        return request

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        user: User,
        scope: Optional[RequestScope] = None,
    ) -> Sequence[TimeOffRequest]:
        """EMPLOYEE → own; ADMIN default → all PENDING; ``team`` → direct reports."""
        is_admin = has_role(user, UserRole.admin)
        if scope is None:
            scope = "pending" if is_admin else "mine"

        query = select(TimeOffRequest).options(selectinload(TimeOffRequest.user))
        if scope == "mine":
            query = query.where(TimeOffRequest.user_id == user.id)
        elif scope == "team":
            if not has_role(user, UserRole.manager):
                raise ForbiddenException("Only managers can list team requests.")
            reports = select(User.id).where(User.supervisor_id == user.id)
            query = query.where(TimeOffRequest.user_id.in_(reports))
        elif scope == "pending":
            if not is_admin:
                raise ForbiddenException("Only admins can list all pending requests.")
            query = query.where(TimeOffRequest.status == RequestStatus.pending)
        else:
            if not is_admin:
                raise ForbiddenException("Only admins can list all requests.")

        query = query.order_by(TimeOffRequest.created_at.desc(), TimeOffRequest.start_date.desc())
        return (await db.execute(query)).scalars().all()

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: uuid.UUID) -> Sequence[TimeOffRequest]:
        await UserService.get_user(db, user_id)
        result = await db.execute(
            select(TimeOffRequest)
            .where(TimeOffRequest.user_id == user_id)
            .options(selectinload(TimeOffRequest.user))
            .order_by(TimeOffRequest.start_date.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def get_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        user: User,
    ) -> TimeOffRequest:
        request = await TimeOffService._load(db, request_id)
        if request is None:
            raise NotFoundException("TimeOffRequest", request_id)
        if request.user_id != user.id and not has_role(user, UserRole.admin):
            raise ForbiddenException("You can only view your own time-off requests.")
        return request

    @staticmethod
    async def get_used_days(db: AsyncSession, user_id: uuid.UUID, year: int) -> UsedDaysOut:
        return UsedDaysOut(**usage_out(year, await used_days(db, user_id, year)))

    @staticmethod
    async def get_used_days_all(db: AsyncSession, year: int) -> list[UserUsedDaysOut]:
        """Used days for every active user (zeros included)."""
        by_user = await used_days_by_user(db, year)
        users = (
            await db.execute(
                select(User).where(User.is_active.is_(True)).order_by(User.name, User.email)
            )
        ).scalars().all()
        return [
            UserUsedDaysOut(
                user_id=u.id,
                name=u.name,
                email=u.email,
                **usage_out(year, by_user.get(u.id, empty_usage())),
            )
            for u in users
        ]
