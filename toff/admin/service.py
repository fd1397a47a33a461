"""Admin service — data validation report, who-is-off, destructive reset, audit."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toff.admin.schemas import (
    AuditLogOut,
    EmailTestOut,
    ResetDataOut,
    UserValidationResult,
    ValidationIssue,
    ValidationReport,
    WhoIsOffEntry,
    WhoIsOffOut,
)
from toff.common.audit import AuditLog, create_audit_entry
from toff.common.constants import AuditAction, EntityType, IssueType, RequestStatus
from toff.common.dates import day_bounds, working_days
from toff.common.exceptions import BadRequestException, ForbiddenException
from toff.common.pagination import PaginatedResponse, PaginationParams, paginate
from toff.config import Settings
from toff.notifications import templates
from toff.notifications.mailer import Mailer
from toff.overtime.models import OvertimeRequest
from toff.time_off.models import TimeOffRequest
from toff.users.models import User

logger = logging.getLogger(__name__)


def _range(request: TimeOffRequest) -> dict[str, str]:
    return {
        "id": str(request.id),
        "start": request.start_date.isoformat(),
        "end": request.end_date.isoformat(),
        "type": request.type.value,
    }


def find_issues(requests: list[TimeOffRequest]) -> list[ValidationIssue]:
    """Check one user's approved requests for overlaps and day-count drift."""
    ordered = sorted(requests, key=lambda r: (r.start_date, r.end_date))
    issues: list[ValidationIssue] = []

    for current, following in zip(ordered, ordered[1:]):
        if current.end_date >= following.start_date:
            issues.append(
                ValidationIssue(
                    type=IssueType.overlap,
                    request_id=current.id,
                    message=(
                        f"Request {current.start_date}..{current.end_date} overlaps "
                        f"{following.start_date}..{following.end_date}."
                    ),
                    details={
                        "current_request": _range(current),
                        "next_request": _range(following),
                    },
                )
            )

    for request in ordered:
        start, _ = day_bounds(request.start_date)
        _, end = day_bounds(request.end_date)
        calculated = working_days(start, end)
        if calculated != request.working_days:
            issues.append(
                ValidationIssue(
                    type=IssueType.calculation_mismatch,
                    request_id=request.id,
                    message=(
                        f"Stored working days ({request.working_days}) differ from "
                        f"calculated ({calculated})."
                    ),
                    details={
                        "calculated": calculated,
                        "stored": request.working_days,
                        "start": request.start_date.isoformat(),
                        "end": request.end_date.isoformat(),
                    },
                )
            )
    return issues


# ═════════════════════════════════════════════════════════════════════
# AdminService
# ═════════════════════════════════════════════════════════════════════


class AdminService:
    """Read-only reports and privileged maintenance operations."""

    @staticmethod
    async def validate_time_off(db: AsyncSession) -> ValidationReport:
        """Batch check over every APPROVED request; writes nothing."""
        total_users = (
            await db.execute(select(func.count()).select_from(User))
        ).scalar_one()
        users = {
            u.id: u for u in (await db.execute(select(User))).scalars().all()
        }
        approved = (
            await db.execute(
                select(TimeOffRequest).where(TimeOffRequest.status == RequestStatus.approved)
            )
        ).scalars().all()

        by_user: dict[uuid.UUID, list[TimeOffRequest]] = defaultdict(list)
        for request in approved:
            by_user[request.user_id].append(request)

        results: list[UserValidationResult] = []
        for user_id, requests in by_user.items():
            issues = find_issues(requests)
            if issues:
                user = users.get(user_id)
                results.append(
                    UserValidationResult(
                        user_id=user_id,
                        user_name=user.name if user else str(user_id),
                        issues=issues,
                    )
                )
        results.sort(key=lambda r: r.user_name)

        return ValidationReport(
            total_users=total_users,
            total_requests=len(approved),
            users_with_issues=len(results),
            validation_results=results,
        )

    @staticmethod
    async def who_is_off(db: AsyncSession, day: Optional[date] = None) -> WhoIsOffOut:
        """APPROVED requests covering *day* (today by default)."""
        day = day or date.today()
        rows = (
            await db.execute(
                select(TimeOffRequest, User)
                .join(User, User.id == TimeOffRequest.user_id)
                .where(
                    TimeOffRequest.status == RequestStatus.approved,
                    TimeOffRequest.start_date <= day,
                    TimeOffRequest.end_date >= day,
                )
                .order_by(User.name)
            )
        ).all()
        entries = [
            WhoIsOffEntry(
                request_id=request.id,
                user_id=user.id,
                name=user.name,
                email=user.email,
                type=request.type,
                start_date=request.start_date,
                end_date=request.end_date,
            )
            for request, user in rows
        ]
        return WhoIsOffOut(date=day, count=len(entries), users=entries)

    @staticmethod
    async def reset_data(
        db: AsyncSession,
        *,
        confirm: bool,
        phrase: str,
        actor: User,
        settings: Settings,
    ) -> ResetDataOut:
        """Delete every time-off and overtime request. Irreversible."""
        if settings.is_production and not settings.ALLOW_DATA_RESET:
            raise ForbiddenException(
                "Data reset is disabled in production (set ALLOW_DATA_RESET to enable).",
            )
        if confirm is not True or phrase != settings.RESET_CONFIRMATION_PHRASE:
            raise BadRequestException(
                "Reset requires confirm_reset=true and the exact confirmation phrase.",
                errors={"confirmation_phrase": [f"Type '{settings.RESET_CONFIRMATION_PHRASE}' to confirm."]},
            )

        time_off = await db.execute(delete(TimeOffRequest))
        overtime = await db.execute(delete(OvertimeRequest))

        await create_audit_entry(
            db,
            action=AuditAction.reset,
            entity_type=EntityType.system,
            actor_id=actor.id,
            details={
                "deleted_time_off_requests": time_off.rowcount,
                "deleted_overtime_requests": overtime.rowcount,
            },
        )
        logger.warning(
            "Data reset by %s: %d time-off and %d overtime request(s) deleted",
            actor.email, time_off.rowcount, overtime.rowcount,
        )
        return ResetDataOut(
            message="All time-off and overtime requests have been deleted.",
            deleted_time_off_requests=time_off.rowcount,
            deleted_overtime_requests=overtime.rowcount,
        )

    @staticmethod
    async def list_audit(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        entity_type: Optional[EntityType] = None,
    ) -> PaginatedResponse:
        """Audit entries, newest first; *user_id* filters by actor."""
        query = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id)
        if user_id is not None:
            query = query.where(AuditLog.actor_id == user_id)
        if entity_type is not None:
            query = query.where(AuditLog.entity_type == entity_type.value)
        return await paginate(db, query, pagination, schema=AuditLogOut)

    @staticmethod
    async def send_test_email(mailer: Mailer, to: str, settings: Settings) -> EmailTestOut:
        """Probe the mail transport with one message; report instead of raising."""
        if not mailer.enabled:
            return EmailTestOut(success=False, to=to, error="Email delivery is disabled.")
        subject, html = templates.probe_message(app_url=settings.APP_URL.rstrip("/"))
        try:
            await mailer.send(to, subject, html)
        except Exception as exc:
            logger.warning("Test email to %s failed", to, exc_info=True)
            return EmailTestOut(success=False, to=to, error=str(exc))
        return EmailTestOut(success=True, to=to)
