"""Admin router — validation report, who-is-off, reset, audit, reports.

All endpoints require the ADMIN role.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from toff.admin.schemas import (
    EmailTestOut,
    EmailTestRequest,
    ResetDataOut,
    ResetDataRequest,
    ValidationReport,
    WhoIsOffOut,
)
from toff.admin.service import AdminService
from toff.auth.dependencies import require_role
from toff.common.constants import EntityType, UserRole
from toff.common.pagination import PaginationParams
from toff.common.rate_limit import RESET_DATA_LIMIT, limiter
from toff.config import Settings
from toff.dependencies import get_app_settings, get_db, get_mailer
from toff.notifications.mailer import Mailer
from toff.overtime.schemas import OvertimeRollupOut
from toff.overtime.service import OvertimeService
from toff.time_off.schemas import TimeOffRequestOut, UserUsedDaysOut
from toff.time_off.service import TimeOffService
from toff.users.models import User

router = APIRouter(prefix="", tags=["admin"])

_admin_dep = require_role(UserRole.admin)


# ═══════════════════════════════════════════════════════════════════
# DATA QUALITY
# ═══════════════════════════════════════════════════════════════════

@router.get("/validate-time-off", response_model=ValidationReport)
async def validate_time_off(
    _user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    """Flag overlapping approved requests and stored day-count mismatches."""
    return await AdminService.validate_time_off(db)


@router.get("/who-is-off", response_model=WhoIsOffOut)
async def who_is_off(
    day: Optional[date] = Query(None, alias="date"),
    _user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.who_is_off(db, day)


# ═══════════════════════════════════════════════════════════════════
# REPORTS
# ═══════════════════════════════════════════════════════════════════

@router.get("/used-days", response_model=list[UserUsedDaysOut])
async def used_days_all(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    _user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    return await TimeOffService.get_used_days_all(db, year or date.today().year)


@router.get("/requests/{user_id}", response_model=list[TimeOffRequestOut])
async def user_requests(
    user_id: uuid.UUID,
    _user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    """Every time-off request of one user, newest first."""
    return await TimeOffService.list_for_user(db, user_id)


@router.get("/overtime/rollup", response_model=list[OvertimeRollupOut])
async def overtime_rollup(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user_id: Optional[uuid.UUID] = Query(None),
    _user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return await OvertimeService.rollup(
        db, year or date.today().year, settings.HOURS_PER_DAY, user_id,
    )


# ═══════════════════════════════════════════════════════════════════
# AUDIT
# ═══════════════════════════════════════════════════════════════════

@router.get("/audit")
async def list_audit(
    user_id: Optional[uuid.UUID] = Query(None),
    entity_type: Optional[EntityType] = Query(None),
    pagination: PaginationParams = Depends(),
    _user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.list_audit(
        db, pagination, user_id=user_id, entity_type=entity_type,
    )


# ═══════════════════════════════════════════════════════════════════
# MAINTENANCE
# ═══════════════════════════════════════════════════════════════════

@router.post("/reset-data", response_model=ResetDataOut)
@limiter.limit(RESET_DATA_LIMIT)
async def reset_data(
    request: Request,
    body: ResetDataRequest,
    admin: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Delete all time-off and overtime requests. Irreversible."""
    return await AdminService.reset_data(
        db,
        confirm=body.confirm_reset,
        phrase=body.confirmation_phrase,
        actor=admin,
        settings=settings,
    )


@router.post("/email/test", response_model=EmailTestOut)
async def send_test_email(
    body: EmailTestRequest,
    _user: User = Depends(_admin_dep),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_app_settings),
):
    return await AdminService.send_test_email(mailer, body.to, settings)
