"""Time-off router — submit, list, view, decide, used days.

All endpoints require authentication; decisions are ADMIN only.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from toff.auth.dependencies import get_current_user, require_role
from toff.common.constants import UserRole
from toff.dependencies import get_db, get_notifier
from toff.notifications.service import Notifier
from toff.time_off.schemas import (
    NotificationSummary,
    RequestScope,
    TimeOffDecision,
    TimeOffRequestCreate,
    TimeOffRequestOut,
    TimeOffSubmitOut,
    UsedDaysOut,
)
from toff.time_off.service import TimeOffService
from toff.users.models import User

router = APIRouter(prefix="", tags=["time-off"])


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=list[TimeOffRequestOut])
async def list_requests(
    scope: Optional[RequestScope] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Own requests; admins see all pending by default; ``scope=team`` for direct reports."""
    return await TimeOffService.list_requests(db, user, scope)


# ── POST /requests ──────────────────────────────────────────────────

@router.post(
    "/requests",
    response_model=TimeOffSubmitOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_request(
    body: TimeOffRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    request, dispatch = await TimeOffService.submit(db, user, body, notifier)
    return TimeOffSubmitOut(
        request=TimeOffRequestOut.model_validate(request),
        notifications=NotificationSummary(
            sent=dispatch.sent, failed=dispatch.failed, skipped=dispatch.skipped,
        ),
    )


# ── GET /requests/{request_id} ──────────────────────────────────────

@router.get("/requests/{request_id}", response_model=TimeOffRequestOut)
async def get_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TimeOffService.get_request(db, request_id, user)


# ── PATCH /requests/{request_id} ────────────────────────────────────

@router.patch("/requests/{request_id}", response_model=TimeOffRequestOut)
async def decide_request(
    request_id: uuid.UUID,
    body: TimeOffDecision,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    return await TimeOffService.decide(
        db, request_id, body.status, admin, notifier, note=body.note,
    )


# ── GET /used-days ──────────────────────────────────────────────────

@router.get("/used-days", response_model=UsedDaysOut)
async def used_days(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TimeOffService.get_used_days(db, user.id, year or date.today().year)
