"""Overtime router — submit, list, decide."""


import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from toff.auth.dependencies import get_current_user, require_role
from toff.common.constants import UserRole
from toff.dependencies import get_db, get_notifier
from toff.notifications.service import Notifier
from toff.overtime.schemas import (
    OvertimeDecision,
    OvertimeRequestCreate,
    OvertimeRequestOut,
    OvertimeSubmitOut,
)
from toff.overtime.service import OvertimeService
from toff.time_off.schemas import NotificationSummary
from toff.users.models import User

router = APIRouter(prefix="", tags=["overtime"])


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=list[OvertimeRequestOut])
async def list_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OvertimeService.list_requests(db, user)


# ── POST /requests ──────────────────────────────────────────────────

@router.post(
    "/requests",
    response_model=OvertimeSubmitOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_request(
    body: OvertimeRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Only accepted during the last week of the month (unless disabled)."""
    request, dispatch = await OvertimeService.submit(
        db, user, body.hours, notifier, notes=body.notes,
    )
    return OvertimeSubmitOut(
        request=OvertimeRequestOut.model_validate(request),
        notifications=NotificationSummary(
            sent=dispatch.sent, failed=dispatch.failed, skipped=dispatch.skipped,
        ),
    )


# ── PATCH /requests/{request_id} ────────────────────────────────────

@router.patch("/requests/{request_id}", response_model=OvertimeRequestOut)
async def decide_request(
    request_id: uuid.UUID,
    body: OvertimeDecision,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    return await OvertimeService.decide(db, request_id, body.status, admin, notifier)
