"""Balance router — view and update yearly allotments.

Users may view and update their own ledger; admins may act on any user.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from toff.auth.dependencies import get_current_user, has_role, require_role
from toff.balance.schemas import BalanceAdjust, BalanceSummaryOut, BalanceUpdate
from toff.balance.service import BalanceService
from toff.common.constants import UserRole
from toff.common.exceptions import ForbiddenException
from toff.config import Settings
from toff.dependencies import get_app_settings, get_db
from toff.users.models import User
from toff.users.service import UserService

router = APIRouter(prefix="", tags=["balance"])


async def _resolve_target(
    db: AsyncSession,
    user: User,
    user_id: Optional[uuid.UUID],
) -> uuid.UUID:
    """Self by default; another user only for admins."""
    if user_id is None or user_id == user.id:
        return user.id
    if not has_role(user, UserRole.admin):
        raise ForbiddenException("Only admins can access another user's balance.")
    await UserService.get_user(db, user_id)
    return user_id


# ── GET /balance ────────────────────────────────────────────────────

@router.get("/balance", response_model=BalanceSummaryOut)
async def get_balance(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Return the ledger for a year, creating it with defaults on first access."""
    target = await _resolve_target(db, user, user_id)
    return await BalanceService.get_balance_summary(
        db, target, year or date.today().year, settings,
    )


# ── PUT /balance ────────────────────────────────────────────────────

@router.put("/balance", response_model=BalanceSummaryOut)
async def update_balance(
    body: BalanceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    target = await _resolve_target(db, user, body.user_id)
    year = body.year or date.today().year
    await BalanceService.set_allotments(
        db, target, year, body.changes(), settings, actor_id=user.id,
    )
    return await BalanceService.get_balance_summary(db, target, year, settings)


# ── POST /balance/adjust ────────────────────────────────────────────

@router.post("/balance/adjust", response_model=BalanceSummaryOut)
async def adjust_balance(
    body: BalanceAdjust,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Admin signed adjustment of a single category."""
    await UserService.get_user(db, body.user_id)
    await BalanceService.apply_delta(
        db,
        body.user_id,
        body.year,
        body.type,
        body.delta,
        settings,
        actor_id=admin.id,
        reason=body.reason,
    )
    return await BalanceService.get_balance_summary(db, body.user_id, body.year, settings)
