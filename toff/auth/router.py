"""Auth router — current user profile and logout."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toff.auth.dependencies import extract_bearer, get_current_user
from toff.auth.schemas import LogoutResponse, MeResponse
from toff.auth.service import revoke_session
from toff.dependencies import get_db
from toff.users.models import User

router = APIRouter(prefix="", tags=["auth"])


# ── GET /me: current user profile ───────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reports = (
        await db.execute(
            select(func.count()).select_from(User).where(
                User.supervisor_id == user.id,
                User.is_active.is_(True),
            )
        )
    ).scalar_one()
    return MeResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        supervisor_id=user.supervisor_id,
        direct_reports_count=reports,
    )


# ── POST /logout: revoke current session ────────────────────────────

@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await revoke_session(db, extract_bearer(request))
    return LogoutResponse()
