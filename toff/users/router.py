"""Users router — admin provisioning and role / supervisor management."""


import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from toff.auth.dependencies import require_role
from toff.common.constants import UserRole
from toff.common.pagination import PaginationParams
from toff.config import Settings
from toff.dependencies import get_app_settings, get_db
from toff.users.models import User
from toff.users.schemas import UserCreate, UserOut, UserUpdate
from toff.users.service import UserService

router = APIRouter(prefix="", tags=["users"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("")
async def list_users(
    include_inactive: bool = Query(False),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.list_users(db, pagination, include_inactive=include_inactive)


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return await UserService.create_user(db, body, admin, settings)


# ── PATCH /{user_id} ────────────────────────────────────────────────

@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.update_user(db, user_id, body, admin)
