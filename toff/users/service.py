"""User service — admin provisioning, role / supervisor changes, lookups."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from toff.auth.service import revoke_all_sessions
from toff.balance.service import BalanceService
from toff.common.audit import create_audit_entry
from toff.common.constants import AuditAction, EntityType, UserRole
from toff.common.exceptions import BadRequestException, ConflictError, NotFoundException
from toff.common.pagination import PaginatedResponse, PaginationParams, paginate
from toff.config import Settings
from toff.users.models import User
from toff.users.schemas import UserCreate, UserOut, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Async user operations."""

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    @staticmethod
    async def admin_emails(db: AsyncSession, settings: Settings) -> list[str]:
        """Recipients for admin notifications: ``ADMIN_EMAIL`` or every active admin."""
        if settings.ADMIN_EMAIL:
            return [settings.ADMIN_EMAIL]
        result = await db.execute(
            select(User.email)
            .where(User.role == UserRole.admin, User.is_active.is_(True))
            .order_by(User.email)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_users(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        include_inactive: bool = False,
    ) -> PaginatedResponse:
        query = select(User).order_by(User.name, User.email)
        if not include_inactive:
            query = query.where(User.is_active.is_(True))
        return await paginate(db, query, pagination, schema=UserOut)

    @staticmethod
    async def create_user(
        db: AsyncSession,
        data: UserCreate,
        actor: User,
        settings: Settings,
    ) -> User:
        """Provision a user and seed the current year's balance."""
        email = data.email.lower()
        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar() is not None:
            raise ConflictError.duplicate("email", email)

        if data.supervisor_id is not None:
            await UserService.get_user(db, data.supervisor_id)

        user = User(
            name=data.name.strip(),
            email=email,
            role=data.role,
            supervisor_id=data.supervisor_id,
        )
        db.add(user)
        await db.flush()

        await BalanceService.get_or_create_balance(db, user.id, date.today().year, settings)

        await create_audit_entry(
            db,
            action=AuditAction.create,
            entity_type=EntityType.user,
            entity_id=user.id,
            actor_id=actor.id,
            details={"email": user.email, "role": user.role.value},
        )
        return user

    @staticmethod
    async def update_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: UserUpdate,
        actor: User,
    ) -> User:
        """Apply a partial update; role changes are admin-only (enforced by the router)."""
        user = await UserService.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)

        if "supervisor_id" in changes and changes["supervisor_id"] is not None:
            if changes["supervisor_id"] == user.id:
                raise BadRequestException(
                    "A user cannot be their own supervisor.",
                    errors={"supervisor_id": ["Must differ from the user id."]},
                )
            await UserService.get_user(db, changes["supervisor_id"])

        old: dict[str, Optional[str]] = {}
        new: dict[str, Optional[str]] = {}
        for field, value in changes.items():
            if field == "name" and value is None:
                continue
            if field in ("role", "is_active") and value is None:
                continue
            if field == "name":
                value = value.strip()
            current = getattr(user, field)
            if current == value:
                continue
            old[field] = _jsonable(current)
            new[field] = _jsonable(value)
            setattr(user, field, value)

        if new:
            await db.flush()
            await create_audit_entry(
                db,
                action=AuditAction.update,
                entity_type=EntityType.user,
                entity_id=user.id,
                actor_id=actor.id,
                details={"old": old, "new": new},
            )
            if "is_active" in new and not user.is_active:
                revoked = await revoke_all_sessions(db, user.id)
                logger.info("Deactivated user %s; revoked %d session(s)", user.email, revoked)
            await db.refresh(user)
        return user


def _jsonable(value: object) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, UserRole):
        return value.value
    return str(value)
