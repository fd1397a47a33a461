"""User Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from toff.common.constants import UserRole


class UserBrief(BaseModel):
    """Minimal user info embedded in request responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    supervisor_id: Optional[uuid.UUID] = None
    is_active: bool
    created_at: Optional[datetime] = None


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    role: UserRole = UserRole.employee
    supervisor_id: Optional[uuid.UUID] = None


class UserUpdate(BaseModel):
    """Partial update; only provided fields change."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    role: Optional[UserRole] = None
    supervisor_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None
