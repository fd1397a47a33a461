"""Overtime Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from toff.common.constants import RequestStatus
from toff.time_off.schemas import NotificationSummary
from toff.users.schemas import UserBrief


class OvertimeRequestCreate(BaseModel):
    # Two decimals to match the Numeric(6,2) column
    hours: Decimal = Field(..., gt=0, le=200, decimal_places=2)
    notes: Optional[str] = Field(default=None, max_length=2000)


class OvertimeDecision(BaseModel):
    status: RequestStatus


class OvertimeRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    user: Optional[UserBrief] = None
    hours: float
    request_date: date
    month: int
    year: int
    status: RequestStatus
    notes: Optional[str] = None
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class OvertimeSubmitOut(BaseModel):
    request: OvertimeRequestOut
    notifications: NotificationSummary


class OvertimeRollupOut(BaseModel):
    """Approved overtime for one user and year, converted to days."""

    user_id: uuid.UUID
    name: str
    email: str
    year: int
    total_hours: float
    days: float
