"""Time-off Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Decision → request bodies (write)
  - *Out                → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from toff.common.constants import RequestStatus, TimeOffType
from toff.users.schemas import UserBrief


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class TimeOffRequestCreate(BaseModel):
    """Submit a time-off request; date order is checked by the service.

    Accepts ``startDate`` / ``endDate`` as well as the snake_case names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start_date: date
    end_date: date
    type: TimeOffType
    reason: Optional[str] = Field(default=None, max_length=2000)


class TimeOffDecision(BaseModel):
    status: RequestStatus
    # ``reason`` is the name clients send; stored as the review note
    note: Optional[str] = Field(
        default=None,
        max_length=2000,
        validation_alias=AliasChoices("note", "reason"),
    )


class TimeOffRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    user: Optional[UserBrief] = None
    start_date: date
    end_date: date
    type: TimeOffType
    status: RequestStatus
    reason: Optional[str] = None
    working_days: int
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    review_note: Optional[str] = None
    created_at: Optional[datetime] = None


class NotificationSummary(BaseModel):
    sent: int = 0
    failed: int = 0
    skipped: int = 0


class TimeOffSubmitOut(BaseModel):
    request: TimeOffRequestOut
    notifications: NotificationSummary


RequestScope = Literal["mine", "team", "pending", "all"]


# ═════════════════════════════════════════════════════════════════════
# Used days
# ═════════════════════════════════════════════════════════════════════


class UsedDaysOut(BaseModel):
    year: int
    vacation_days: int = 0
    sick_days: int = 0
    paid_leave: int = 0
    personal_days: int = 0


class UserUsedDaysOut(UsedDaysOut):
    user_id: uuid.UUID
    name: str
    email: str
