"""Balance Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from toff.common.constants import TimeOffType


class BalanceOut(BaseModel):
    """Raw ledger row (allotments only)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    year: int
    vacation_days: float
    sick_days: float
    paid_leave: float
    personal_days: float


class CategoryBalance(BaseModel):
    type: TimeOffType
    allotted: float
    used: int
    remaining: float


class BalanceSummaryOut(BalanceOut):
    """Ledger row plus derived usage per category."""

    categories: list[CategoryBalance]


class BalanceUpdate(BaseModel):
    """``PUT /time-off/balance`` body; omitted counters are left unchanged."""

    user_id: Optional[uuid.UUID] = None
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    vacation_days: Optional[float] = None
    sick_days: Optional[float] = None
    paid_leave: Optional[float] = None
    personal_days: Optional[float] = None

    @model_validator(mode="after")
    def _at_least_one_counter(self) -> "BalanceUpdate":
        if not self.changes():
            raise ValueError("Provide at least one balance counter to update.")
        return self

    def changes(self) -> dict[TimeOffType, float]:
        fields = {
            TimeOffType.vacation: self.vacation_days,
            TimeOffType.sick: self.sick_days,
            TimeOffType.paid_leave: self.paid_leave,
            TimeOffType.personal: self.personal_days,
        }
        return {t: v for t, v in fields.items() if v is not None}


class BalanceAdjust(BaseModel):
    """Signed adjustment of one category's allotment."""

    user_id: uuid.UUID
    year: int = Field(..., ge=2000, le=2100)
    type: TimeOffType
    delta: float
    reason: str = Field(..., min_length=1, max_length=500)
