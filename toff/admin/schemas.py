"""Admin Pydantic v2 schemas — validation report, who-is-off, reset, audit."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from toff.common.constants import IssueType, TimeOffType


# ═════════════════════════════════════════════════════════════════════
# Validation report
# ═════════════════════════════════════════════════════════════════════


class ValidationIssue(BaseModel):
    type: IssueType
    request_id: uuid.UUID
    message: str
    details: dict[str, Any]


class UserValidationResult(BaseModel):
    user_id: uuid.UUID
    user_name: str
    issues: list[ValidationIssue]


class ValidationReport(BaseModel):
    total_users: int
    total_requests: int
    users_with_issues: int
    validation_results: list[UserValidationResult]


# ═════════════════════════════════════════════════════════════════════
# Who is off
# ═════════════════════════════════════════════════════════════════════


class WhoIsOffEntry(BaseModel):
    request_id: uuid.UUID
    user_id: uuid.UUID
    name: str
    email: str
    type: TimeOffType
    start_date: date
    end_date: date


class WhoIsOffOut(BaseModel):
    # Serialized as "date"; the attribute name avoids shadowing the type
    day: date = Field(alias="date")
    count: int
    users: list[WhoIsOffEntry]


# ═════════════════════════════════════════════════════════════════════
# Reset / audit / email probe
# ═════════════════════════════════════════════════════════════════════


class ResetDataRequest(BaseModel):
    confirm_reset: bool = False
    confirmation_phrase: str = ""


class ResetDataOut(BaseModel):
    message: str
    deleted_time_off_requests: int
    deleted_overtime_requests: int


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    action: str
    entity_type: str
    entity_id: Optional[uuid.UUID] = None
    details: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None


class EmailTestRequest(BaseModel):
    to: EmailStr


class EmailTestOut(BaseModel):
    success: bool
    to: str
    error: Optional[str] = Field(default=None)
