"""Enums and constants for TOFF — values match the stored column values."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "EMPLOYEE"
    manager = "MANAGER"
    admin = "ADMIN"


# ── Requests ────────────────────────────────────────────────────────

class RequestStatus(str, enum.Enum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"


TERMINAL_STATUSES = frozenset({RequestStatus.approved, RequestStatus.rejected})


class TimeOffType(str, enum.Enum):
    vacation = "VACATION"
    sick = "SICK"
    paid_leave = "PAID_LEAVE"
    personal = "PERSONAL"


# Ledger column holding the allotment for each time-off type
BALANCE_FIELDS: dict[TimeOffType, str] = {
    TimeOffType.vacation: "vacation_days",
    TimeOffType.sick: "sick_days",
    TimeOffType.paid_leave: "paid_leave",
    TimeOffType.personal: "personal_days",
}

# Categories whose usage may not exceed the allotment
CAPPED_TYPES = frozenset({
    TimeOffType.vacation,
    TimeOffType.paid_leave,
    TimeOffType.personal,
})


# ── Audit ───────────────────────────────────────────────────────────

class AuditAction(str, enum.Enum):
    create = "create"
    update = "update"
    approve = "approve"
    reject = "reject"
    balance_adjust = "balance_adjust"
    reset = "reset"


class EntityType(str, enum.Enum):
    user = "user"
    balance = "balance"
    time_off_request = "time_off_request"
    overtime_request = "overtime_request"
    system = "system"


# ── Validation report ───────────────────────────────────────────────

class IssueType(str, enum.Enum):
    overlap = "OVERLAP"
    calculation_mismatch = "CALCULATION_MISMATCH"


# ── Misc constants ──────────────────────────────────────────────────

DATE_FORMAT = "%b %d, %Y"          # Mar 17, 2025
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
