"""Common module — shared utilities for TOFF."""

from toff.common.audit import AuditLog, create_audit_entry
from toff.common.constants import (
    BALANCE_FIELDS,
    CAPPED_TYPES,
    DATE_FORMAT,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    TERMINAL_STATUSES,
    AuditAction,
    EntityType,
    IssueType,
    RequestStatus,
    TimeOffType,
    UserRole,
)
from toff.common.dates import day_bounds, is_last_week_of_month, working_days
from toff.common.exceptions import (
    AppException,
    BadRequestException,
    ConflictError,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from toff.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditLog",
    "create_audit_entry",
    # Constants / Enums
    "AuditAction",
    "EntityType",
    "IssueType",
    "RequestStatus",
    "TimeOffType",
    "UserRole",
    "BALANCE_FIELDS",
    "CAPPED_TYPES",
    "TERMINAL_STATUSES",
    "DATE_FORMAT",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Dates
    "day_bounds",
    "is_last_week_of_month",
    "working_days",
    # Exceptions
    "AppException",
    "BadRequestException",
    "ConflictError",
    "ForbiddenException",
    "InternalServerException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
