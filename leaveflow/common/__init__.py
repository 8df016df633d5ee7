"""Common module — shared enums and exceptions for LeaveFlow.

Only dependency-free modules are re-exported here: ``leaveflow.config``
imports the enums, so anything touching the database (audit, pagination)
is imported from its own module.
"""

from leaveflow.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ApprovalLevel,
    ApprovalOutcome,
    AttendanceStatus,
    EmployeeStatus,
    HalfDaySession,
    HolidayType,
    IssueKind,
    LeaveMode,
    NotificationType,
    RequestStatus,
    RequestType,
    UserRole,
)
from leaveflow.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    InvalidSelector,
    InvalidTransition,
    NotFoundException,
    QuotaExceeded,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Constants / Enums
    "ApprovalLevel",
    "ApprovalOutcome",
    "AttendanceStatus",
    "EmployeeStatus",
    "HalfDaySession",
    "HolidayType",
    "IssueKind",
    "LeaveMode",
    "NotificationType",
    "RequestStatus",
    "RequestType",
    "UserRole",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "InvalidSelector",
    "InvalidTransition",
    "NotFoundException",
    "QuotaExceeded",
    "ValidationException",
    "register_exception_handlers",
]
