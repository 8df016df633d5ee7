"""Enums and constants for LeaveFlow — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum
from datetime import date, time


# ── Employee / Roster ───────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr = "hr"
    superadmin = "superadmin"
    # Auxiliary roles, employee-equivalent for routing and attendance
    intern = "intern"
    di = "di"
    dm = "dm"
    associate = "associate"


class EmployeeStatus(str, enum.Enum):
    active = "active"
    deactivated = "deactivated"


# ── Requests ────────────────────────────────────────────────────────

class RequestType(str, enum.Enum):
    leave = "leave"
    halfday = "halfday"
    permission = "permission"
    od = "od"


class LeaveMode(str, enum.Enum):
    casual = "casual"
    unpaid = "unpaid"


class HalfDaySession(str, enum.Enum):
    morning = "morning"
    afternoon = "afternoon"


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ApprovalLevel(str, enum.Enum):
    manager = "manager"
    hr = "hr"
    superadmin = "superadmin"


class ApprovalOutcome(str, enum.Enum):
    approved = "approved"
    rejected = "rejected"


class IssueKind(str, enum.Enum):
    missing_field = "missing_field"
    invalid_ordering = "invalid_ordering"
    quota_exceeded = "quota_exceeded"
    conflict = "conflict"
    alternative_invalid = "alternative_invalid"


# ── Attendance / Calendar ───────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    present = "present"
    leave = "leave"
    permission = "permission"


class HolidayType(str, enum.Enum):
    public = "public"
    regional = "regional"


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    action_required = "action_required"
    approval = "approval"
    rejection = "rejection"


# ── Role capabilities ───────────────────────────────────────────────

# Roles routed and counted exactly like a plain employee
ROUTING_ROLE: dict[UserRole, UserRole] = {
    UserRole.intern: UserRole.employee,
    UserRole.di: UserRole.employee,
    UserRole.dm: UserRole.employee,
    UserRole.associate: UserRole.employee,
}

# Requesters who need not name a covering employee
ALTERNATIVE_EXEMPT_ROLES: frozenset[UserRole] = frozenset(
    {UserRole.manager, UserRole.hr, UserRole.superadmin}
)

# Roles that may be named as the covering (alternative) employee
COVER_ELIGIBLE_ROLES: frozenset[UserRole] = frozenset({UserRole.employee})

# Role an approver must hold to act at a given level
LEVEL_APPROVER_ROLE: dict[ApprovalLevel, UserRole] = {
    ApprovalLevel.manager: UserRole.manager,
    ApprovalLevel.hr: UserRole.hr,
    ApprovalLevel.superadmin: UserRole.superadmin,
}

DEFAULT_APPROVAL_ROUTING: dict[UserRole, tuple[ApprovalLevel, ...]] = {
    UserRole.employee: (ApprovalLevel.manager, ApprovalLevel.hr),
    UserRole.manager: (ApprovalLevel.hr, ApprovalLevel.superadmin),
    UserRole.hr: (ApprovalLevel.superadmin,),
    UserRole.superadmin: (),
}

ACTIVE_REQUEST_STATUSES: tuple[RequestStatus, ...] = (
    RequestStatus.pending,
    RequestStatus.approved,
)

# ── Misc constants ──────────────────────────────────────────────────

HALF_DAY_SESSIONS: dict[HalfDaySession, tuple[time, time]] = {
    HalfDaySession.morning: (time(9, 0), time(13, 0)),
    HalfDaySession.afternoon: (time(13, 0), time(18, 0)),
}

# Last date whose following month is still a valid date
LATEST_REQUEST_DATE = date(9998, 12, 31)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
