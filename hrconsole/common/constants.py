"""Enums and constants for the HR console — matching the remote backend's values."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr_admin = "hr_admin"
    system_admin = "system_admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    withdrawn = "withdrawn"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.pending


class LeaveDecision(str, enum.Enum):
    """Owner-facing events produced by a reviewer acting on a leave."""

    approved = "approved"
    rejected = "rejected"
    manager_remarks = "manager_remarks"


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    action_required = "action_required"
    approval = "approval"
    reminder = "reminder"
    alert = "alert"


NOTIFICATION_EVENT_NAME = "hrms:notification"
LEAVE_ENTITY_TYPE = "leave_request"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "leave:request",
    ],
    UserRole.manager: [
        "leave:request",
        "leave:read_team",
        "leave:manager_review",
        "leave:submit_on_behalf",
    ],
    UserRole.hr_admin: [
        "leave:request",
        "leave:read_team",
        "leave:read_all",
        "leave:manager_review",
        "leave:approve",
        "leave:submit_on_behalf",
    ],
    UserRole.system_admin: [
        "leave:request",
        "leave:read_team",
        "leave:read_all",
        "leave:read_system",
        "leave:manager_review",
        "leave:approve",
        "leave:submit_on_behalf",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10
