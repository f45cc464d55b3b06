"""Common module — shared utilities for the HR console."""

from hrconsole.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    NOTIFICATION_EVENT_NAME,
    PERMISSIONS,
    LeaveDecision,
    LeaveStatus,
    NotificationType,
    UserRole,
)
from hrconsole.common.events import LocalEventBus, NotificationEvent
from hrconsole.common.exceptions import (
    AppException,
    ForbiddenException,
    LeaveStateException,
    MissingInputException,
    ValidationException,
    register_exception_handlers,
)
from hrconsole.common.pagination import Page, PaginationParams, normalize_page
from hrconsole.common.tasks import BackgroundTaskRunner

__all__ = [
    # Constants / Enums
    "LeaveDecision",
    "LeaveStatus",
    "NotificationType",
    "UserRole",
    "PERMISSIONS",
    "NOTIFICATION_EVENT_NAME",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Events / background work
    "LocalEventBus",
    "NotificationEvent",
    "BackgroundTaskRunner",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "LeaveStateException",
    "MissingInputException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "Page",
    "PaginationParams",
    "normalize_page",
]
