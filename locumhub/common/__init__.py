"""Common module — shared utilities for LocumHub."""

from locumhub.common.audit import AuditTrail, TimestampMixin, create_audit_entry
from locumhub.common.constants import (
    DEFAULT_PAGE_SIZE,
    DOCUMENT_TRANSITIONS,
    MAX_PAGE_SIZE,
    TIMEZONE,
    AccessLevel,
    DocumentStatus,
    NotificationPriority,
    NotificationType,
    OnboardingStatus,
    ShiftStatus,
    SystemTab,
    TimesheetStatus,
    UserType,
)
from locumhub.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from locumhub.common.filters import apply_filters, apply_search
from locumhub.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    build_meta,
    page_of,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "TimestampMixin",
    "create_audit_entry",
    # Constants / Enums
    "AccessLevel",
    "DocumentStatus",
    "NotificationPriority",
    "NotificationType",
    "OnboardingStatus",
    "ShiftStatus",
    "SystemTab",
    "TimesheetStatus",
    "UserType",
    "DOCUMENT_TRANSITIONS",
    "TIMEZONE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "InvalidTransitionException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "build_meta",
    "page_of",
    "paginate",
]
