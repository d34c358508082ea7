"""Enums and constants for LocumHub — values stored in VARCHAR status columns."""

from __future__ import annotations

import enum


# ── Users / Roles ───────────────────────────────────────────────────

class UserType(str, enum.Enum):
    admin = "admin"
    business_support = "business_support"
    staff = "staff"
    care_home = "care_home"
    gp_practice = "gp_practice"


class Profession(str, enum.Enum):
    gp = "gp"
    nurse_practitioner = "nurse_practitioner"
    advanced_nurse_practitioner = "advanced_nurse_practitioner"
    clinical_pharmacist = "clinical_pharmacist"
    allied_healthcare = "allied_healthcare"


class OnboardingStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class OrganisationType(str, enum.Enum):
    care_home = "care_home"
    gp_practice = "gp_practice"


# ── Registrations / Enquiries ───────────────────────────────────────

class EnquiryKind(str, enum.Enum):
    care_home = "care_home"
    gp_practice = "gp_practice"


class EnquiryStatus(str, enum.Enum):
    new = "new"
    contacted = "contacted"
    converted = "converted"
    closed = "closed"


class CareSettingType(str, enum.Enum):
    residential = "residential"
    nursing = "nursing"
    domiciliary = "domiciliary"


class PracticeType(str, enum.Enum):
    single_handed = "single_handed"
    group_practice = "group_practice"
    health_centre = "health_centre"
    urgent_care = "urgent_care"
    walk_in_centre = "walk_in_centre"


# ── Documents ───────────────────────────────────────────────────────

class DocumentEntityType(str, enum.Enum):
    staff = "staff"
    care_home = "care_home"
    admin = "admin"


class DocumentStatus(str, enum.Enum):
    pending = "pending"
    verified = "verified"
    rejected = "rejected"
    expired = "expired"
    archived = "archived"


# Allowed status moves; archived is terminal. Moving back to pending
# happens when a replacement file is uploaded for re-review.
DOCUMENT_TRANSITIONS: dict[DocumentStatus, set[DocumentStatus]] = {
    DocumentStatus.pending: {
        DocumentStatus.verified,
        DocumentStatus.rejected,
        DocumentStatus.archived,
    },
    DocumentStatus.verified: {
        DocumentStatus.expired,
        DocumentStatus.archived,
        DocumentStatus.pending,
    },
    DocumentStatus.rejected: {DocumentStatus.pending, DocumentStatus.archived},
    DocumentStatus.expired: {DocumentStatus.pending, DocumentStatus.archived},
    DocumentStatus.archived: set(),
}

ALLOWED_UPLOAD_TYPES: dict[str, str] = {
    "application/pdf": "PDF",
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/gif": "GIF",
    "application/msword": "DOC",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "DOCX",
}


# ── Compliance ──────────────────────────────────────────────────────

class ComplianceCategory(str, enum.Enum):
    legal_safety = "legal_safety"
    insurance_protection = "insurance_protection"
    clinical_training = "clinical_training"
    supplementary = "supplementary"


class ComplianceItemState(str, enum.Enum):
    missing = "missing"
    pending = "pending"
    verified = "verified"
    rejected = "rejected"
    expired = "expired"


class DbsCheckLevel(str, enum.Enum):
    basic = "basic"
    standard = "standard"
    enhanced = "enhanced"
    enhanced_with_barred_lists = "enhanced_with_barred_lists"


class DbsWorkforceType(str, enum.Enum):
    adult = "adult"
    child = "child"
    both = "both"


class DbsVerificationStatus(str, enum.Enum):
    pending = "pending"
    verified = "verified"
    rejected = "rejected"
    expired = "expired"


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    new_registration = "new_registration"
    document_upload = "document_upload"
    document_review = "document_review"
    document_expiring = "document_expiring"
    document_expired = "document_expired"
    onboarding = "onboarding"
    shift_urgent = "shift_urgent"
    shift_allocation = "shift_allocation"
    timesheet = "timesheet"
    system_alert = "system_alert"


class NotificationPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# ── Timesheets ──────────────────────────────────────────────────────

class TimesheetStatus(str, enum.Enum):
    draft = "draft"
    pending_manager_approval = "pending_manager_approval"
    approved = "approved"
    rejected = "rejected"


WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


# ── Shifts / Allocation ─────────────────────────────────────────────

class ShiftStatus(str, enum.Enum):
    open = "open"
    assigned = "assigned"
    completed = "completed"
    cancelled = "cancelled"


class AllocationReportStatus(str, enum.Enum):
    draft = "draft"
    in_progress = "in_progress"
    completed = "completed"


class CandidateResponseStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    no_response = "no_response"


# ── Business support permissions ────────────────────────────────────

class SystemTab(str, enum.Enum):
    dashboard = "dashboard"
    shifts = "shifts"
    users = "users"
    care_homes = "care_homes"
    timesheets = "timesheets"
    documents = "documents"
    reports = "reports"
    settings = "settings"


class AccessLevel(str, enum.Enum):
    read = "read"
    write = "write"
    admin = "admin"


ACCESS_LEVEL_RANK: dict[AccessLevel, int] = {
    AccessLevel.read: 1,
    AccessLevel.write: 2,
    AccessLevel.admin: 3,
}

SYSTEM_TAB_LABELS: dict[SystemTab, str] = {
    SystemTab.dashboard: "Dashboard",
    SystemTab.shifts: "Shift Management",
    SystemTab.users: "User Management",
    SystemTab.care_homes: "Care Homes",
    SystemTab.timesheets: "Timesheets",
    SystemTab.documents: "Documents",
    SystemTab.reports: "Reports",
    SystemTab.settings: "Settings",
}

ORGANISATION_USER_TYPES: frozenset[UserType] = frozenset(
    {UserType.care_home, UserType.gp_practice}
)

TIMEZONE = "Europe/London"
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
