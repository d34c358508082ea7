"""Compliance Pydantic v2 schemas — catalogue, tracker summary, records and DBS checks."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from locumhub.common.constants import (
    ComplianceCategory,
    ComplianceItemState,
    DbsCheckLevel,
    DbsVerificationStatus,
    DbsWorkforceType,
)
from locumhub.documents.schemas import DocumentOut


def _check_dates(issue: Optional[date], expiry: Optional[date]) -> None:
    if issue and expiry and expiry < issue:
        raise ValueError("Expiry date cannot be before the issue date")


# ═════════════════════════════════════════════════════════════════════
# Requirement catalogue
# ═════════════════════════════════════════════════════════════════════


class RequirementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    description: str
    category: str
    validity_months: Optional[int] = None
    mandatory: bool


class RequirementsOut(BaseModel):
    """A checklist: a role's, an entity type's, or the full staff catalogue."""

    role: Optional[str] = None
    label: str
    mandatory: list[RequirementOut]
    recommended: list[RequirementOut]


# ═════════════════════════════════════════════════════════════════════
# Tracker summary
# ═════════════════════════════════════════════════════════════════════


class ComplianceItemOut(BaseModel):
    document_type: str
    label: str
    category: str
    mandatory: bool
    state: ComplianceItemState
    document_id: Optional[uuid.UUID] = None
    expiry_date: Optional[date] = None
    days_until_expiry: Optional[int] = None
    expiring_soon: bool = False


class ComplianceSummaryOut(BaseModel):
    user_id: uuid.UUID
    profession: Optional[str] = None
    role_label: str
    items: list[ComplianceItemOut]
    mandatory_total: int
    mandatory_complete: int
    completion_percentage: float
    supplementary_count: int
    missing: list[str]
    expiring: list[str]
    expired: list[str]
    is_compliant: bool


class ExpiringDocumentOut(DocumentOut):
    days_left: int


class SweepResultOut(BaseModel):
    expired: int
    reminders_sent: int
    dbs_expired: int


# ═════════════════════════════════════════════════════════════════════
# Compliance records
# ═════════════════════════════════════════════════════════════════════


class ComplianceRecordCreate(BaseModel):
    staff_id: uuid.UUID
    type: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    required_by: Optional[str] = Field(None, max_length=255)
    is_required: bool = True
    is_mandatory: bool = True
    compliance_category: ComplianceCategory = ComplianceCategory.legal_safety
    reminder_service: bool = False
    document_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _dates_in_order(self) -> "ComplianceRecordCreate":
        _check_dates(self.issue_date, self.expiry_date)
        return self


class ComplianceRecordUpdate(BaseModel):
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    required_by: Optional[str] = Field(None, max_length=255)
    is_required: Optional[bool] = None
    is_mandatory: Optional[bool] = None
    compliance_category: Optional[ComplianceCategory] = None
    reminder_service: Optional[bool] = None
    document_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _dates_in_order(self) -> "ComplianceRecordUpdate":
        _check_dates(self.issue_date, self.expiry_date)
        return self


class ComplianceRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    staff_id: uuid.UUID
    type: str
    title: str
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    required_by: Optional[str] = None
    is_required: bool
    is_mandatory: bool
    compliance_category: ComplianceCategory
    reminder_service: bool
    document_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# DBS checks
# ═════════════════════════════════════════════════════════════════════


class DbsCheckCreate(BaseModel):
    staff_id: uuid.UUID
    certificate_number: str = Field(..., min_length=1, max_length=50)
    update_service_id: Optional[str] = Field(None, max_length=50)
    is_on_update_service: bool = False
    issue_date: date
    expiry_date: Optional[date] = None
    check_level: DbsCheckLevel = DbsCheckLevel.enhanced
    workforce_type: DbsWorkforceType = DbsWorkforceType.both
    requested_by: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=5000)
    document_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _dates_in_order(self) -> "DbsCheckCreate":
        _check_dates(self.issue_date, self.expiry_date)
        return self


class DbsCheckUpdate(BaseModel):
    certificate_number: Optional[str] = Field(None, min_length=1, max_length=50)
    update_service_id: Optional[str] = Field(None, max_length=50)
    is_on_update_service: Optional[bool] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    check_level: Optional[DbsCheckLevel] = None
    workforce_type: Optional[DbsWorkforceType] = None
    requested_by: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=5000)
    document_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def _dates_in_order(self) -> "DbsCheckUpdate":
        _check_dates(self.issue_date, self.expiry_date)
        return self


class DbsVerifyRequest(BaseModel):
    status: Literal["verified", "rejected"]
    notes: Optional[str] = Field(None, max_length=5000)


class DbsCheckOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    staff_id: uuid.UUID
    certificate_number: str
    update_service_id: Optional[str] = None
    is_on_update_service: bool
    issue_date: date
    expiry_date: Optional[date] = None
    check_level: DbsCheckLevel
    workforce_type: DbsWorkforceType
    verification_status: DbsVerificationStatus
    requested_by: Optional[str] = None
    notes: Optional[str] = None
    document_id: Optional[uuid.UUID] = None
    verified_by_id: Optional[uuid.UUID] = None
    verified_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
