"""Registration and enquiry form schemas.

Field names follow the public forms; the rules mirror the form validation so
direct API callers get the same errors.
"""

import re
import uuid
from datetime import date, datetime
from typing import Annotated, Any, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from locumhub.common.constants import CareSettingType, EnquiryKind, EnquiryStatus, PracticeType

# Professional register per locum type: (number field, regulator)
PROFESSIONAL_REGISTERS: dict[str, tuple[str, str]] = {
    "gp": ("gmc_number", "GMC"),
    "nurse_practitioner": ("nmc_number", "NMC"),
    "clinical_pharmacist": ("gphc_number", "GPhC"),
}


def _check_phone(value: str) -> str:
    if len(re.sub(r"\D", "", value)) < 10:
        raise ValueError("Phone number must be at least 10 digits")
    return value.strip()


PhoneNumber = Annotated[str, AfterValidator(_check_phone)]


def _check_true(value: bool, message: str) -> bool:
    if value is not True:
        raise ValueError(message)
    return value


# ═════════════════════════════════════════════════════════════════════
# Locum staff
# ═════════════════════════════════════════════════════════════════════


class StaffRegistration(BaseModel):
    """GP / nurse practitioner / clinical pharmacist sign-up."""

    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: PhoneNumber
    date_of_birth: date
    postcode: str = Field(..., min_length=5, max_length=10)
    professional_type: Literal["gp", "nurse_practitioner", "clinical_pharmacist"]
    gmc_number: Optional[str] = Field(None, max_length=20)
    nmc_number: Optional[str] = Field(None, max_length=20)
    gphc_number: Optional[str] = Field(None, max_length=20)
    years_experience: int = Field(..., ge=0, le=60)
    specializations: List[str] = Field(..., min_length=1)
    availability: List[str] = Field(..., min_length=1)
    consent_registration_check: bool
    consent_indemnity_check: bool
    consent_umbrella_company: bool
    agree_terms: bool

    @field_validator("consent_registration_check")
    @classmethod
    def _registration_consent(cls, v: bool) -> bool:
        return _check_true(v, "You must consent to GMC/NMC/GPhC verification")

    @field_validator("consent_indemnity_check")
    @classmethod
    def _indemnity_consent(cls, v: bool) -> bool:
        return _check_true(v, "You must consent to indemnity verification")

    @field_validator("consent_umbrella_company")
    @classmethod
    def _umbrella_consent(cls, v: bool) -> bool:
        return _check_true(v, "You must consent to use our preferred umbrella company")

    @field_validator("agree_terms")
    @classmethod
    def _terms(cls, v: bool) -> bool:
        return _check_true(v, "You must agree to terms and conditions")

    @model_validator(mode="after")
    def _registration_number_present(self) -> "StaffRegistration":
        field, body = PROFESSIONAL_REGISTERS[self.professional_type]
        if not (getattr(self, field) or "").strip():
            raise ValueError(f"{body} number is required for this professional type")
        return self

    @property
    def registration(self) -> tuple[str, str]:
        """(regulator, number) for the chosen professional type."""
        field, body = PROFESSIONAL_REGISTERS[self.professional_type]
        return body, getattr(self, field).strip()


class AlliedHealthcareRegistration(BaseModel):
    """Allied healthcare professional sign-up (physio, OT, paramedic, ...)."""

    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: PhoneNumber
    profession: str = Field(..., min_length=1, max_length=100)
    professional_registration_number: Optional[str] = Field(None, max_length=50)
    professional_registration_body: Optional[str] = Field(None, max_length=20)
    nhs_band: str = Field(..., min_length=1, max_length=20)
    experience: str = Field(..., min_length=1, max_length=50)
    available_locations: List[str] = Field(..., min_length=1)
    specializations: List[str] = Field(default_factory=list)
    additional_skills: Optional[str] = None
    previous_nhs_experience: bool = False
    consent_data_processing: bool
    consent_reference_checks: bool
    consent_terms_conditions: bool

    @field_validator("consent_data_processing")
    @classmethod
    def _data_consent(cls, v: bool) -> bool:
        return _check_true(v, "Consent for data processing is required")

    @field_validator("consent_reference_checks")
    @classmethod
    def _reference_consent(cls, v: bool) -> bool:
        return _check_true(v, "Consent for reference checks is required")

    @field_validator("consent_terms_conditions")
    @classmethod
    def _terms(cls, v: bool) -> bool:
        return _check_true(v, "Acceptance of terms and conditions is required")

    @property
    def years_experience(self) -> int:
        """Lower bound of the selected experience band, e.g. "3-5 years" → 3."""
        match = re.match(r"\s*(\d+)", self.experience)
        return int(match.group(1)) if match else 0


class RegistrationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    profession: Optional[str] = None
    onboarding_status: Optional[str] = None
    created_at: Optional[datetime] = None


# ═════════════════════════════════════════════════════════════════════
# Client enquiries
# ═════════════════════════════════════════════════════════════════════


class CareHomeEnquiryCreate(BaseModel):
    manager_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    care_home_name: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    contact_phone: PhoneNumber
    care_setting_type: CareSettingType
    facility_capacity: int = Field(..., ge=1)
    cqc_registration_number: Optional[str] = Field(None, max_length=50)
    specializations: List[str] = Field(default_factory=list)
    services_offered: List[str] = Field(default_factory=list)
    service_areas: List[str] = Field(default_factory=list)
    nursing_staff_required: Optional[bool] = None
    urgent_staffing_needs: Optional[str] = None
    current_staffing_challenges: Optional[str] = None
    additional_info: Optional[str] = None
    promotion_source: Optional[str] = None


class GPPracticeEnquiryCreate(BaseModel):
    practice_manager_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    practice_name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1)
    postcode: str = Field(..., min_length=1, max_length=10)
    contact_phone: PhoneNumber
    practice_type: PracticeType
    patient_list_size: int = Field(..., ge=1)
    services_offered: List[str] = Field(default_factory=list)
    specialty_services: List[str] = Field(default_factory=list)
    cqc_rating: Optional[
        Literal["outstanding", "good", "requires_improvement", "inadequate", "not_rated"]
    ] = None
    nhs_contract_type: Optional[Literal["gms", "pms", "apms"]] = None
    operating_hours: Optional[str] = None
    preferred_session_types: List[str] = Field(default_factory=list)
    urgent_locum_needs: Optional[str] = None
    current_staffing_challenges: Optional[str] = None
    additional_requirements: Optional[str] = None
    promotion_source: Optional[str] = None


class EnquiryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    kind: EnquiryKind
    contact_name: str
    email: str
    organisation_name: str
    phone: str
    postcode: Optional[str] = None
    payload: dict[str, Any] = {}
    status: EnquiryStatus
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class EnquiryUpdate(BaseModel):
    status: Optional[EnquiryStatus] = None
    admin_notes: Optional[str] = Field(None, max_length=5000)
