"""Shared account schemas embedded by other modules' responses."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OrganisationBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    org_type: str


class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    user_type: str


class StaffProfileOut(BaseModel):
    """Staff record as seen by reviewers."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    postcode: Optional[str] = None
    profession: Optional[str] = None
    professional_body: Optional[str] = None
    registration_number: Optional[str] = None
    nhs_band: Optional[str] = None
    years_experience: int = 0
    specializations: list[str] = []
    availability: list[str] = []
    preferred_locations: list[str] = []
    onboarding_status: Optional[str] = None
    onboarding_notes: Optional[str] = None
    onboarding_reviewed_at: Optional[datetime] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
