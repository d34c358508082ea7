"""Shift and allocation Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from locumhub.common.constants import (
    AllocationReportStatus,
    CandidateResponseStatus,
    Profession,
    ShiftStatus,
)


# ═════════════════════════════════════════════════════════════════════
# Shifts
# ═════════════════════════════════════════════════════════════════════


class ShiftCreate(BaseModel):
    organisation_id: Optional[uuid.UUID] = None
    role: Profession
    shift_date: date
    start_time: time
    end_time: time
    hourly_rate: Optional[Decimal] = Field(None, gt=0, max_digits=8, decimal_places=2)
    required_skills: list[str] = []
    is_urgent: bool = False
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _times_in_order(self) -> "ShiftCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ShiftAssignRequest(BaseModel):
    staff_id: uuid.UUID


class ShiftCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


class ShiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organisation_id: uuid.UUID
    role: str
    shift_date: date
    start_time: time
    end_time: time
    hourly_rate: Optional[Decimal] = None
    required_skills: list[str] = []
    is_urgent: bool
    status: ShiftStatus
    assigned_staff_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Allocation
# ═════════════════════════════════════════════════════════════════════


class CandidateStaff(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    profession: Optional[str] = None
    years_experience: int = 0
    specializations: list[str] = []


class AllocationCandidateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    staff_id: uuid.UUID
    rank: int
    match_score: int
    match_reasons: list[str] = []
    response_status: CandidateResponseStatus
    contact_notes: Optional[str] = None
    last_contacted: Optional[datetime] = None
    staff: Optional[CandidateStaff] = None


class AllocationReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    shift_id: uuid.UUID
    status: AllocationReportStatus
    generated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    candidates: list[AllocationCandidateOut] = []


class AllocationResponseRequest(BaseModel):
    shift_id: uuid.UUID
    staff_id: uuid.UUID
    status: CandidateResponseStatus
    notes: Optional[str] = Field(None, max_length=2000)
