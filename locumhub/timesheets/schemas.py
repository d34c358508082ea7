"""Timesheet Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from locumhub.common.constants import TimesheetStatus

Hours = Annotated[Decimal, Field(ge=0, le=24, decimal_places=2)]


class DailyHours(BaseModel):
    monday: Hours = Decimal("0")
    tuesday: Hours = Decimal("0")
    wednesday: Hours = Decimal("0")
    thursday: Hours = Decimal("0")
    friday: Hours = Decimal("0")
    saturday: Hours = Decimal("0")
    sunday: Hours = Decimal("0")

    @property
    def total(self) -> Decimal:
        return sum(self.model_dump().values(), Decimal("0"))


class TimesheetCreate(BaseModel):
    organisation_id: uuid.UUID
    week_start: date
    daily_hours: DailyHours = Field(default_factory=DailyHours)
    shift_id: Optional[uuid.UUID] = None
    # Only used when an admin / business-support user files on someone's behalf
    staff_id: Optional[uuid.UUID] = None

    @field_validator("week_start")
    @classmethod
    def _monday(cls, v: date) -> date:
        if v.weekday() != 0:
            raise ValueError("week_start must be a Monday")
        return v


class TimesheetUpdate(BaseModel):
    daily_hours: Optional[DailyHours] = None
    shift_id: Optional[uuid.UUID] = None


class TimesheetReviewRequest(BaseModel):
    action: Literal["approve", "reject"]
    notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _reject_needs_notes(self) -> "TimesheetReviewRequest":
        if self.action == "reject" and not (self.notes or "").strip():
            raise ValueError("Notes are required when rejecting a timesheet")
        return self


class TimesheetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    staff_id: uuid.UUID
    organisation_id: uuid.UUID
    shift_id: Optional[uuid.UUID] = None
    week_start: date
    week_end: date
    daily_hours: dict[str, Decimal]
    total_hours: Decimal
    status: TimesheetStatus
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by_id: Optional[uuid.UUID] = None
    approved_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TimesheetStatsOut(BaseModel):
    total: int
    by_status: dict[str, int]
    approved_hours: Decimal
    pending_hours: Decimal
