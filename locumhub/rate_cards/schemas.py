"""Rate card Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Markups are stored as NUMERIC(6, 2).
MAX_MARKUP = Decimal("1000")

Rate = Annotated[Decimal, Field(gt=0, max_digits=8, decimal_places=2)]
Markup = Annotated[Decimal, Field(ge=0, le=MAX_MARKUP, decimal_places=2)]


class RateCardCreate(BaseModel):
    role: str = Field(..., min_length=2, max_length=100)
    worker_pay_rate_min: Rate
    worker_pay_rate_max: Rate
    client_bill_rate_min: Rate
    client_bill_rate_max: Rate
    agency_markup_min: Optional[Markup] = None
    agency_markup_max: Optional[Markup] = None
    notes: Optional[str] = Field(None, max_length=2000)
    is_active: bool = True

    @model_validator(mode="after")
    def _bands_consistent(self) -> "RateCardCreate":
        if self.worker_pay_rate_min > self.worker_pay_rate_max:
            raise ValueError("Worker pay rate min cannot exceed max")
        if self.client_bill_rate_min > self.client_bill_rate_max:
            raise ValueError("Client bill rate min cannot exceed max")
        if self.client_bill_rate_min < self.worker_pay_rate_min:
            raise ValueError("Client bill rate min cannot be below worker pay rate min")
        if self.client_bill_rate_max < self.worker_pay_rate_max:
            raise ValueError("Client bill rate max cannot be below worker pay rate max")
        if (
            self.agency_markup_min is not None
            and self.agency_markup_max is not None
            and self.agency_markup_min > self.agency_markup_max
        ):
            raise ValueError("Agency markup min cannot exceed max")
        return self


class RateCardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role: str
    worker_pay_rate_min: Decimal
    worker_pay_rate_max: Decimal
    client_bill_rate_min: Decimal
    client_bill_rate_max: Decimal
    agency_markup_min: Optional[Decimal] = None
    agency_markup_max: Optional[Decimal] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class RateCardPreview(BaseModel):
    """Totals for a number of hours at the bottom and top of each band."""

    role: str
    hours: Decimal
    pay_total_min: Decimal
    pay_total_max: Decimal
    bill_total_min: Decimal
    bill_total_max: Decimal
    margin_min: Decimal
    margin_max: Decimal
