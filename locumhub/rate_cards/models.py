"""Rate card ORM model — pay / bill rate bands per locum role."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from locumhub.common.audit import TimestampMixin
from locumhub.database import Base


class RateCard(Base, TimestampMixin):
    """Hourly worker pay and client bill bands for one role (GBP)."""

    __tablename__ = "rate_cards"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    role: Mapped[str] = mapped_column(sa.String(100), nullable=False, unique=True)
    worker_pay_rate_min: Mapped[Decimal] = mapped_column(sa.Numeric(8, 2), nullable=False)
    worker_pay_rate_max: Mapped[Decimal] = mapped_column(sa.Numeric(8, 2), nullable=False)
    client_bill_rate_min: Mapped[Decimal] = mapped_column(sa.Numeric(8, 2), nullable=False)
    client_bill_rate_max: Mapped[Decimal] = mapped_column(sa.Numeric(8, 2), nullable=False)
    agency_markup_min: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(6, 2))
    agency_markup_max: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(6, 2))
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    def __repr__(self) -> str:
        return (
            f"<RateCard {self.role} pay £{self.worker_pay_rate_min}-{self.worker_pay_rate_max}"
            f" bill £{self.client_bill_rate_min}-{self.client_bill_rate_max}>"
        )
