"""Timesheet ORM model — weekly hours submitted by locum staff."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from locumhub.common.audit import TimestampMixin
from locumhub.common.constants import TimesheetStatus
from locumhub.database import Base


class Timesheet(Base, TimestampMixin):
    """One week (Monday to Sunday) of hours for a staff member at an organisation."""

    __tablename__ = "timesheets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    staff_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    organisation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("organisations.id", ondelete="CASCADE"),
        nullable=False,
    )
    shift_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("shifts.id", ondelete="SET NULL"),
    )
    week_start: Mapped[date] = mapped_column(sa.Date, nullable=False)
    week_end: Mapped[date] = mapped_column(sa.Date, nullable=False)
    # weekday name → hours as a string decimal, e.g. {"monday": "7.5"}
    daily_hours: Mapped[dict] = mapped_column(JSONB, default=dict)
    total_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False, default=0,
    )
    status: Mapped[str] = mapped_column(
        sa.String(30), nullable=False, default=TimesheetStatus.draft.value,
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    approved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    approved_notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    __table_args__ = (
        sa.UniqueConstraint(
            "staff_id", "organisation_id", "week_start",
            name="uq_timesheets_staff_org_week",
        ),
        sa.Index("ix_timesheets_status", "status"),
        sa.Index("ix_timesheets_organisation_id", "organisation_id"),
    )

    def __repr__(self) -> str:
        return f"<Timesheet {self.week_start} staff={self.staff_id} {self.status}>"
