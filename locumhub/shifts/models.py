"""Shift and manual-allocation ORM models: Shift, AllocationReport, AllocationCandidate."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from locumhub.common.audit import TimestampMixin
from locumhub.common.constants import (
    AllocationReportStatus,
    CandidateResponseStatus,
    ShiftStatus,
)
from locumhub.database import Base


class Shift(Base, TimestampMixin):
    """A session an organisation needs covered by a locum."""

    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    organisation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("organisations.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    shift_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    hourly_rate: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(8, 2))
    required_skills: Mapped[list] = mapped_column(JSONB, default=list)
    is_urgent: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=ShiftStatus.open.value,
    )
    assigned_staff_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )

    __table_args__ = (
        sa.Index("ix_shifts_shift_date", "shift_date"),
        sa.Index("ix_shifts_status", "status"),
        sa.Index("ix_shifts_organisation_id", "organisation_id"),
    )

    def __repr__(self) -> str:
        return f"<Shift {self.role} {self.shift_date} {self.status}>"


class AllocationReport(Base, TimestampMixin):
    """Ranked candidate list generated for one shift."""

    __tablename__ = "allocation_reports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    shift_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("shifts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=AllocationReportStatus.draft.value,
    )
    generated_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    generated_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    candidates: Mapped[list["AllocationCandidate"]] = relationship(
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="AllocationCandidate.rank",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<AllocationReport shift={self.shift_id} {self.status}>"


class AllocationCandidate(Base, TimestampMixin):
    """A staff member proposed for a shift, with score and contact outcome."""

    __tablename__ = "allocation_candidates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    report_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("allocation_reports.id", ondelete="CASCADE"),
        nullable=False,
    )
    staff_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    rank: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    match_score: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    match_reasons: Mapped[list] = mapped_column(JSONB, default=list)
    response_status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=CandidateResponseStatus.pending.value,
    )
    contact_notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    last_contacted: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    report: Mapped[AllocationReport] = relationship(back_populates="candidates")
    staff: Mapped["User"] = relationship(foreign_keys=[staff_id], lazy="selectin")

    __table_args__ = (
        sa.UniqueConstraint("report_id", "staff_id", name="uq_allocation_candidates_report_staff"),
    )

    def __repr__(self) -> str:
        return f"<AllocationCandidate #{self.rank} staff={self.staff_id} score={self.match_score}>"
