"""Compliance ORM models: tracked compliance records and DBS checks."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from locumhub.common.audit import TimestampMixin
from locumhub.common.constants import ComplianceCategory, DbsVerificationStatus
from locumhub.database import Base


class ComplianceRecord(Base, TimestampMixin):
    """A compliance item tracked for a staff member, optionally backed by a document."""

    __tablename__ = "compliance_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    staff_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    issue_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    expiry_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    required_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    is_required: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    is_mandatory: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    compliance_category: Mapped[str] = mapped_column(
        sa.String(30), nullable=False, default=ComplianceCategory.legal_safety.value,
    )
    reminder_service: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    document_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("documents.id", ondelete="SET NULL"),
    )

    __table_args__ = (
        sa.Index("ix_compliance_records_staff_id", "staff_id"),
        sa.Index("ix_compliance_records_expiry_date", "expiry_date"),
    )

    def __repr__(self) -> str:
        return f"<ComplianceRecord {self.type} staff={self.staff_id}>"


class DbsCheck(Base, TimestampMixin):
    """Disclosure and Barring Service certificate held for a staff member."""

    __tablename__ = "dbs_checks"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    staff_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    certificate_number: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    update_service_id: Mapped[Optional[str]] = mapped_column(sa.String(50))
    is_on_update_service: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    issue_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    expiry_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    check_level: Mapped[str] = mapped_column(sa.String(40), nullable=False)
    workforce_type: Mapped[str] = mapped_column(sa.String(10), nullable=False)
    verification_status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=DbsVerificationStatus.pending.value,
    )
    requested_by: Mapped[Optional[str]] = mapped_column(sa.String(255))
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    document_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("documents.id", ondelete="SET NULL"),
    )
    verified_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    __table_args__ = (
        sa.Index("ix_dbs_checks_staff_id", "staff_id"),
        sa.Index("ix_dbs_checks_verification_status", "verification_status"),
    )

    def __repr__(self) -> str:
        return f"<DbsCheck {self.certificate_number} {self.verification_status}>"
