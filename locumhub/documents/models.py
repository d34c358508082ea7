"""Document ORM model — uploaded files for staff, care homes and admin records."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from locumhub.common.audit import TimestampMixin
from locumhub.common.constants import DocumentStatus
from locumhub.database import Base


class Document(Base, TimestampMixin):
    """A stored file plus its review state.

    ``entity_id`` points at a user for ``staff`` documents and at an
    organisation for ``care_home`` documents.
    """

    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    entity_type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    document_type: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    filename: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(sa.String(500), nullable=False)
    mime_type: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=DocumentStatus.pending.value,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    issued_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    expiry_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    tags: Mapped[list] = mapped_column(JSONB, default=list)
    uploaded_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    verified_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    # Smallest reminder threshold (in days) already sent for the current expiry date
    last_reminder_days: Mapped[Optional[int]] = mapped_column(sa.Integer)

    __table_args__ = (
        sa.Index("ix_documents_entity", "entity_type", "entity_id"),
        sa.Index("ix_documents_status", "status"),
        sa.Index("ix_documents_expiry_date", "expiry_date"),
    )

    def __repr__(self) -> str:
        return f"<Document {self.document_type} '{self.title}' {self.status}>"
