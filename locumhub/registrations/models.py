"""Registration ORM models: inbound care home and GP practice enquiries."""

from __future__ import annotations

import uuid
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from locumhub.common.audit import TimestampMixin
from locumhub.common.constants import EnquiryStatus
from locumhub.database import Base


class Enquiry(Base, TimestampMixin):
    """A prospective client's enquiry form; the full form is kept in ``payload``."""

    __tablename__ = "enquiries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    kind: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    contact_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    organisation_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    phone: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    postcode: Mapped[Optional[str]] = mapped_column(sa.String(10))
    payload: Mapped[dict] = mapped_column(JSONB, default=dict)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=EnquiryStatus.new.value,
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    __table_args__ = (
        sa.Index("ix_enquiries_kind_status", "kind", "status"),
    )

    def __repr__(self) -> str:
        return f"<Enquiry {self.kind} '{self.organisation_name}' {self.status}>"
