"""Account ORM models: User, Organisation.

Users are created by registration or by an admin; authentication itself
happens at the auth provider and is linked through ``auth_subject``.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from locumhub.common.audit import TimestampMixin
from locumhub.database import Base


class Organisation(Base, TimestampMixin):
    """A client organisation: care home or GP practice."""

    __tablename__ = "organisations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    org_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(sa.Text)
    postcode: Mapped[Optional[str]] = mapped_column(sa.String(10))
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))
    email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    cqc_registration_number: Mapped[Optional[str]] = mapped_column(sa.String(50))
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    members: Mapped[list["User"]] = relationship(back_populates="organisation")

    def __repr__(self) -> str:
        return f"<Organisation {self.org_type} '{self.name}'>"


class User(Base, TimestampMixin):
    """Any person who signs in: admins, business support, locum staff, clients."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    auth_subject: Mapped[Optional[str]] = mapped_column(
        sa.String(255), unique=True, nullable=True,
    )
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))
    date_of_birth: Mapped[Optional[date]] = mapped_column(sa.Date)
    address: Mapped[Optional[str]] = mapped_column(sa.Text)
    postcode: Mapped[Optional[str]] = mapped_column(sa.String(10))
    user_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)

    # Staff profile
    profession: Mapped[Optional[str]] = mapped_column(sa.String(50))
    professional_body: Mapped[Optional[str]] = mapped_column(sa.String(20))
    registration_number: Mapped[Optional[str]] = mapped_column(sa.String(50))
    nhs_band: Mapped[Optional[str]] = mapped_column(sa.String(20))
    years_experience: Mapped[int] = mapped_column(sa.Integer, default=0)
    specializations: Mapped[list] = mapped_column(JSONB, default=list)
    availability: Mapped[list] = mapped_column(JSONB, default=list)
    preferred_locations: Mapped[list] = mapped_column(JSONB, default=list)
    onboarding_status: Mapped[Optional[str]] = mapped_column(sa.String(20))
    onboarding_notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    onboarding_reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )

    # Organisation users
    organisation_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("organisations.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Business support
    department: Mapped[Optional[str]] = mapped_column(sa.String(100))
    permissions: Mapped[dict] = mapped_column(JSONB, default=dict)

    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    organisation: Mapped[Optional[Organisation]] = relationship(
        back_populates="members", lazy="selectin",
    )

    __table_args__ = (
        sa.Index("ix_users_user_type", "user_type"),
        sa.Index("ix_users_onboarding_status", "onboarding_status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User {self.user_type} {self.email}>"
