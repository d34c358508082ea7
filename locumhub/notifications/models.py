"""Notification ORM models: in-app notifications and per-user delivery preferences."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from locumhub.common.audit import TimestampMixin, utcnow
from locumhub.common.constants import NotificationPriority, NotificationType
from locumhub.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        sa.String(30), nullable=False, default=NotificationType.info.value,
    )
    priority: Mapped[str] = mapped_column(
        sa.String(10), nullable=False, default=NotificationPriority.medium.value,
    )
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    message: Mapped[str] = mapped_column(sa.Text, nullable=False)
    action_url: Mapped[Optional[str]] = mapped_column(sa.String(500))
    entity_type: Mapped[Optional[str]] = mapped_column(sa.String(50))
    entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))
    data: Mapped[dict] = mapped_column(JSONB, default=dict)
    is_read: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow,
    )

    __table_args__ = (
        sa.Index("ix_notifications_recipient_unread", "recipient_id", "is_read"),
    )


class NotificationPreference(Base, TimestampMixin):
    """Email / push opt-ins per topic. One row per user."""

    __tablename__ = "notification_preferences"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    daily_shift_updates_email: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    daily_shift_updates_push: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    emergency_shifts_email: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    emergency_shifts_push: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    permanent_jobs_email: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    permanent_jobs_push: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    shift_application_updates_email: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    shift_application_updates_push: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    profile_alerts_email: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    profile_alerts_push: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    important_news_email: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    important_news_push: Mapped[bool] = mapped_column(sa.Boolean, default=False)
