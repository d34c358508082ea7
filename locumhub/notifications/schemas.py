"""Notification Pydantic schemas for request / response validation."""


import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from locumhub.common.constants import NotificationPriority, NotificationType, UserType
from locumhub.common.pagination import PaginationMeta


# ── Responses ───────────────────────────────────────────────────────

class NotificationResponse(BaseModel):
    """Single notification in API responses."""

    id: uuid.UUID
    type: NotificationType
    priority: NotificationPriority
    title: str
    message: str
    action_url: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[uuid.UUID] = None
    data: dict[str, Any] = {}
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListMeta(PaginationMeta):
    """Extends standard pagination meta with unread count."""

    unread: int


class NotificationListResponse(BaseModel):
    """Paginated list of notifications with unread count in meta."""

    data: list[NotificationResponse]
    meta: NotificationListMeta


# ── Preferences ─────────────────────────────────────────────────────

class NotificationPreferencesOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    daily_shift_updates_email: bool
    daily_shift_updates_push: bool
    emergency_shifts_email: bool
    emergency_shifts_push: bool
    permanent_jobs_email: bool
    permanent_jobs_push: bool
    shift_application_updates_email: bool
    shift_application_updates_push: bool
    profile_alerts_email: bool
    profile_alerts_push: bool
    important_news_email: bool
    important_news_push: bool


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; omitted toggles keep their value."""

    daily_shift_updates_email: Optional[bool] = None
    daily_shift_updates_push: Optional[bool] = None
    emergency_shifts_email: Optional[bool] = None
    emergency_shifts_push: Optional[bool] = None
    permanent_jobs_email: Optional[bool] = None
    permanent_jobs_push: Optional[bool] = None
    shift_application_updates_email: Optional[bool] = None
    shift_application_updates_push: Optional[bool] = None
    profile_alerts_email: Optional[bool] = None
    profile_alerts_push: Optional[bool] = None
    important_news_email: Optional[bool] = None
    important_news_push: Optional[bool] = None


# ── Broadcast ───────────────────────────────────────────────────────

class BroadcastRequest(BaseModel):
    """Send one message to a user type or an explicit list of users."""

    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.system_alert
    priority: NotificationPriority = NotificationPriority.medium
    user_type: Optional[UserType] = None
    recipient_ids: list[uuid.UUID] = Field(default_factory=list)
    action_url: Optional[str] = Field(None, max_length=500)
