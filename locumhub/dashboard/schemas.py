"""Dashboard Pydantic v2 schemas — admin console KPI cards and audit log."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class DashboardStatsResponse(BaseModel):
    """Top-level KPI cards for the admin console."""

    users_by_type: dict[str, int] = Field(default_factory=dict)
    pending_onboarding: int = Field(..., description="Staff awaiting onboarding review")
    documents_by_status: dict[str, int] = Field(default_factory=dict)
    documents_expiring_30_days: int
    open_shifts: int
    urgent_open_shifts: int
    timesheets_awaiting_approval: int
    unread_notifications: int = Field(..., description="Unread notifications for the caller")
    new_enquiries: int


class AuditLogItem(BaseModel):
    id: uuid.UUID
    action: str
    entity_type: str
    entity_id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    actor_name: Optional[str] = None
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: datetime
