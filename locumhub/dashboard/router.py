"""Dashboard router — admin console KPI cards and the audit log."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import require_permission, require_user_type
from locumhub.common.constants import AccessLevel, SystemTab, UserType
from locumhub.common.pagination import PaginatedResponse, PaginationParams
from locumhub.dashboard.schemas import AuditLogItem, DashboardStatsResponse
from locumhub.dashboard.service import DashboardService
from locumhub.database import get_db

router = APIRouter(prefix="", tags=["dashboard"])


# ── GET /stats ──────────────────────────────────────────────────────

@router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    user: User = Depends(require_permission(SystemTab.dashboard, AccessLevel.read)),
    db: AsyncSession = Depends(get_db),
):
    """KPI cards: users, onboarding queue, documents, shifts, timesheets, enquiries."""
    return await DashboardService.get_stats(db, user.id)


# ── GET /audit-logs ─────────────────────────────────────────────────

@router.get("/audit-logs", response_model=PaginatedResponse[AuditLogItem])
async def audit_logs(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[uuid.UUID] = Query(None),
    actor_id: Optional[uuid.UUID] = Query(None),
    action: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_user_type(UserType.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.get_audit_logs(
        db,
        pagination,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_id=actor_id,
        action=action,
    )
