"""Dashboard service — read-only aggregation queries across modules.

COUNT / GROUP BY at DB level, no N+1.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from locumhub.accounts.models import User
from locumhub.common.audit import AuditTrail
from locumhub.common.constants import (
    TIMEZONE,
    DocumentStatus,
    EnquiryStatus,
    OnboardingStatus,
    ShiftStatus,
    TimesheetStatus,
    UserType,
)
from locumhub.common.filters import apply_filters
from locumhub.common.pagination import PaginatedResponse, PaginationParams, build_meta
from locumhub.dashboard.schemas import AuditLogItem, DashboardStatsResponse
from locumhub.documents.models import Document
from locumhub.notifications.service import NotificationService
from locumhub.registrations.models import Enquiry
from locumhub.shifts.models import Shift
from locumhub.timesheets.models import Timesheet


def _today() -> date:
    """Current date in UK local time."""
    return datetime.now(ZoneInfo(TIMEZONE)).date()


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar_one()


async def _grouped(db: AsyncSession, column) -> dict[str, int]:
    rows = (await db.execute(select(column, func.count()).group_by(column))).all()
    return {key: count for key, count in rows if key is not None}


class DashboardService:
    """Async dashboard aggregation queries."""

    # ═════════════════════════════════════════════════════════════════
    # GET /stats
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_stats(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        today: Optional[date] = None,
    ) -> DashboardStatsResponse:
        today = today or _today()

        users_by_type = {t.value: 0 for t in UserType}
        users_by_type.update(await _grouped(db, User.user_type))

        documents_by_status = {s.value: 0 for s in DocumentStatus}
        documents_by_status.update(await _grouped(db, Document.status))

        pending_onboarding = await _count(
            db,
            select(func.count(User.id)).where(
                User.user_type == UserType.staff.value,
                User.onboarding_status == OnboardingStatus.pending.value,
            ),
        )
        expiring = await _count(
            db,
            select(func.count(Document.id)).where(
                Document.status == DocumentStatus.verified.value,
                Document.expiry_date >= today,
                Document.expiry_date <= today + timedelta(days=30),
            ),
        )
        open_filter = (
            Shift.status == ShiftStatus.open.value,
            Shift.shift_date >= today,
        )
        open_shifts = await _count(db, select(func.count(Shift.id)).where(*open_filter))
        urgent = await _count(
            db, select(func.count(Shift.id)).where(*open_filter, Shift.is_urgent.is_(True)),
        )
        awaiting = await _count(
            db,
            select(func.count(Timesheet.id)).where(
                Timesheet.status == TimesheetStatus.pending_manager_approval.value,
            ),
        )
        new_enquiries = await _count(
            db,
            select(func.count(Enquiry.id)).where(Enquiry.status == EnquiryStatus.new.value),
        )

        return DashboardStatsResponse(
            users_by_type=users_by_type,
            pending_onboarding=pending_onboarding,
            documents_by_status=documents_by_status,
            documents_expiring_30_days=expiring,
            open_shifts=open_shifts,
            urgent_open_shifts=urgent,
            timesheets_awaiting_approval=awaiting,
            unread_notifications=await NotificationService.get_unread_count(db, user_id),
            new_enquiries=new_enquiries,
        )

    # ═════════════════════════════════════════════════════════════════
    # GET /audit-logs
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_audit_logs(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
        actor_id: Optional[uuid.UUID] = None,
        action: Optional[str] = None,
    ) -> PaginatedResponse:
        """Audit trail newest first, with the actor's name when known."""
        Actor = aliased(User, flat=True)
        filters = {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "actor_id": actor_id,
            "action": action,
        }

        total = await _count(
            db,
            apply_filters(select(func.count(AuditTrail.id)), AuditTrail, filters),
        )

        query = (
            select(AuditTrail, Actor.first_name, Actor.last_name)
            .outerjoin(Actor, AuditTrail.actor_id == Actor.id)
            .order_by(AuditTrail.created_at.desc())
        )
        query = apply_filters(query, AuditTrail, filters)

        rows = (
            await db.execute(query.offset(pagination.offset).limit(pagination.page_size))
        ).all()
        items = [
            AuditLogItem(
                id=entry.id,
                action=entry.action,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                actor_id=entry.actor_id,
                actor_name=f"{first} {last}".strip() if first else None,
                old_values=entry.old_values,
                new_values=entry.new_values,
                ip_address=str(entry.ip_address) if entry.ip_address else None,
                created_at=entry.created_at,
            )
            for entry, first, last in rows
        ]
        return PaginatedResponse(data=items, meta=build_meta(total, pagination))
