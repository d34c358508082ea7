"""Timesheet service — weekly hours, submission and manager approval."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import Organisation, User
from locumhub.auth.dependencies import has_permission
from locumhub.common.audit import create_audit_entry
from locumhub.common.constants import (
    ORGANISATION_USER_TYPES,
    AccessLevel,
    SystemTab,
    TimesheetStatus,
    UserType,
)
from locumhub.common.exceptions import (
    ConflictError,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from locumhub.common.filters import apply_filters
from locumhub.common.pagination import PaginatedResponse, PaginationParams, paginate
from locumhub.notifications.service import (
    notify_timesheet_reviewed,
    notify_timesheet_submitted,
    organisation_contact_ids,
)
from locumhub.timesheets.models import Timesheet
from locumhub.timesheets.schemas import (
    DailyHours,
    TimesheetCreate,
    TimesheetReviewRequest,
    TimesheetStatsOut,
)

logger = logging.getLogger(__name__)

_EDITABLE = (TimesheetStatus.draft.value, TimesheetStatus.rejected.value)
_ORG_TYPES = {t.value for t in ORGANISATION_USER_TYPES}


def _hours_json(hours: DailyHours) -> dict[str, str]:
    return {day: str(value) for day, value in hours.model_dump().items()}


class TimesheetService:

    # ── Scope helpers ────────────────────────────────────────────────

    @staticmethod
    def can_review(user: User, timesheet: Timesheet) -> bool:
        if has_permission(user, SystemTab.timesheets, AccessLevel.write):
            return True
        return (
            user.user_type in _ORG_TYPES
            and user.organisation_id is not None
            and user.organisation_id == timesheet.organisation_id
        )

    @staticmethod
    def assert_visible(user: User, timesheet: Timesheet) -> None:
        if timesheet.staff_id == user.id:
            return
        if has_permission(user, SystemTab.timesheets, AccessLevel.read):
            return
        if TimesheetService.can_review(user, timesheet):
            return
        raise ForbiddenException("You do not have access to this timesheet.")

    @staticmethod
    def _assert_owner(user: User, timesheet: Timesheet) -> None:
        if timesheet.staff_id != user.id and not has_permission(
            user, SystemTab.timesheets, AccessLevel.write,
        ):
            raise ForbiddenException("Only the timesheet owner can change it.")

    @staticmethod
    def _scoped(query, user: User):
        """Staff see their own, organisations theirs, admins / support everything."""
        if has_permission(user, SystemTab.timesheets, AccessLevel.read):
            return query
        if user.user_type in _ORG_TYPES:
            return query.where(Timesheet.organisation_id == user.organisation_id)
        return query.where(Timesheet.staff_id == user.id)

    # ── CRUD ─────────────────────────────────────────────────────────

    @staticmethod
    async def get_timesheet(db: AsyncSession, timesheet_id: uuid.UUID) -> Timesheet:
        timesheet = await db.get(Timesheet, timesheet_id)
        if timesheet is None:
            raise NotFoundException("Timesheet", timesheet_id)
        return timesheet

    @staticmethod
    async def create_timesheet(
        db: AsyncSession,
        user: User,
        data: TimesheetCreate,
    ) -> Timesheet:
        """Create a draft timesheet for the week starting ``data.week_start``."""
        if user.user_type == UserType.staff.value:
            staff_id = user.id
        elif has_permission(user, SystemTab.timesheets, AccessLevel.write):
            if data.staff_id is None:
                raise ValidationException({"staff_id": ["staff_id is required."]})
            staff = await db.get(User, data.staff_id)
            if staff is None or staff.user_type != UserType.staff.value:
                raise NotFoundException("Staff member", data.staff_id)
            staff_id = staff.id
        else:
            raise ForbiddenException("Only staff members can create timesheets.")

        if await db.get(Organisation, data.organisation_id) is None:
            raise NotFoundException("Organisation", data.organisation_id)

        existing = await db.execute(
            select(Timesheet.id).where(
                Timesheet.staff_id == staff_id,
                Timesheet.organisation_id == data.organisation_id,
                Timesheet.week_start == data.week_start,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("week_start", data.week_start.isoformat())

        timesheet = Timesheet(
            staff_id=staff_id,
            organisation_id=data.organisation_id,
            shift_id=data.shift_id,
            week_start=data.week_start,
            week_end=data.week_start + timedelta(days=6),
            daily_hours=_hours_json(data.daily_hours),
            total_hours=data.daily_hours.total,
            status=TimesheetStatus.draft.value,
        )
        db.add(timesheet)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="timesheet",
            entity_id=timesheet.id,
            actor_id=user.id,
            new_values={"week_start": timesheet.week_start, "total_hours": timesheet.total_hours},
        )
        return timesheet

    @staticmethod
    async def update_timesheet(
        db: AsyncSession,
        user: User,
        timesheet: Timesheet,
        *,
        daily_hours: Optional[DailyHours] = None,
        shift_id: Optional[uuid.UUID] = None,
    ) -> Timesheet:
        """Edit a draft or rejected timesheet; a rejected one goes back to draft."""
        TimesheetService._assert_owner(user, timesheet)
        if timesheet.status not in _EDITABLE:
            raise ValidationException(
                {"status": [f"Cannot edit a timesheet with status '{timesheet.status}'."]}
            )

        old = {"total_hours": timesheet.total_hours, "status": timesheet.status}
        if daily_hours is not None:
            timesheet.daily_hours = _hours_json(daily_hours)
            timesheet.total_hours = daily_hours.total
        if shift_id is not None:
            timesheet.shift_id = shift_id
        if timesheet.status == TimesheetStatus.rejected.value:
            timesheet.status = TimesheetStatus.draft.value
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="timesheet",
            entity_id=timesheet.id,
            actor_id=user.id,
            old_values=old,
            new_values={"total_hours": timesheet.total_hours, "status": timesheet.status},
        )
        return timesheet

    @staticmethod
    async def delete_timesheet(db: AsyncSession, user: User, timesheet: Timesheet) -> None:
        TimesheetService._assert_owner(user, timesheet)
        if timesheet.status != TimesheetStatus.draft.value:
            raise ValidationException({"status": ["Only draft timesheets can be deleted."]})
        await create_audit_entry(
            db,
            action="delete",
            entity_type="timesheet",
            entity_id=timesheet.id,
            actor_id=user.id,
            old_values={"week_start": timesheet.week_start, "total_hours": timesheet.total_hours},
        )
        await db.delete(timesheet)
        await db.flush()

    # ── Workflow ─────────────────────────────────────────────────────

    @staticmethod
    async def submit(db: AsyncSession, user: User, timesheet: Timesheet) -> Timesheet:
        """Send a draft (or corrected rejected) timesheet for manager approval."""
        TimesheetService._assert_owner(user, timesheet)
        if timesheet.status not in _EDITABLE:
            raise InvalidTransitionException(
                "Timesheet", timesheet.status, TimesheetStatus.pending_manager_approval.value,
            )
        if Decimal(timesheet.total_hours or 0) <= 0:
            raise ValidationException(
                {"daily_hours": ["A timesheet must record some hours before submission."]}
            )

        old_status = timesheet.status
        timesheet.status = TimesheetStatus.pending_manager_approval.value
        timesheet.submitted_at = datetime.now(timezone.utc)
        timesheet.approved_at = None
        timesheet.approved_by_id = None
        await db.flush()

        await create_audit_entry(
            db,
            action="submit",
            entity_type="timesheet",
            entity_id=timesheet.id,
            actor_id=user.id,
            old_values={"status": old_status},
            new_values={"status": timesheet.status},
        )
        await notify_timesheet_submitted(
            db, timesheet, await organisation_contact_ids(db, timesheet.organisation_id),
        )
        logger.info("Timesheet %s submitted (%s hours)", timesheet.id, timesheet.total_hours)
        return timesheet

    @staticmethod
    async def review(
        db: AsyncSession,
        user: User,
        timesheet: Timesheet,
        body: TimesheetReviewRequest,
    ) -> Timesheet:
        """Approve or reject a submitted timesheet."""
        if not TimesheetService.can_review(user, timesheet):
            raise ForbiddenException("Only the organisation's managers can review this timesheet.")
        target = (
            TimesheetStatus.approved if body.action == "approve" else TimesheetStatus.rejected
        )
        if timesheet.status != TimesheetStatus.pending_manager_approval.value:
            raise InvalidTransitionException("Timesheet", timesheet.status, target.value)

        old_status = timesheet.status
        timesheet.status = target.value
        timesheet.approved_notes = body.notes
        timesheet.approved_by_id = user.id
        timesheet.approved_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action=body.action,
            entity_type="timesheet",
            entity_id=timesheet.id,
            actor_id=user.id,
            old_values={"status": old_status},
            new_values={"status": target.value, "notes": body.notes},
        )
        await notify_timesheet_reviewed(db, timesheet)
        logger.info("Timesheet %s %s by %s", timesheet.id, target.value, user.id)
        return timesheet

    # ── Listing ──────────────────────────────────────────────────────

    @staticmethod
    async def list_timesheets(
        db: AsyncSession,
        user: User,
        pagination: PaginationParams,
        *,
        status: Optional[TimesheetStatus] = None,
        staff_id: Optional[uuid.UUID] = None,
        organisation_id: Optional[uuid.UUID] = None,
        week_start_from: Optional[date] = None,
        week_start_to: Optional[date] = None,
    ) -> PaginatedResponse:
        query = select(Timesheet).order_by(Timesheet.week_start.desc(), Timesheet.created_at.desc())
        query = TimesheetService._scoped(query, user)
        query = apply_filters(
            query,
            Timesheet,
            {
                "status": status.value if status else None,
                "staff_id": staff_id,
                "organisation_id": organisation_id,
                "week_start__from": week_start_from,
                "week_start__to": week_start_to,
            },
        )
        return await paginate(db, query, pagination, model=Timesheet)

    @staticmethod
    async def stats(db: AsyncSession, user: User) -> TimesheetStatsOut:
        query = TimesheetService._scoped(
            select(Timesheet.status, func.count(), func.coalesce(func.sum(Timesheet.total_hours), 0))
            .group_by(Timesheet.status),
            user,
        )
        rows = (await db.execute(query)).all()

        by_status = {s.value: 0 for s in TimesheetStatus}
        hours = {s.value: Decimal("0") for s in TimesheetStatus}
        for status, count, total in rows:
            by_status[status] = count
            hours[status] = Decimal(str(total))
        return TimesheetStatsOut(
            total=sum(by_status.values()),
            by_status=by_status,
            approved_hours=hours[TimesheetStatus.approved.value],
            pending_hours=hours[TimesheetStatus.pending_manager_approval.value],
        )
