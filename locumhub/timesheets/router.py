"""Timesheets router — weekly hours, submission and manager review."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import get_current_user
from locumhub.common.constants import TimesheetStatus
from locumhub.common.pagination import PaginatedResponse, PaginationParams, page_of
from locumhub.database import get_db
from locumhub.timesheets.schemas import (
    TimesheetCreate,
    TimesheetOut,
    TimesheetReviewRequest,
    TimesheetStatsOut,
    TimesheetUpdate,
)
from locumhub.timesheets.service import TimesheetService

router = APIRouter(prefix="", tags=["timesheets"])


@router.get("", response_model=PaginatedResponse[TimesheetOut])
async def list_timesheets(
    status: Optional[TimesheetStatus] = Query(None),
    staff_id: Optional[uuid.UUID] = Query(None),
    organisation_id: Optional[uuid.UUID] = Query(None),
    week_start_from: Optional[date] = Query(None),
    week_start_to: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Timesheets visible to the caller: own, organisation's, or all."""
    result = await TimesheetService.list_timesheets(
        db,
        user,
        pagination,
        status=status,
        staff_id=staff_id,
        organisation_id=organisation_id,
        week_start_from=week_start_from,
        week_start_to=week_start_to,
    )
    return page_of(result, TimesheetOut)


@router.get("/stats", response_model=TimesheetStatsOut)
async def timesheet_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TimesheetService.stats(db, user)


@router.post("", response_model=TimesheetOut, status_code=201)
async def create_timesheet(
    body: TimesheetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TimesheetService.create_timesheet(db, user, body)


@router.get("/{timesheet_id}", response_model=TimesheetOut)
async def get_timesheet(
    timesheet_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    timesheet = await TimesheetService.get_timesheet(db, timesheet_id)
    TimesheetService.assert_visible(user, timesheet)
    return timesheet


@router.patch("/{timesheet_id}", response_model=TimesheetOut)
async def update_timesheet(
    timesheet_id: uuid.UUID,
    body: TimesheetUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    timesheet = await TimesheetService.get_timesheet(db, timesheet_id)
    return await TimesheetService.update_timesheet(
        db, user, timesheet, daily_hours=body.daily_hours, shift_id=body.shift_id,
    )


@router.post("/{timesheet_id}/submit", response_model=TimesheetOut)
async def submit_timesheet(
    timesheet_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    timesheet = await TimesheetService.get_timesheet(db, timesheet_id)
    return await TimesheetService.submit(db, user, timesheet)


@router.post("/{timesheet_id}/review", response_model=TimesheetOut)
async def review_timesheet(
    timesheet_id: uuid.UUID,
    body: TimesheetReviewRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject; organisation managers, admins and permitted support staff."""
    timesheet = await TimesheetService.get_timesheet(db, timesheet_id)
    return await TimesheetService.review(db, user, timesheet, body)


@router.delete("/{timesheet_id}", status_code=204)
async def delete_timesheet(
    timesheet_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    timesheet = await TimesheetService.get_timesheet(db, timesheet_id)
    await TimesheetService.delete_timesheet(db, user, timesheet)
