"""Shifts router — shift lifecycle and manual allocation tooling."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import get_current_user, has_permission
from locumhub.common.constants import AccessLevel, Profession, ShiftStatus, SystemTab
from locumhub.common.pagination import PaginatedResponse, PaginationParams, page_of
from locumhub.database import get_db
from locumhub.shifts.schemas import (
    AllocationReportOut,
    AllocationResponseRequest,
    ShiftAssignRequest,
    ShiftCancelRequest,
    ShiftCreate,
    ShiftOut,
)
from locumhub.shifts.service import DEFAULT_CANDIDATE_LIMIT, ShiftService

router = APIRouter(prefix="", tags=["shifts"])


@router.post("", response_model=ShiftOut, status_code=201)
async def create_shift(
    body: ShiftCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Post a shift; urgent shifts alert admins and business support."""
    return await ShiftService.create_shift(db, user, body)


@router.get("", response_model=PaginatedResponse[ShiftOut])
async def list_shifts(
    status: Optional[ShiftStatus] = Query(None),
    organisation_id: Optional[uuid.UUID] = Query(None),
    role: Optional[Profession] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    is_urgent: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await ShiftService.list_shifts(
        db,
        user,
        pagination,
        status=status,
        organisation_id=organisation_id,
        role=role.value if role else None,
        date_from=date_from,
        date_to=date_to,
        is_urgent=is_urgent,
    )
    return page_of(result, ShiftOut)


@router.get("/open", response_model=list[ShiftOut])
async def open_shifts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.open_shifts(db, user)


@router.get("/mine", response_model=list[ShiftOut])
async def my_shifts(
    include_past: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The current locum's booked and allocated shifts."""
    return await ShiftService.my_shifts(db, user, include_past=include_past)


@router.post("/allocation-response", response_model=AllocationReportOut)
async def allocation_response(
    body: AllocationResponseRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record the outcome of contacting a candidate; ``accepted`` books the shift."""
    return await ShiftService.record_response(db, user, body)


@router.get("/{shift_id}", response_model=ShiftOut)
async def get_shift(
    shift_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    shift = await ShiftService.get_shift(db, shift_id)
    if shift.assigned_staff_id != user.id and not has_permission(
        user, SystemTab.shifts, AccessLevel.read,
    ):
        ShiftService._assert_manage(user, shift)
    return shift


@router.post("/{shift_id}/cancel", response_model=ShiftOut)
async def cancel_shift(
    shift_id: uuid.UUID,
    body: Optional[ShiftCancelRequest] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    shift = await ShiftService.get_shift(db, shift_id)
    return await ShiftService.cancel_shift(db, user, shift, body.reason if body else None)


@router.post("/{shift_id}/assign", response_model=ShiftOut)
async def assign_shift(
    shift_id: uuid.UUID,
    body: ShiftAssignRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    shift = await ShiftService.get_shift(db, shift_id)
    return await ShiftService.assign_shift(db, user, shift, body.staff_id)


@router.post("/{shift_id}/book", response_model=ShiftOut)
async def book_shift(
    shift_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Book an open shift for the current locum."""
    shift = await ShiftService.get_shift(db, shift_id)
    return await ShiftService.book_shift(db, user, shift)


@router.post("/{shift_id}/release", response_model=ShiftOut)
async def release_shift(
    shift_id: uuid.UUID,
    body: Optional[ShiftCancelRequest] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel the current locum's booking; the shift reopens."""
    shift = await ShiftService.get_shift(db, shift_id)
    return await ShiftService.release_shift(db, user, shift, body.reason if body else None)


@router.post("/{shift_id}/allocation-report/generate", response_model=AllocationReportOut)
async def generate_allocation_report(
    shift_id: uuid.UUID,
    limit: int = Query(DEFAULT_CANDIDATE_LIMIT, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Score eligible staff for the shift and store the ranked list."""
    shift = await ShiftService.get_shift(db, shift_id)
    ShiftService._assert_manage(user, shift)
    return await ShiftService.generate_report(db, user, shift, limit=limit)


@router.get("/{shift_id}/allocation-report", response_model=AllocationReportOut)
async def get_allocation_report(
    shift_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    shift = await ShiftService.get_shift(db, shift_id)
    if not has_permission(user, SystemTab.shifts, AccessLevel.read):
        ShiftService._assert_manage(user, shift)
    return await ShiftService.get_report(db, shift.id)
