"""Registration endpoints — public sign-up and enquiry forms, admin follow-up.

The four form endpoints are unauthenticated and rate limited per client IP.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.accounts.schemas import StaffProfileOut
from locumhub.auth.dependencies import require_permission
from locumhub.common.constants import AccessLevel, EnquiryKind, EnquiryStatus, SystemTab
from locumhub.common.pagination import PaginatedResponse, PaginationParams, page_of
from locumhub.common.rate_limit import PUBLIC_FORM_LIMIT, limiter
from locumhub.database import get_db
from locumhub.registrations.schemas import (
    AlliedHealthcareRegistration,
    CareHomeEnquiryCreate,
    EnquiryOut,
    EnquiryUpdate,
    GPPracticeEnquiryCreate,
    RegistrationOut,
    StaffRegistration,
)
from locumhub.registrations.service import RegistrationService

router = APIRouter(prefix="", tags=["registrations"])


# ── Public forms ────────────────────────────────────────────────────

@router.post("/staff", response_model=RegistrationOut, status_code=201)
@limiter.limit(PUBLIC_FORM_LIMIT)
async def register_staff(
    request: Request,
    body: StaffRegistration,
    db: AsyncSession = Depends(get_db),
):
    """Register a GP, nurse practitioner or clinical pharmacist."""
    return await RegistrationService.register_staff(db, body)


@router.post("/allied-healthcare", response_model=RegistrationOut, status_code=201)
@limiter.limit(PUBLIC_FORM_LIMIT)
async def register_allied(
    request: Request,
    body: AlliedHealthcareRegistration,
    db: AsyncSession = Depends(get_db),
):
    """Register an allied healthcare professional."""
    return await RegistrationService.register_allied(db, body)


@router.post("/care-home-enquiry", response_model=EnquiryOut, status_code=201)
@limiter.limit(PUBLIC_FORM_LIMIT)
async def care_home_enquiry(
    request: Request,
    body: CareHomeEnquiryCreate,
    db: AsyncSession = Depends(get_db),
):
    return await RegistrationService.create_care_home_enquiry(db, body)


@router.post("/gp-practice-enquiry", response_model=EnquiryOut, status_code=201)
@limiter.limit(PUBLIC_FORM_LIMIT)
async def gp_practice_enquiry(
    request: Request,
    body: GPPracticeEnquiryCreate,
    db: AsyncSession = Depends(get_db),
):
    return await RegistrationService.create_gp_practice_enquiry(db, body)


# ── Admin follow-up ─────────────────────────────────────────────────

@router.get("/recent", response_model=list[StaffProfileOut])
async def recent_registrations(
    hours: int = Query(24, ge=1, le=24 * 30),
    user: User = Depends(require_permission(SystemTab.users, AccessLevel.read)),
    db: AsyncSession = Depends(get_db),
):
    """Staff registered in the last *hours* (admin notification centre)."""
    return await RegistrationService.recent_registrations(db, hours=hours)


@router.get("/enquiries", response_model=PaginatedResponse[EnquiryOut])
async def list_enquiries(
    kind: Optional[EnquiryKind] = Query(None),
    status: Optional[EnquiryStatus] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission(SystemTab.care_homes, AccessLevel.read)),
    db: AsyncSession = Depends(get_db),
):
    result = await RegistrationService.list_enquiries(
        db, pagination, kind=kind, status=status,
    )
    return page_of(result, EnquiryOut)


@router.patch("/enquiries/{enquiry_id}", response_model=EnquiryOut)
async def update_enquiry(
    enquiry_id: uuid.UUID,
    body: EnquiryUpdate,
    user: User = Depends(require_permission(SystemTab.care_homes, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    return await RegistrationService.update_enquiry(
        db,
        enquiry_id,
        user.id,
        status=body.status,
        admin_notes=body.admin_notes,
    )
