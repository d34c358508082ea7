"""Onboarding router — pending applicants and the approve / reject review."""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.accounts.schemas import StaffProfileOut
from locumhub.auth.dependencies import require_permission
from locumhub.common.constants import AccessLevel, SystemTab
from locumhub.database import get_db
from locumhub.documents.schemas import DocumentOut
from locumhub.onboarding.schemas import (
    OnboardingReviewOut,
    OnboardingReviewRequest,
    PendingApplicantOut,
)
from locumhub.onboarding.service import OnboardingService

router = APIRouter(prefix="", tags=["onboarding"])


@router.get("/pending", response_model=list[PendingApplicantOut])
async def pending_applicants(
    user: User = Depends(require_permission(SystemTab.users, AccessLevel.read)),
    db: AsyncSession = Depends(get_db),
):
    rows = await OnboardingService.pending_applicants(db)
    return [
        PendingApplicantOut(
            **StaffProfileOut.model_validate(applicant).model_dump(),
            documents=[DocumentOut.model_validate(d) for d in documents],
        )
        for applicant, documents in rows
    ]


@router.post("/review/{user_id}", response_model=OnboardingReviewOut)
async def review_applicant(
    user_id: uuid.UUID,
    body: OnboardingReviewRequest,
    request: Request,
    user: User = Depends(require_permission(SystemTab.users, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject an applicant, applying any per-document decisions first."""
    ip = request.client.host if request.client else None
    applicant, documents = await OnboardingService.review(
        db, user_id, body, reviewer_id=user.id, ip_address=ip,
    )
    return OnboardingReviewOut(
        applicant=StaffProfileOut.model_validate(applicant),
        documents=[DocumentOut.model_validate(d) for d in documents],
    )
