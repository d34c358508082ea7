"""Onboarding review schemas."""

import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from locumhub.accounts.schemas import StaffProfileOut
from locumhub.documents.schemas import DocumentOut, DocumentReview


class PendingApplicantOut(StaffProfileOut):
    """A pending applicant together with the documents they uploaded."""

    documents: list[DocumentOut] = []


class OnboardingReviewRequest(BaseModel):
    action: Literal["approve", "reject"]
    notes: Optional[str] = Field(None, max_length=5000)
    document_reviews: dict[uuid.UUID, DocumentReview] = {}

    @model_validator(mode="after")
    def _reject_needs_notes(self) -> "OnboardingReviewRequest":
        if self.action == "reject" and not (self.notes or "").strip():
            raise ValueError("Notes are required when rejecting an application")
        return self


class OnboardingReviewOut(BaseModel):
    applicant: StaffProfileOut
    documents: list[DocumentOut]
