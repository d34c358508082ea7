"""Onboarding service — admin review of newly registered locum staff."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.common.audit import create_audit_entry
from locumhub.common.constants import (
    DocumentEntityType,
    DocumentStatus,
    OnboardingStatus,
    UserType,
)
from locumhub.common.exceptions import NotFoundException, ValidationException
from locumhub.documents.models import Document
from locumhub.documents.service import DocumentService
from locumhub.notifications.service import notify_onboarding_decision
from locumhub.onboarding.schemas import OnboardingReviewRequest

logger = logging.getLogger(__name__)


class OnboardingService:

    @staticmethod
    async def get_applicant(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None or user.user_type != UserType.staff.value:
            raise NotFoundException("Staff member", user_id)
        return user

    @staticmethod
    async def pending_applicants(db: AsyncSession) -> list[tuple[User, list[Document]]]:
        """Staff awaiting review, oldest registration first, with their documents."""
        result = await db.execute(
            select(User)
            .where(
                User.user_type == UserType.staff.value,
                User.onboarding_status == OnboardingStatus.pending.value,
            )
            .order_by(User.created_at.asc())
        )
        applicants = list(result.scalars().all())
        if not applicants:
            return []

        docs = await db.execute(
            select(Document)
            .where(
                Document.entity_type == DocumentEntityType.staff.value,
                Document.entity_id.in_([u.id for u in applicants]),
                Document.status != DocumentStatus.archived.value,
            )
            .order_by(Document.created_at.asc())
        )
        by_owner: dict[uuid.UUID, list[Document]] = {}
        for document in docs.scalars().all():
            by_owner.setdefault(document.entity_id, []).append(document)
        return [(u, by_owner.get(u.id, [])) for u in applicants]

    @staticmethod
    async def review(
        db: AsyncSession,
        user_id: uuid.UUID,
        body: OnboardingReviewRequest,
        *,
        reviewer_id: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> tuple[User, list[Document]]:
        """Apply per-document decisions, then approve or reject the applicant.

        Approval needs at least one document and every current document verified.
        """
        applicant = await OnboardingService.get_applicant(db, user_id)
        documents = await DocumentService.list_for_entity(
            db, DocumentEntityType.staff, applicant.id,
        )
        owned = {d.id: d for d in documents}

        for document_id, decision in body.document_reviews.items():
            document = owned.get(document_id)
            if document is None:
                raise ValidationException(
                    {"document_reviews": [f"Document {document_id} does not belong to this applicant."]}
                )
            if decision.status not in (DocumentStatus.verified, DocumentStatus.rejected):
                raise ValidationException(
                    {"document_reviews": ["Document decisions must be 'verified' or 'rejected'."]}
                )
            if decision.notes is not None:
                document.notes = decision.notes
            await DocumentService.change_status(
                db, document, decision.status, actor_id=reviewer_id, reason=decision.notes,
            )

        approved = body.action == "approve"
        if approved:
            if not documents:
                raise ValidationException(
                    {"documents": ["The applicant has not uploaded any documents."]}
                )
            outstanding = [
                d.document_type for d in documents if d.status != DocumentStatus.verified.value
            ]
            if outstanding:
                raise ValidationException(
                    {"documents": [f"Not yet verified: {', '.join(sorted(outstanding))}."]}
                )

        old_status = applicant.onboarding_status
        applicant.onboarding_status = (
            OnboardingStatus.approved.value if approved else OnboardingStatus.rejected.value
        )
        applicant.onboarding_notes = body.notes
        applicant.onboarding_reviewed_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action=body.action,
            entity_type="onboarding",
            entity_id=applicant.id,
            actor_id=reviewer_id,
            old_values={"onboarding_status": old_status},
            new_values={"onboarding_status": applicant.onboarding_status, "notes": body.notes},
            ip_address=ip_address,
        )
        await notify_onboarding_decision(db, applicant, approved=approved, notes=body.notes)

        logger.info("Onboarding for %s: %s", applicant.id, applicant.onboarding_status)
        return applicant, documents
