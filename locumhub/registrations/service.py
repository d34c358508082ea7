"""Registration service — locum sign-ups and client enquiries."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.common.audit import create_audit_entry
from locumhub.common.constants import (
    EnquiryKind,
    EnquiryStatus,
    OnboardingStatus,
    Profession,
    UserType,
)
from locumhub.common.exceptions import ConflictError, NotFoundException
from locumhub.common.pagination import PaginationParams, paginate
from locumhub.notifications.service import (
    NotificationService,
    notify_new_enquiry,
    notify_new_registration,
)
from locumhub.registrations.models import Enquiry
from locumhub.registrations.schemas import (
    AlliedHealthcareRegistration,
    CareHomeEnquiryCreate,
    GPPracticeEnquiryCreate,
    StaffRegistration,
)

logger = logging.getLogger(__name__)


class RegistrationService:
    """Public sign-up flows and the admin view of what came in."""

    @staticmethod
    async def _ensure_email_free(db: AsyncSession, email: str) -> None:
        result = await db.execute(
            select(User.id).where(func.lower(User.email) == email.lower())
        )
        if result.first() is not None:
            raise ConflictError("email", email)

    @staticmethod
    async def _create_staff(db: AsyncSession, **fields) -> User:
        user = User(
            user_type=UserType.staff.value,
            onboarding_status=OnboardingStatus.pending.value,
            is_active=True,
            **fields,
        )
        db.add(user)
        await db.flush()

        await NotificationService.get_preferences(db, user.id)
        await create_audit_entry(
            db,
            action="register",
            entity_type="user",
            entity_id=user.id,
            actor_id=user.id,
            new_values={"email": user.email, "profession": user.profession},
        )
        await notify_new_registration(db, user)
        logger.info("New %s registration %s", user.profession, user.id)
        return user

    # ── Locum staff ─────────────────────────────────────────────────

    @staticmethod
    async def register_staff(db: AsyncSession, data: StaffRegistration) -> User:
        """Create a pending staff account from the locum registration form."""
        await RegistrationService._ensure_email_free(db, data.email)
        body, number = data.registration
        return await RegistrationService._create_staff(
            db,
            email=data.email.lower(),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            phone=data.phone,
            date_of_birth=data.date_of_birth,
            postcode=data.postcode.strip().upper(),
            profession=data.professional_type,
            professional_body=body,
            registration_number=number,
            years_experience=data.years_experience,
            specializations=list(data.specializations),
            availability=list(data.availability),
        )

    @staticmethod
    async def register_allied(
        db: AsyncSession,
        data: AlliedHealthcareRegistration,
    ) -> User:
        """Create a pending staff account from the allied healthcare form."""
        await RegistrationService._ensure_email_free(db, data.email)
        specializations = list(data.specializations)
        if data.profession not in specializations:
            specializations.insert(0, data.profession)
        return await RegistrationService._create_staff(
            db,
            email=data.email.lower(),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            phone=data.phone,
            profession=Profession.allied_healthcare.value,
            professional_body=data.professional_registration_body,
            registration_number=data.professional_registration_number,
            nhs_band=data.nhs_band,
            years_experience=data.years_experience,
            specializations=specializations,
            preferred_locations=list(data.available_locations),
        )

    @staticmethod
    async def recent_registrations(
        db: AsyncSession,
        *,
        hours: int = 24,
        now: Optional[datetime] = None,
    ) -> list[User]:
        """Staff who registered within the last *hours*, newest first."""
        since = (now or datetime.now(timezone.utc)) - timedelta(hours=hours)
        result = await db.execute(
            select(User)
            .where(
                User.user_type == UserType.staff.value,
                User.created_at >= since,
            )
            .order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    # ── Client enquiries ────────────────────────────────────────────

    @staticmethod
    async def create_care_home_enquiry(
        db: AsyncSession,
        data: CareHomeEnquiryCreate,
    ) -> Enquiry:
        enquiry = Enquiry(
            kind=EnquiryKind.care_home.value,
            contact_name=data.manager_name,
            email=data.email,
            organisation_name=data.care_home_name,
            phone=data.contact_phone,
            payload=data.model_dump(
                mode="json",
                exclude={"manager_name", "email", "care_home_name", "contact_phone"},
            ),
        )
        return await RegistrationService._store_enquiry(db, enquiry)

    @staticmethod
    async def create_gp_practice_enquiry(
        db: AsyncSession,
        data: GPPracticeEnquiryCreate,
    ) -> Enquiry:
        enquiry = Enquiry(
            kind=EnquiryKind.gp_practice.value,
            contact_name=data.practice_manager_name,
            email=data.email,
            organisation_name=data.practice_name,
            phone=data.contact_phone,
            postcode=data.postcode.strip().upper(),
            payload=data.model_dump(
                mode="json",
                exclude={
                    "practice_manager_name",
                    "email",
                    "practice_name",
                    "contact_phone",
                    "postcode",
                },
            ),
        )
        return await RegistrationService._store_enquiry(db, enquiry)

    @staticmethod
    async def _store_enquiry(db: AsyncSession, enquiry: Enquiry) -> Enquiry:
        db.add(enquiry)
        await db.flush()
        await notify_new_enquiry(db, enquiry)
        logger.info("New %s enquiry %s", enquiry.kind, enquiry.id)
        return enquiry

    @staticmethod
    async def list_enquiries(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        kind: Optional[EnquiryKind] = None,
        status: Optional[EnquiryStatus] = None,
    ):
        query = select(Enquiry).order_by(Enquiry.created_at.desc())
        if kind is not None:
            query = query.where(Enquiry.kind == kind.value)
        if status is not None:
            query = query.where(Enquiry.status == status.value)
        return await paginate(db, query, pagination, model=Enquiry)

    @staticmethod
    async def update_enquiry(
        db: AsyncSession,
        enquiry_id: uuid.UUID,
        actor_id: uuid.UUID,
        *,
        status: Optional[EnquiryStatus] = None,
        admin_notes: Optional[str] = None,
    ) -> Enquiry:
        enquiry = await db.get(Enquiry, enquiry_id)
        if enquiry is None:
            raise NotFoundException("Enquiry", enquiry_id)

        old = {"status": enquiry.status, "admin_notes": enquiry.admin_notes}
        if status is not None:
            enquiry.status = status.value
        if admin_notes is not None:
            enquiry.admin_notes = admin_notes
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="enquiry",
            entity_id=enquiry.id,
            actor_id=actor_id,
            old_values=old,
            new_values={"status": enquiry.status, "admin_notes": enquiry.admin_notes},
        )
        return enquiry
