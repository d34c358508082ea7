"""Compliance service — tracker summaries, expiry sweep, compliance records and DBS checks."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.common.audit import create_audit_entry
from locumhub.common.constants import (
    ComplianceItemState,
    DbsVerificationStatus,
    DocumentEntityType,
    DocumentStatus,
    UserType,
)
from locumhub.common.exceptions import NotFoundException, ValidationException
from locumhub.common.filters import apply_filters, apply_search
from locumhub.common.pagination import PaginatedResponse, PaginationParams, paginate
from locumhub.compliance.models import ComplianceRecord, DbsCheck
from locumhub.compliance.requirements import REQUIREMENTS, role_checklist
from locumhub.compliance.schemas import (
    ComplianceItemOut,
    ComplianceRecordCreate,
    ComplianceSummaryOut,
    DbsCheckCreate,
)
from locumhub.config import settings
from locumhub.documents.models import Document
from locumhub.documents.service import DocumentService
from locumhub.notifications.service import (
    notify_document_expired,
    notify_document_expiring,
)

logger = logging.getLogger(__name__)


def _latest_by_type(documents: Iterable[Document]) -> dict[str, Document]:
    """Newest non-archived document per type; *documents* must be newest first."""
    latest: dict[str, Document] = {}
    for document in documents:
        if document.status == DocumentStatus.archived.value:
            continue
        latest.setdefault(document.document_type, document)
    return latest


def _item(
    document_type: str,
    mandatory: bool,
    document: Optional[Document],
    today: date,
    warning_days: int,
) -> ComplianceItemOut:
    requirement = REQUIREMENTS[document_type]
    if document is None:
        return ComplianceItemOut(
            document_type=document_type,
            label=requirement.label,
            category=requirement.category,
            mandatory=mandatory,
            state=ComplianceItemState.missing,
        )

    state = ComplianceItemState(document.status)
    days_left = (document.expiry_date - today).days if document.expiry_date else None
    # A verified document past its expiry counts as expired before the sweep runs
    if state == ComplianceItemState.verified and days_left is not None and days_left < 0:
        state = ComplianceItemState.expired

    return ComplianceItemOut(
        document_type=document_type,
        label=requirement.label,
        category=requirement.category,
        mandatory=mandatory,
        state=state,
        document_id=document.id,
        expiry_date=document.expiry_date,
        days_until_expiry=days_left,
        expiring_soon=(
            state == ComplianceItemState.verified
            and days_left is not None
            and days_left <= warning_days
        ),
    )


def summarise(
    user: User,
    documents: Iterable[Document],
    today: date,
    warning_days: Optional[int] = None,
) -> ComplianceSummaryOut:
    """Build the tracker summary for *user* from their staff documents."""
    warning_days = settings.EXPIRY_WARNING_DAYS if warning_days is None else warning_days
    checklist = role_checklist(user.profession)
    latest = _latest_by_type(documents)

    mandatory = [
        _item(t, True, latest.get(t), today, warning_days) for t in checklist.mandatory
    ]
    recommended = [
        _item(t, False, latest.get(t), today, warning_days) for t in checklist.recommended
    ]

    complete = sum(1 for i in mandatory if i.state == ComplianceItemState.verified)
    total = len(mandatory)
    items = mandatory + recommended
    return ComplianceSummaryOut(
        user_id=user.id,
        profession=user.profession,
        role_label=checklist.label,
        items=items,
        mandatory_total=total,
        mandatory_complete=complete,
        completion_percentage=round(complete / total * 100, 1) if total else 100.0,
        supplementary_count=sum(
            1 for i in recommended if i.state == ComplianceItemState.verified
        ),
        missing=[i.document_type for i in mandatory if i.state == ComplianceItemState.missing],
        expiring=[i.document_type for i in items if i.expiring_soon],
        expired=[i.document_type for i in items if i.state == ComplianceItemState.expired],
        is_compliant=total > 0 and complete == total,
    )


class ComplianceService:
    """Async compliance operations."""

    # ── Tracker ──────────────────────────────────────────────────────

    @staticmethod
    async def _get_staff(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None or user.user_type != UserType.staff.value:
            raise NotFoundException("Staff member", user_id)
        return user

    @staticmethod
    async def get_summary(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        today: Optional[date] = None,
    ) -> ComplianceSummaryOut:
        user = await ComplianceService._get_staff(db, user_id)
        documents = await DocumentService.list_for_entity(
            db, DocumentEntityType.staff, user.id,
        )
        return summarise(user, documents, today or date.today())

    @staticmethod
    async def summaries_for(
        db: AsyncSession,
        users: list[User],
        *,
        today: Optional[date] = None,
    ) -> dict[uuid.UUID, ComplianceSummaryOut]:
        """Summaries for many staff members with a single document query."""
        if not users:
            return {}
        result = await db.execute(
            select(Document).where(
                Document.entity_type == DocumentEntityType.staff.value,
                Document.entity_id.in_([u.id for u in users]),
                Document.status != DocumentStatus.archived.value,
            )
            .order_by(Document.created_at.desc())
        )
        by_owner: dict[uuid.UUID, list[Document]] = {}
        for document in result.scalars().all():
            by_owner.setdefault(document.entity_id, []).append(document)
        today = today or date.today()
        return {u.id: summarise(u, by_owner.get(u.id, []), today) for u in users}

    @staticmethod
    async def expiring_documents(
        db: AsyncSession,
        *,
        days: int,
        entity_type: Optional[DocumentEntityType] = None,
        today: Optional[date] = None,
    ) -> list[tuple[Document, int]]:
        """Verified documents expiring within *days*, soonest first."""
        today = today or date.today()
        query = (
            select(Document)
            .where(
                Document.status == DocumentStatus.verified.value,
                Document.expiry_date.is_not(None),
                Document.expiry_date >= today,
                Document.expiry_date <= today + timedelta(days=days),
            )
            .order_by(Document.expiry_date.asc())
        )
        if entity_type is not None:
            query = query.where(Document.entity_type == entity_type.value)
        result = await db.execute(query)
        return [(d, (d.expiry_date - today).days) for d in result.scalars().all()]

    # ── Expiry sweep ─────────────────────────────────────────────────

    @staticmethod
    async def run_expiry_sweep(
        db: AsyncSession,
        *,
        today: Optional[date] = None,
        thresholds: Optional[list[int]] = None,
    ) -> dict[str, int]:
        """Expire overdue documents and DBS checks and send expiry reminders.

        Each verified document gets at most one reminder per threshold; the
        smallest threshold already sent is kept in ``last_reminder_days``.
        Running the sweep twice on the same day sends nothing new.
        """
        today = today or date.today()
        thresholds = sorted(thresholds or settings.reminder_thresholds, reverse=True)
        counts = {"expired": 0, "reminders_sent": 0, "dbs_expired": 0}

        result = await db.execute(
            select(Document).where(
                Document.status == DocumentStatus.verified.value,
                Document.expiry_date.is_not(None),
            )
        )
        for document in result.scalars().all():
            days_left = (document.expiry_date - today).days
            if days_left < 0:
                await DocumentService.change_status(
                    db, document, DocumentStatus.expired, actor_id=None, today=today,
                )
                await notify_document_expired(db, document)
                counts["expired"] += 1
                continue

            crossed = [t for t in thresholds if days_left <= t]
            if not crossed:
                continue
            threshold = min(crossed)
            if document.last_reminder_days is not None and document.last_reminder_days <= threshold:
                continue
            await notify_document_expiring(db, document, days_left)
            document.last_reminder_days = threshold
            counts["reminders_sent"] += 1

        dbs = await db.execute(
            select(DbsCheck).where(
                DbsCheck.verification_status.in_(
                    (DbsVerificationStatus.pending.value, DbsVerificationStatus.verified.value)
                ),
                DbsCheck.expiry_date.is_not(None),
                DbsCheck.expiry_date < today,
            )
        )
        for check in dbs.scalars().all():
            check.verification_status = DbsVerificationStatus.expired.value
            counts["dbs_expired"] += 1

        await db.flush()
        logger.info(
            "Expiry sweep for %s: %d expired, %d reminders, %d DBS checks expired",
            today, counts["expired"], counts["reminders_sent"], counts["dbs_expired"],
        )
        return counts

    # ── Compliance records ───────────────────────────────────────────

    @staticmethod
    async def get_record(db: AsyncSession, record_id: uuid.UUID) -> ComplianceRecord:
        record = await db.get(ComplianceRecord, record_id)
        if record is None:
            raise NotFoundException("Compliance record", record_id)
        return record

    @staticmethod
    async def list_records(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        staff_id: Optional[uuid.UUID] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(ComplianceRecord).order_by(
            ComplianceRecord.expiry_date.asc(), ComplianceRecord.created_at.desc(),
        )
        query = apply_filters(
            query,
            ComplianceRecord,
            {"staff_id": staff_id, "compliance_category": category},
        )
        query = apply_search(query, ComplianceRecord, search, ["title", "type"])
        return await paginate(db, query, pagination, model=ComplianceRecord)

    @staticmethod
    async def create_record(
        db: AsyncSession,
        data: ComplianceRecordCreate,
        *,
        actor_id: uuid.UUID,
    ) -> ComplianceRecord:
        await ComplianceService._get_staff(db, data.staff_id)
        record = ComplianceRecord(
            **data.model_dump(exclude={"compliance_category"}),
            compliance_category=data.compliance_category.value,
        )
        db.add(record)
        await db.flush()
        await create_audit_entry(
            db,
            action="create",
            entity_type="compliance_record",
            entity_id=record.id,
            actor_id=actor_id,
            new_values=data.model_dump(),
        )
        return record

    @staticmethod
    async def update_record(
        db: AsyncSession,
        record: ComplianceRecord,
        changes: dict[str, Any],
        *,
        actor_id: uuid.UUID,
    ) -> ComplianceRecord:
        issue = changes.get("issue_date", record.issue_date)
        expiry = changes.get("expiry_date", record.expiry_date)
        if issue and expiry and expiry < issue:
            raise ValidationException(
                {"expiry_date": ["Expiry date cannot be before the issue date."]}
            )

        old = {field: getattr(record, field) for field in changes}
        for field, value in changes.items():
            if field == "compliance_category" and value is not None:
                value = value.value if hasattr(value, "value") else value
            setattr(record, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type="compliance_record",
            entity_id=record.id,
            actor_id=actor_id,
            old_values=old,
            new_values=changes,
        )
        return record

    @staticmethod
    async def delete_record(
        db: AsyncSession,
        record: ComplianceRecord,
        *,
        actor_id: uuid.UUID,
    ) -> None:
        await create_audit_entry(
            db,
            action="delete",
            entity_type="compliance_record",
            entity_id=record.id,
            actor_id=actor_id,
            old_values={"type": record.type, "title": record.title},
        )
        await db.delete(record)
        await db.flush()

    # ── DBS checks ───────────────────────────────────────────────────

    @staticmethod
    async def get_dbs(db: AsyncSession, check_id: uuid.UUID) -> DbsCheck:
        check = await db.get(DbsCheck, check_id)
        if check is None:
            raise NotFoundException("DBS check", check_id)
        return check

    @staticmethod
    async def list_dbs(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        staff_id: Optional[uuid.UUID] = None,
        status: Optional[DbsVerificationStatus] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(DbsCheck).order_by(DbsCheck.created_at.desc())
        query = apply_filters(
            query,
            DbsCheck,
            {"staff_id": staff_id, "verification_status": status.value if status else None},
        )
        query = apply_search(
            query, DbsCheck, search, ["certificate_number", "update_service_id", "requested_by"],
        )
        return await paginate(db, query, pagination, model=DbsCheck)

    @staticmethod
    async def create_dbs(
        db: AsyncSession,
        data: DbsCheckCreate,
        *,
        actor_id: uuid.UUID,
    ) -> DbsCheck:
        await ComplianceService._get_staff(db, data.staff_id)
        values = data.model_dump()
        values["check_level"] = data.check_level.value
        values["workforce_type"] = data.workforce_type.value
        check = DbsCheck(**values, verification_status=DbsVerificationStatus.pending.value)
        db.add(check)
        await db.flush()
        await create_audit_entry(
            db,
            action="create",
            entity_type="dbs_check",
            entity_id=check.id,
            actor_id=actor_id,
            new_values=values,
        )
        return check

    @staticmethod
    async def update_dbs(
        db: AsyncSession,
        check: DbsCheck,
        changes: dict[str, Any],
        *,
        actor_id: uuid.UUID,
    ) -> DbsCheck:
        issue = changes.get("issue_date") or check.issue_date
        expiry = changes.get("expiry_date", check.expiry_date)
        if issue and expiry and expiry < issue:
            raise ValidationException(
                {"expiry_date": ["Expiry date cannot be before the issue date."]}
            )

        old = {field: getattr(check, field) for field in changes}
        for field, value in changes.items():
            if field == "issue_date" and value is None:
                continue
            if hasattr(value, "value"):
                value = value.value
            setattr(check, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type="dbs_check",
            entity_id=check.id,
            actor_id=actor_id,
            old_values=old,
            new_values=changes,
        )
        return check

    @staticmethod
    async def verify_dbs(
        db: AsyncSession,
        check: DbsCheck,
        status: str,
        *,
        actor_id: uuid.UUID,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> DbsCheck:
        """Mark a DBS check verified or rejected."""
        today = today or date.today()
        target = DbsVerificationStatus(status)
        if target == DbsVerificationStatus.verified:
            if check.expiry_date is not None and check.expiry_date < today:
                raise ValidationException(
                    {"expiry_date": ["An expired DBS check cannot be verified."]}
                )
            check.verified_by_id = actor_id
            check.verified_at = datetime.now(timezone.utc)
        else:
            check.verified_by_id = None
            check.verified_at = None

        old_status = check.verification_status
        check.verification_status = target.value
        if notes is not None:
            check.notes = notes
        await db.flush()
        await create_audit_entry(
            db,
            action=target.value,
            entity_type="dbs_check",
            entity_id=check.id,
            actor_id=actor_id,
            old_values={"verification_status": old_status},
            new_values={"verification_status": target.value, "notes": notes},
        )
        logger.info("DBS check %s: %s → %s", check.id, old_status, target.value)
        return check

    @staticmethod
    async def delete_dbs(
        db: AsyncSession,
        check: DbsCheck,
        *,
        actor_id: uuid.UUID,
    ) -> None:
        await create_audit_entry(
            db,
            action="delete",
            entity_type="dbs_check",
            entity_id=check.id,
            actor_id=actor_id,
            old_values={"certificate_number": check.certificate_number},
        )
        await db.delete(check)
        await db.flush()
