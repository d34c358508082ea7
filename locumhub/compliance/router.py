"""Compliance router — requirement catalogue, tracker, expiry sweep, records and DBS checks.

Staff see and maintain their own records; admins and business support with
``documents`` access see everyone's.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import (
    get_current_user,
    has_permission,
    require_permission,
    require_user_type,
)
from locumhub.common.constants import (
    AccessLevel,
    ComplianceCategory,
    DbsVerificationStatus,
    DocumentEntityType,
    Profession,
    SystemTab,
    UserType,
)
from locumhub.common.pagination import PaginatedResponse, PaginationParams, page_of
from locumhub.compliance.requirements import (
    ENTITY_REQUIREMENTS,
    REQUIREMENTS,
    ROLE_REQUIREMENTS,
)
from locumhub.compliance.schemas import (
    ComplianceRecordCreate,
    ComplianceRecordOut,
    ComplianceRecordUpdate,
    ComplianceSummaryOut,
    DbsCheckCreate,
    DbsCheckOut,
    DbsCheckUpdate,
    DbsVerifyRequest,
    ExpiringDocumentOut,
    RequirementOut,
    RequirementsOut,
    SweepResultOut,
)
from locumhub.compliance.service import ComplianceService
from locumhub.database import get_db
from locumhub.documents.schemas import DocumentOut
from locumhub.documents.service import DocumentService

router = APIRouter(prefix="", tags=["compliance"])


def _own_scope(user: User, staff_id: Optional[uuid.UUID]) -> Optional[uuid.UUID]:
    """Staff without document access only ever see their own rows."""
    if has_permission(user, SystemTab.documents, AccessLevel.read):
        return staff_id
    DocumentService.assert_access(user, DocumentEntityType.staff, staff_id or user.id)
    return user.id


def _requirements(ids) -> list[RequirementOut]:
    return [RequirementOut.model_validate(REQUIREMENTS[i]) for i in ids]


# ── Catalogue ───────────────────────────────────────────────────────

@router.get("/requirements", response_model=RequirementsOut)
async def requirements(
    role: Optional[Profession] = Query(None),
    entity_type: Optional[DocumentEntityType] = Query(None),
    user: User = Depends(get_current_user),
):
    """Checklist for a role, an organisation type, or the full staff catalogue."""
    if role is not None:
        checklist = ROLE_REQUIREMENTS[role]
        return RequirementsOut(
            role=role.value,
            label=checklist.label,
            mandatory=_requirements(checklist.mandatory),
            recommended=_requirements(checklist.recommended),
        )
    if entity_type is not None and entity_type in ENTITY_REQUIREMENTS:
        return RequirementsOut(
            label=entity_type.value.replace("_", " ").title(),
            mandatory=_requirements(ENTITY_REQUIREMENTS[entity_type]),
            recommended=[],
        )
    org_only = {i for ids in ENTITY_REQUIREMENTS.values() for i in ids}
    staff = [r for r in REQUIREMENTS.values() if r.id not in org_only]
    return RequirementsOut(
        label="Medical staff",
        mandatory=[RequirementOut.model_validate(r) for r in staff if r.mandatory],
        recommended=[RequirementOut.model_validate(r) for r in staff if not r.mandatory],
    )


# ── Tracker ─────────────────────────────────────────────────────────

@router.get("/me", response_model=ComplianceSummaryOut)
async def my_compliance(
    user: User = Depends(require_user_type(UserType.staff)),
    db: AsyncSession = Depends(get_db),
):
    return await ComplianceService.get_summary(db, user.id)


@router.get("/summary/{user_id}", response_model=ComplianceSummaryOut)
async def compliance_summary(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    DocumentService.assert_access(user, DocumentEntityType.staff, user_id)
    return await ComplianceService.get_summary(db, user_id)


@router.get("/expiring", response_model=list[ExpiringDocumentOut])
async def expiring_documents(
    days: int = Query(30, ge=0, le=3650),
    entity_type: Optional[DocumentEntityType] = Query(None),
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.read)),
    db: AsyncSession = Depends(get_db),
):
    rows = await ComplianceService.expiring_documents(db, days=days, entity_type=entity_type)
    return [
        ExpiringDocumentOut(**DocumentOut.model_validate(d).model_dump(), days_left=left)
        for d, left in rows
    ]


@router.post("/sweep", response_model=SweepResultOut)
async def run_sweep(
    today: Optional[date] = Query(None, description="Run as of this date (defaults to today)"),
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Expire overdue documents / DBS checks and send expiry reminders."""
    return await ComplianceService.run_expiry_sweep(db, today=today)


# ── Compliance records ──────────────────────────────────────────────

@router.get("/records", response_model=PaginatedResponse[ComplianceRecordOut])
async def list_records(
    staff_id: Optional[uuid.UUID] = Query(None),
    category: Optional[ComplianceCategory] = Query(None),
    search: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await ComplianceService.list_records(
        db,
        pagination,
        staff_id=_own_scope(user, staff_id),
        category=category.value if category else None,
        search=search,
    )
    return page_of(result, ComplianceRecordOut)


@router.post("/records", response_model=ComplianceRecordOut, status_code=201)
async def create_record(
    body: ComplianceRecordCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    DocumentService.assert_access(user, DocumentEntityType.staff, body.staff_id, write=True)
    return await ComplianceService.create_record(db, body, actor_id=user.id)


@router.patch("/records/{record_id}", response_model=ComplianceRecordOut)
async def update_record(
    record_id: uuid.UUID,
    body: ComplianceRecordUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record = await ComplianceService.get_record(db, record_id)
    DocumentService.assert_access(user, DocumentEntityType.staff, record.staff_id, write=True)
    return await ComplianceService.update_record(
        db, record, body.model_dump(exclude_unset=True), actor_id=user.id,
    )


@router.delete("/records/{record_id}", status_code=204)
async def delete_record(
    record_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record = await ComplianceService.get_record(db, record_id)
    DocumentService.assert_access(user, DocumentEntityType.staff, record.staff_id, write=True)
    await ComplianceService.delete_record(db, record, actor_id=user.id)


# ── DBS checks ──────────────────────────────────────────────────────

@router.get("/dbs", response_model=PaginatedResponse[DbsCheckOut])
async def list_dbs(
    staff_id: Optional[uuid.UUID] = Query(None),
    status: Optional[DbsVerificationStatus] = Query(None),
    search: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await ComplianceService.list_dbs(
        db,
        pagination,
        staff_id=_own_scope(user, staff_id),
        status=status,
        search=search,
    )
    return page_of(result, DbsCheckOut)


@router.post("/dbs", response_model=DbsCheckOut, status_code=201)
async def create_dbs(
    body: DbsCheckCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    DocumentService.assert_access(user, DocumentEntityType.staff, body.staff_id, write=True)
    return await ComplianceService.create_dbs(db, body, actor_id=user.id)


@router.patch("/dbs/{check_id}", response_model=DbsCheckOut)
async def update_dbs(
    check_id: uuid.UUID,
    body: DbsCheckUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    check = await ComplianceService.get_dbs(db, check_id)
    DocumentService.assert_access(user, DocumentEntityType.staff, check.staff_id, write=True)
    return await ComplianceService.update_dbs(
        db, check, body.model_dump(exclude_unset=True), actor_id=user.id,
    )


@router.post("/dbs/{check_id}/verify", response_model=DbsCheckOut)
async def verify_dbs(
    check_id: uuid.UUID,
    body: DbsVerifyRequest,
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    check = await ComplianceService.get_dbs(db, check_id)
    return await ComplianceService.verify_dbs(
        db, check, body.status, actor_id=user.id, notes=body.notes,
    )


@router.delete("/dbs/{check_id}", status_code=204)
async def delete_dbs(
    check_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    check = await ComplianceService.get_dbs(db, check_id)
    DocumentService.assert_access(user, DocumentEntityType.staff, check.staff_id, write=True)
    await ComplianceService.delete_dbs(db, check, actor_id=user.id)
