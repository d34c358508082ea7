"""Documents router — upload, listing, status management, edit dialog, download.

All endpoints require authentication. Owners may upload and read their own
documents; reviewing and editing needs ``documents`` write access.
"""

import os
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import get_current_user, require_permission
from locumhub.common.constants import (
    ALLOWED_UPLOAD_TYPES,
    AccessLevel,
    DocumentEntityType,
    DocumentStatus,
    SystemTab,
)
from locumhub.common.pagination import PaginatedResponse, PaginationParams, page_of
from locumhub.compliance.requirements import DOCUMENT_CATEGORIES, ENTITY_REQUIREMENTS, ROLE_REQUIREMENTS
from locumhub.config import settings
from locumhub.database import get_db
from locumhub.documents import storage
from locumhub.documents.schemas import (
    DocumentCategoriesOut,
    DocumentDeleteResult,
    DocumentFilterOptions,
    DocumentMetadataUpdate,
    DocumentNotesUpdate,
    DocumentOut,
    DocumentStatusUpdate,
    DocumentVerifyRequest,
)
from locumhub.documents.service import DocumentService

router = APIRouter(prefix="", tags=["documents"])


async def _read_upload(file: UploadFile) -> bytes:
    """Read an upload after checking MIME type and size."""
    if file.content_type not in ALLOWED_UPLOAD_TYPES:
        accepted = ", ".join(ALLOWED_UPLOAD_TYPES.values())
        raise HTTPException(
            status_code=400,
            detail=f"File type '{file.content_type}' not allowed. Accepted: {accepted}.",
        )

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    if len(contents) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB} MB.",
        )
    return contents


# ── POST /upload ─────────────────────────────────────────────────────

@router.post("/upload", response_model=DocumentOut, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    entity_type: DocumentEntityType = Form(...),
    entity_id: uuid.UUID = Form(...),
    document_type: str = Form(..., min_length=1, max_length=100),
    title: str = Form(..., min_length=1, max_length=255),
    issued_date: Optional[date] = Form(None),
    expiry_date: Optional[date] = Form(None),
    notes: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Upload a document for a staff member, care home or admin record."""
    DocumentService.assert_access(user, entity_type, entity_id, write=True)
    contents = await _read_upload(file)
    return await DocumentService.upload_document(
        db,
        uploader=user,
        entity_type=entity_type,
        entity_id=entity_id,
        document_type=document_type,
        title=title,
        filename=os.path.basename(file.filename or "upload"),
        mime_type=file.content_type,
        contents=contents,
        issued_date=issued_date,
        expiry_date=expiry_date,
        notes=notes,
    )


# ── GET / — admin document table ─────────────────────────────────────

@router.get("", response_model=PaginatedResponse[DocumentOut])
async def list_documents(
    search: Optional[str] = Query(None, description="Match title, filename or type"),
    status: Optional[DocumentStatus] = Query(None),
    document_type: Optional[str] = Query(None),
    entity_type: Optional[DocumentEntityType] = Query(None),
    entity_id: Optional[uuid.UUID] = Query(None),
    uploaded_from: Optional[date] = Query(None),
    uploaded_to: Optional[date] = Query(None),
    expiring_within_days: Optional[int] = Query(None, ge=0, le=3650),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.read)),
    db: AsyncSession = Depends(get_db),
):
    result = await DocumentService.list_documents(
        db,
        pagination,
        search=search,
        status=status,
        document_type=document_type,
        entity_type=entity_type,
        entity_id=entity_id,
        uploaded_from=uploaded_from,
        uploaded_to=uploaded_to,
        expiring_within_days=expiring_within_days,
    )
    return page_of(result, DocumentOut)


# NOTE: fixed two-segment paths MUST be registered before
# /{entity_type}/{entity_id}.

@router.get("/filter-options", response_model=DocumentFilterOptions)
async def filter_options(
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.read)),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.filter_options(db)


@router.get("/categories/{entity_type}", response_model=DocumentCategoriesOut)
async def document_categories(
    entity_type: DocumentEntityType,
    user: User = Depends(get_current_user),
):
    """Categories offered by the upload dialog, plus the tracked requirement types."""
    if entity_type == DocumentEntityType.staff:
        requirement_types = sorted(
            {t for role in ROLE_REQUIREMENTS.values() for t in (*role.mandatory, *role.recommended)}
        )
    else:
        requirement_types = list(ENTITY_REQUIREMENTS.get(entity_type, ()))
    return DocumentCategoriesOut(
        entity_type=entity_type,
        categories=list(DOCUMENT_CATEGORIES[entity_type]),
        requirement_types=requirement_types,
    )


@router.get("/{document_id}/download")
async def download_document(
    document_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService.get_document(db, document_id)
    DocumentService.assert_access(user, document.entity_type, document.entity_id)
    path = storage.absolute_path(document.storage_path)
    if not os.path.exists(path):
        raise HTTPException(status_code=404, detail="Stored file is missing.")
    return FileResponse(path, media_type=document.mime_type, filename=document.filename)


@router.get("/{entity_type}/{entity_id}", response_model=list[DocumentOut])
async def entity_documents(
    entity_type: DocumentEntityType,
    entity_id: uuid.UUID,
    include_archived: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Documents held for one staff member / care home / admin record."""
    DocumentService.assert_access(user, entity_type, entity_id)
    return await DocumentService.list_for_entity(
        db, entity_type, entity_id, include_archived=include_archived,
    )


@router.get("/{document_id}", response_model=DocumentOut)
async def get_document(
    document_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService.get_document(db, document_id)
    DocumentService.assert_access(user, document.entity_type, document.entity_id)
    return document


# ── Replace / delete by type ─────────────────────────────────────────

@router.put("/staff/{user_id}/{document_type}", response_model=DocumentOut)
async def replace_staff_document(
    user_id: uuid.UUID,
    document_type: str,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None, max_length=255),
    issued_date: Optional[date] = Form(None),
    expiry_date: Optional[date] = Form(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Upload a new version; the previous one is archived and the new one awaits review."""
    DocumentService.assert_access(user, DocumentEntityType.staff, user_id, write=True)
    contents = await _read_upload(file)
    return await DocumentService.replace_document(
        db,
        uploader=user,
        user_id=user_id,
        document_type=document_type,
        title=title,
        filename=os.path.basename(file.filename or "upload"),
        mime_type=file.content_type,
        contents=contents,
        issued_date=issued_date,
        expiry_date=expiry_date,
    )


@router.delete("/staff/{user_id}/{document_type}", response_model=DocumentDeleteResult)
async def delete_staff_documents(
    user_id: uuid.UUID,
    document_type: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    DocumentService.assert_access(user, DocumentEntityType.staff, user_id, write=True)
    deleted = await DocumentService.delete_by_type(
        db, user_id, document_type, actor_id=user.id,
    )
    return DocumentDeleteResult(deleted=deleted)


# ── Review and edit (documents:write) ────────────────────────────────

@router.patch("/{document_id}/status", response_model=DocumentOut)
async def update_status(
    document_id: uuid.UUID,
    body: DocumentStatusUpdate,
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService.get_document(db, document_id)
    return await DocumentService.change_status(
        db, document, body.status, actor_id=user.id, reason=body.reason,
    )


@router.patch("/{document_id}/notes", response_model=DocumentOut)
async def update_notes(
    document_id: uuid.UUID,
    body: DocumentNotesUpdate,
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.update_notes(
        db, document_id, actor_id=user.id, notes=body.notes,
    )


@router.patch("/{document_id}/metadata", response_model=DocumentOut)
async def update_metadata(
    document_id: uuid.UUID,
    body: DocumentMetadataUpdate,
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.update_metadata(
        db, document_id, actor_id=user.id, changes=body.model_dump(exclude_unset=True),
    )


@router.post("/{document_id}/verify", response_model=DocumentOut)
async def verify_document(
    document_id: uuid.UUID,
    body: DocumentVerifyRequest,
    user: User = Depends(require_permission(SystemTab.documents, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    """Verify (approved=true) or reject a document; the owner is notified."""
    return await DocumentService.verify_document(
        db, document_id, actor_id=user.id, approved=body.approved, reason=body.reason,
    )


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService.get_document(db, document_id)
    DocumentService.assert_access(user, document.entity_type, document.entity_id, write=True)
    await DocumentService.delete_document(db, document_id, actor_id=user.id)
