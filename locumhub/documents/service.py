"""Document service — upload, status workflow, metadata edits, replacement and removal."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import distinct, select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import has_permission
from locumhub.common.audit import create_audit_entry
from locumhub.common.constants import (
    DOCUMENT_TRANSITIONS,
    AccessLevel,
    DocumentEntityType,
    DocumentStatus,
    SystemTab,
    UserType,
)
from locumhub.common.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from locumhub.common.filters import apply_filters, apply_search
from locumhub.common.pagination import PaginatedResponse, PaginationParams, paginate
from locumhub.compliance.requirements import derive_expiry
from locumhub.documents import storage
from locumhub.documents.models import Document
from locumhub.notifications.service import (
    notify_document_reviewed,
    notify_document_uploaded,
)

logger = logging.getLogger(__name__)

_ACTIVE_STATUSES = (
    DocumentStatus.pending.value,
    DocumentStatus.verified.value,
    DocumentStatus.rejected.value,
    DocumentStatus.expired.value,
)


def _snapshot(document: Document) -> dict[str, Any]:
    return {
        "status": document.status,
        "title": document.title,
        "document_type": document.document_type,
        "notes": document.notes,
        "issued_date": document.issued_date,
        "expiry_date": document.expiry_date,
        "tags": list(document.tags or []),
    }


class DocumentService:
    """Business logic for stored documents and their review workflow."""

    # ── Access ───────────────────────────────────────────────────────

    @staticmethod
    def assert_access(
        user: User,
        entity_type: DocumentEntityType | str,
        entity_id: uuid.UUID,
        *,
        write: bool = False,
    ) -> None:
        """Owners manage their own documents; admins and permitted support staff manage all."""
        level = AccessLevel.write if write else AccessLevel.read
        if has_permission(user, SystemTab.documents, level):
            return

        entity_type = DocumentEntityType(entity_type)
        if user.user_type == UserType.staff.value:
            if entity_type == DocumentEntityType.staff and entity_id == user.id:
                return
        elif user.user_type in (UserType.care_home.value, UserType.gp_practice.value):
            if (
                entity_type == DocumentEntityType.care_home
                and user.organisation_id is not None
                and entity_id == user.organisation_id
            ):
                return
        raise ForbiddenException("You do not have access to these documents.")

    # ── Create ───────────────────────────────────────────────────────

    @staticmethod
    async def upload_document(
        db: AsyncSession,
        *,
        uploader: User,
        entity_type: DocumentEntityType,
        entity_id: uuid.UUID,
        document_type: str,
        title: str,
        filename: str,
        mime_type: str,
        contents: bytes,
        issued_date: Optional[date] = None,
        expiry_date: Optional[date] = None,
        notes: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> Document:
        """Store the file and create a pending document record."""
        if issued_date and expiry_date and expiry_date < issued_date:
            raise ValidationException(
                {"expiry_date": ["Expiry date cannot be before the issue date."]}
            )
        if expiry_date is None:
            expiry_date = derive_expiry(document_type, issued_date)

        path = storage.save_file(contents, filename, entity_type.value)
        document = Document(
            entity_type=entity_type.value,
            entity_id=entity_id,
            document_type=document_type,
            title=title.strip(),
            filename=filename,
            storage_path=path,
            mime_type=mime_type,
            file_size=len(contents),
            status=DocumentStatus.pending.value,
            notes=notes,
            issued_date=issued_date,
            expiry_date=expiry_date,
            tags=list(tags or []),
            uploaded_by_id=uploader.id,
        )
        db.add(document)
        await db.flush()

        await create_audit_entry(
            db,
            action="upload",
            entity_type="document",
            entity_id=document.id,
            actor_id=uploader.id,
            new_values=_snapshot(document),
        )

        if (
            entity_type == DocumentEntityType.staff
            and not has_permission(uploader, SystemTab.documents, AccessLevel.write)
        ):
            await notify_document_uploaded(db, document)

        logger.info(
            "Document %s (%s) uploaded for %s/%s",
            document.id, document_type, entity_type.value, entity_id,
        )
        return document

    @staticmethod
    async def replace_document(
        db: AsyncSession,
        *,
        uploader: User,
        user_id: uuid.UUID,
        document_type: str,
        title: Optional[str],
        filename: str,
        mime_type: str,
        contents: bytes,
        issued_date: Optional[date] = None,
        expiry_date: Optional[date] = None,
    ) -> Document:
        """Archive the current document of this type and upload its replacement."""
        current = await DocumentService.latest_of_type(
            db, DocumentEntityType.staff, user_id, document_type,
        )
        if current is not None:
            await DocumentService.change_status(
                db, current, DocumentStatus.archived, actor_id=uploader.id,
            )
        return await DocumentService.upload_document(
            db,
            uploader=uploader,
            entity_type=DocumentEntityType.staff,
            entity_id=user_id,
            document_type=document_type,
            title=title or (current.title if current else document_type),
            filename=filename,
            mime_type=mime_type,
            contents=contents,
            issued_date=issued_date,
            expiry_date=expiry_date,
            tags=list(current.tags or []) if current else None,
        )

    # ── Read ─────────────────────────────────────────────────────────

    @staticmethod
    async def get_document(db: AsyncSession, document_id: uuid.UUID) -> Document:
        document = await db.get(Document, document_id)
        if document is None:
            raise NotFoundException("Document", document_id)
        return document

    @staticmethod
    async def latest_of_type(
        db: AsyncSession,
        entity_type: DocumentEntityType,
        entity_id: uuid.UUID,
        document_type: str,
    ) -> Optional[Document]:
        """Most recent non-archived document of a type for an entity."""
        result = await db.execute(
            select(Document)
            .where(
                Document.entity_type == entity_type.value,
                Document.entity_id == entity_id,
                Document.document_type == document_type,
                Document.status.in_(_ACTIVE_STATUSES),
            )
            .order_by(Document.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def list_for_entity(
        db: AsyncSession,
        entity_type: DocumentEntityType,
        entity_id: uuid.UUID,
        *,
        include_archived: bool = False,
    ) -> list[Document]:
        query = select(Document).where(
            Document.entity_type == entity_type.value,
            Document.entity_id == entity_id,
        )
        if not include_archived:
            query = query.where(Document.status != DocumentStatus.archived.value)
        result = await db.execute(query.order_by(Document.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def list_documents(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        status: Optional[DocumentStatus] = None,
        document_type: Optional[str] = None,
        entity_type: Optional[DocumentEntityType] = None,
        entity_id: Optional[uuid.UUID] = None,
        uploaded_from: Optional[date] = None,
        uploaded_to: Optional[date] = None,
        expiring_within_days: Optional[int] = None,
        today: Optional[date] = None,
    ) -> PaginatedResponse:
        """Admin document table: filter, search and paginate across all entities."""
        query = select(Document).order_by(Document.created_at.desc())

        filters: dict[str, Any] = {
            "status": status.value if status else None,
            "document_type": document_type,
            "entity_type": entity_type.value if entity_type else None,
            "entity_id": entity_id,
            "created_at__from": (
                datetime.combine(uploaded_from, datetime.min.time(), tzinfo=timezone.utc)
                if uploaded_from else None
            ),
            "created_at__to": (
                datetime.combine(uploaded_to, datetime.max.time(), tzinfo=timezone.utc)
                if uploaded_to else None
            ),
        }
        query = apply_filters(query, Document, filters)

        if expiring_within_days is not None:
            today = today or date.today()
            query = query.where(
                Document.expiry_date.is_not(None),
                Document.expiry_date >= today,
                Document.expiry_date <= today + timedelta(days=expiring_within_days),
            )

        query = apply_search(query, Document, search, ["title", "filename", "document_type"])
        return await paginate(db, query, pagination, model=Document)

    @staticmethod
    async def filter_options(db: AsyncSession) -> dict[str, list[str]]:
        """Distinct values that actually occur, for the filter drop-downs."""
        types = await db.execute(
            select(distinct(Document.document_type)).order_by(Document.document_type)
        )
        entity_types = await db.execute(
            select(distinct(Document.entity_type)).order_by(Document.entity_type)
        )
        return {
            "statuses": [s.value for s in DocumentStatus],
            "document_types": list(types.scalars().all()),
            "entity_types": list(entity_types.scalars().all()),
        }

    # ── Status workflow ──────────────────────────────────────────────

    @staticmethod
    async def change_status(
        db: AsyncSession,
        document: Document,
        target: DocumentStatus,
        *,
        actor_id: Optional[uuid.UUID],
        reason: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Document:
        """Move *document* to *target*, enforcing the transition table.

        Setting the current status again is a no-op.
        """
        current = DocumentStatus(document.status)
        if target == current:
            return document
        if target not in DOCUMENT_TRANSITIONS[current]:
            raise InvalidTransitionException("Document", current.value, target.value)

        today = today or date.today()
        if target == DocumentStatus.verified:
            if document.expiry_date is not None and document.expiry_date < today:
                raise ValidationException(
                    {"expiry_date": ["An expired document cannot be verified."]}
                )
            document.verified_by_id = actor_id
            document.verified_at = datetime.now(timezone.utc)
            document.rejection_reason = None
        elif target == DocumentStatus.rejected:
            if not (reason or "").strip():
                raise ValidationException(
                    {"reason": ["A reason is required when rejecting a document."]}
                )
            document.rejection_reason = reason.strip()
            document.verified_by_id = None
            document.verified_at = None
        elif target == DocumentStatus.pending:
            document.verified_by_id = None
            document.verified_at = None
            document.last_reminder_days = None

        document.status = target.value
        await db.flush()

        await create_audit_entry(
            db,
            action=target.value if target != DocumentStatus.pending else "reopen",
            entity_type="document",
            entity_id=document.id,
            actor_id=actor_id,
            old_values={"status": current.value},
            new_values={"status": target.value, "reason": reason},
        )
        logger.info("Document %s: %s → %s", document.id, current.value, target.value)
        return document

    @staticmethod
    async def verify_document(
        db: AsyncSession,
        document_id: uuid.UUID,
        *,
        actor_id: uuid.UUID,
        approved: bool,
        reason: Optional[str] = None,
    ) -> Document:
        """Verify or reject a document and tell its owner."""
        document = await DocumentService.get_document(db, document_id)
        target = DocumentStatus.verified if approved else DocumentStatus.rejected
        previous = document.status
        await DocumentService.change_status(
            db, document, target, actor_id=actor_id, reason=reason,
        )
        if previous != document.status:
            await notify_document_reviewed(db, document, approved=approved, reason=reason)
        return document

    # ── Update ───────────────────────────────────────────────────────

    @staticmethod
    async def update_notes(
        db: AsyncSession,
        document_id: uuid.UUID,
        *,
        actor_id: uuid.UUID,
        notes: Optional[str],
    ) -> Document:
        document = await DocumentService.get_document(db, document_id)
        old = document.notes
        document.notes = notes
        await db.flush()
        await create_audit_entry(
            db,
            action="update_notes",
            entity_type="document",
            entity_id=document.id,
            actor_id=actor_id,
            old_values={"notes": old},
            new_values={"notes": notes},
        )
        return document

    @staticmethod
    async def update_metadata(
        db: AsyncSession,
        document_id: uuid.UUID,
        *,
        actor_id: uuid.UUID,
        changes: dict[str, Any],
    ) -> Document:
        """Apply edit-dialog changes; a status change goes through the workflow."""
        document = await DocumentService.get_document(db, document_id)
        before = _snapshot(document)

        status = changes.pop("status", None)
        reason = changes.pop("reason", None)

        issued = changes.get("issued_date", document.issued_date)
        expiry = changes.get("expiry_date", document.expiry_date)
        if issued and expiry and expiry < issued:
            raise ValidationException(
                {"expiry_date": ["Expiry date cannot be before the issue date."]}
            )

        if "expiry_date" in changes and changes["expiry_date"] != document.expiry_date:
            document.last_reminder_days = None

        for field in ("title", "document_type", "notes", "issued_date", "expiry_date", "tags"):
            if field in changes:
                value = changes[field]
                if field in ("title", "document_type") and value is None:
                    continue
                if field == "tags":
                    value = list(value or [])
                setattr(document, field, value)
        await db.flush()

        if status is not None:
            await DocumentService.change_status(
                db, document, DocumentStatus(status), actor_id=actor_id, reason=reason,
            )

        await create_audit_entry(
            db,
            action="update",
            entity_type="document",
            entity_id=document.id,
            actor_id=actor_id,
            old_values=before,
            new_values=_snapshot(document),
        )
        return document

    # ── Delete ───────────────────────────────────────────────────────

    @staticmethod
    async def delete_document(
        db: AsyncSession,
        document_id: uuid.UUID,
        *,
        actor_id: uuid.UUID,
    ) -> None:
        document = await DocumentService.get_document(db, document_id)
        await DocumentService._delete(db, document, actor_id)

    @staticmethod
    async def delete_by_type(
        db: AsyncSession,
        user_id: uuid.UUID,
        document_type: str,
        *,
        actor_id: uuid.UUID,
    ) -> int:
        """Delete every document of *document_type* held for a staff member."""
        result = await db.execute(
            select(Document).where(
                Document.entity_type == DocumentEntityType.staff.value,
                Document.entity_id == user_id,
                Document.document_type == document_type,
            )
        )
        documents = list(result.scalars().all())
        if not documents:
            raise NotFoundException("Document", f"{user_id}/{document_type}")
        for document in documents:
            await DocumentService._delete(db, document, actor_id)
        return len(documents)

    @staticmethod
    async def _delete(db: AsyncSession, document: Document, actor_id: uuid.UUID) -> None:
        await create_audit_entry(
            db,
            action="delete",
            entity_type="document",
            entity_id=document.id,
            actor_id=actor_id,
            old_values=_snapshot(document),
        )
        path = document.storage_path
        await db.delete(document)
        await db.flush()
        storage.delete_after_commit(db, path)
