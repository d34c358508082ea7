"""Document Pydantic v2 schemas — request/response validation."""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from locumhub.common.constants import DocumentEntityType, DocumentStatus


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    entity_type: DocumentEntityType
    entity_id: uuid.UUID
    document_type: str
    title: str
    filename: str
    mime_type: str
    file_size: int
    status: DocumentStatus
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    issued_date: Optional[date] = None
    expiry_date: Optional[date] = None
    tags: List[str] = []
    uploaded_by_id: Optional[uuid.UUID] = None
    verified_by_id: Optional[uuid.UUID] = None
    verified_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class DocumentStatusUpdate(BaseModel):
    status: DocumentStatus
    reason: Optional[str] = Field(None, max_length=2000)


class DocumentNotesUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=5000)


class DocumentMetadataUpdate(BaseModel):
    """Fields editable from the document edit dialog."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[DocumentStatus] = None
    document_type: Optional[str] = Field(None, min_length=1, max_length=100)
    notes: Optional[str] = Field(None, max_length=5000)
    issued_date: Optional[date] = None
    expiry_date: Optional[date] = None
    tags: Optional[List[str]] = None
    reason: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _dates_in_order(self) -> "DocumentMetadataUpdate":
        if self.issued_date and self.expiry_date and self.expiry_date < self.issued_date:
            raise ValueError("Expiry date cannot be before the issue date")
        return self


class DocumentVerifyRequest(BaseModel):
    approved: bool
    reason: Optional[str] = Field(None, max_length=2000)


class DocumentReview(BaseModel):
    """Per-document decision inside an onboarding review."""

    status: DocumentStatus
    notes: Optional[str] = Field(None, max_length=2000)


class DocumentFilterOptions(BaseModel):
    statuses: List[str]
    document_types: List[str]
    entity_types: List[str]


class DocumentCategoriesOut(BaseModel):
    entity_type: DocumentEntityType
    categories: List[str]
    requirement_types: List[str]


class DocumentDeleteResult(BaseModel):
    deleted: int
