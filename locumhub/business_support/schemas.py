"""Business-support user schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from locumhub.common.constants import AccessLevel, SystemTab


class BusinessSupportUserCreate(BaseModel):
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=500)
    postcode: Optional[str] = Field(None, max_length=10)
    department: Optional[str] = Field(None, max_length=100)
    permissions: dict[SystemTab, AccessLevel]

    @field_validator("permissions")
    @classmethod
    def _at_least_one_tab(cls, v):
        if v is not None and not v:
            raise ValueError("Grant access to at least one tab")
        return v


class BusinessSupportUserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=500)
    postcode: Optional[str] = Field(None, max_length=10)
    department: Optional[str] = Field(None, max_length=100)
    permissions: Optional[dict[SystemTab, AccessLevel]] = None

    @field_validator("permissions")
    @classmethod
    def _at_least_one_tab(cls, v):
        if v is not None and not v:
            raise ValueError("Grant access to at least one tab")
        return v


class BusinessSupportUserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    postcode: Optional[str] = None
    department: Optional[str] = None
    permissions: dict[str, str] = {}
    is_active: bool
    created_at: datetime
    updated_at: datetime


class TabOut(BaseModel):
    key: str
    label: str


class PermissionCatalogueOut(BaseModel):
    tabs: list[TabOut]
    levels: list[str]
