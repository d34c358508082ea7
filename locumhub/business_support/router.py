"""Business-support router — admin management of support users and their tab permissions."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import require_user_type
from locumhub.business_support.schemas import (
    BusinessSupportUserCreate,
    BusinessSupportUserOut,
    BusinessSupportUserUpdate,
    PermissionCatalogueOut,
    TabOut,
)
from locumhub.business_support.service import BusinessSupportService
from locumhub.common.constants import SYSTEM_TAB_LABELS, AccessLevel, UserType
from locumhub.common.pagination import PaginatedResponse, PaginationParams, page_of
from locumhub.database import get_db

router = APIRouter(prefix="", tags=["business-support"])

_admin_only = require_user_type(UserType.admin)


@router.get("/permissions", response_model=PermissionCatalogueOut)
async def permission_catalogue(user: User = Depends(_admin_only)):
    return PermissionCatalogueOut(
        tabs=[TabOut(key=tab.value, label=label) for tab, label in SYSTEM_TAB_LABELS.items()],
        levels=[level.value for level in AccessLevel],
    )


@router.get("/users", response_model=PaginatedResponse[BusinessSupportUserOut])
async def list_users(
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    department: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(_admin_only),
    db: AsyncSession = Depends(get_db),
):
    result = await BusinessSupportService.list_users(
        db, pagination, search=search, is_active=is_active, department=department,
    )
    return page_of(result, BusinessSupportUserOut)


@router.post("/users", response_model=BusinessSupportUserOut, status_code=201)
async def create_user(
    body: BusinessSupportUserCreate,
    user: User = Depends(_admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await BusinessSupportService.create_user(db, body, actor_id=user.id)


@router.get("/users/{user_id}", response_model=BusinessSupportUserOut)
async def get_user(
    user_id: uuid.UUID,
    user: User = Depends(_admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await BusinessSupportService.get_user(db, user_id)


@router.patch("/users/{user_id}", response_model=BusinessSupportUserOut)
async def update_user(
    user_id: uuid.UUID,
    body: BusinessSupportUserUpdate,
    user: User = Depends(_admin_only),
    db: AsyncSession = Depends(get_db),
):
    target = await BusinessSupportService.get_user(db, user_id)
    return await BusinessSupportService.update_user(
        db, target, body.model_dump(exclude_unset=True), actor_id=user.id,
    )


@router.post("/users/{user_id}/toggle-status", response_model=BusinessSupportUserOut)
async def toggle_status(
    user_id: uuid.UUID,
    user: User = Depends(_admin_only),
    db: AsyncSession = Depends(get_db),
):
    target = await BusinessSupportService.get_user(db, user_id)
    return await BusinessSupportService.toggle_status(db, target, actor_id=user.id)


@router.delete("/users/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    user: User = Depends(_admin_only),
    db: AsyncSession = Depends(get_db),
):
    target = await BusinessSupportService.get_user(db, user_id)
    await BusinessSupportService.delete_user(db, target, actor_id=user.id)
