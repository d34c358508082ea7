"""Business-support user management — admin-created staff with per-tab permissions."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.common.audit import create_audit_entry
from locumhub.common.constants import UserType
from locumhub.common.exceptions import ConflictError, NotFoundException, ValidationException
from locumhub.common.filters import apply_search
from locumhub.common.pagination import PaginatedResponse, PaginationParams, paginate
from locumhub.business_support.schemas import BusinessSupportUserCreate

logger = logging.getLogger(__name__)


def _permissions(raw: dict) -> dict[str, str]:
    return {getattr(tab, "value", tab): getattr(level, "value", level) for tab, level in raw.items()}


class BusinessSupportService:

    @staticmethod
    async def _ensure_email_free(
        db: AsyncSession,
        email: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("email", email)

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None or user.user_type != UserType.business_support.value:
            raise NotFoundException("Business support user", user_id)
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        department: Optional[str] = None,
    ) -> PaginatedResponse:
        query = (
            select(User)
            .where(User.user_type == UserType.business_support.value)
            .order_by(User.last_name.asc(), User.first_name.asc())
        )
        if is_active is not None:
            query = query.where(User.is_active.is_(is_active))
        if department:
            query = query.where(User.department == department)
        query = apply_search(query, User, search, ["first_name", "last_name", "email", "department"])
        return await paginate(db, query, pagination, model=User)

    @staticmethod
    async def create_user(
        db: AsyncSession,
        data: BusinessSupportUserCreate,
        *,
        actor_id: uuid.UUID,
    ) -> User:
        await BusinessSupportService._ensure_email_free(db, data.email)
        user = User(
            user_type=UserType.business_support.value,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=data.email.lower(),
            phone=data.phone,
            address=data.address,
            postcode=data.postcode,
            department=data.department,
            permissions=_permissions(data.permissions),
            is_active=True,
        )
        db.add(user)
        await db.flush()
        await create_audit_entry(
            db,
            action="create",
            entity_type="business_support_user",
            entity_id=user.id,
            actor_id=actor_id,
            new_values={"email": user.email, "permissions": user.permissions},
        )
        logger.info("Business support user %s created", user.id)
        return user

    @staticmethod
    async def update_user(
        db: AsyncSession,
        user: User,
        changes: dict[str, Any],
        *,
        actor_id: uuid.UUID,
    ) -> User:
        if changes.get("email"):
            changes["email"] = changes["email"].lower()
            await BusinessSupportService._ensure_email_free(
                db, changes["email"], exclude_id=user.id,
            )
        if "permissions" in changes:
            if not changes["permissions"]:
                raise ValidationException({"permissions": ["Grant access to at least one tab."]})
            changes["permissions"] = _permissions(changes["permissions"])

        old = {field: getattr(user, field) for field in changes}
        for field, value in changes.items():
            if value is None and field in ("first_name", "last_name", "email"):
                continue
            setattr(user, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type="business_support_user",
            entity_id=user.id,
            actor_id=actor_id,
            old_values=old,
            new_values=changes,
        )
        return user

    @staticmethod
    async def toggle_status(db: AsyncSession, user: User, *, actor_id: uuid.UUID) -> User:
        user.is_active = not user.is_active
        await db.flush()
        await create_audit_entry(
            db,
            action="activate" if user.is_active else "deactivate",
            entity_type="business_support_user",
            entity_id=user.id,
            actor_id=actor_id,
            old_values={"is_active": not user.is_active},
            new_values={"is_active": user.is_active},
        )
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, user: User, *, actor_id: uuid.UUID) -> None:
        await create_audit_entry(
            db,
            action="delete",
            entity_type="business_support_user",
            entity_id=user.id,
            actor_id=actor_id,
            old_values={"email": user.email, "permissions": user.permissions},
        )
        await db.delete(user)
        await db.flush()
