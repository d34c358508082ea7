"""Notification endpoints — list, read state, delete, preferences, admin broadcast."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import get_current_user, require_user_type
from locumhub.common.constants import NotificationPriority, NotificationType, UserType
from locumhub.common.pagination import PaginationParams
from locumhub.database import get_db
from locumhub.notifications.schemas import (
    BroadcastRequest,
    NotificationListResponse,
    NotificationPreferencesOut,
    NotificationPreferencesUpdate,
    NotificationResponse,
)
from locumhub.notifications.service import NotificationService

router = APIRouter(prefix="", tags=["notifications"])


# ── GET / — list current user's notifications ───────────────────────

@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    is_read: Optional[bool] = Query(default=None, description="Filter by read status"),
    type: Optional[NotificationType] = Query(
        default=None, alias="type", description="Filter by notification type"
    ),
    priority: Optional[NotificationPriority] = Query(default=None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List notifications for the authenticated user (paginated)."""
    return await NotificationService.get_notifications(
        db,
        user_id=user.id,
        pagination=pagination,
        is_read=is_read,
        notification_type=type,
        priority=priority,
    )


# NOTE: fixed paths below MUST be registered before /{notification_id}
# so they are not parsed as UUID path parameters.

@router.get("/unread-count")
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return the number of unread notifications (for header badge)."""
    count = await NotificationService.get_unread_count(db, user.id)
    return {"data": {"count": count}}


@router.put("/read-all")
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark all unread notifications as read for the authenticated user."""
    count = await NotificationService.mark_all_read(db, user.id)
    return {"message": "All notifications marked as read", "data": {"count": count}}


@router.get("/preferences", response_model=NotificationPreferencesOut)
async def get_preferences(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService.get_preferences(db, user.id)


@router.put("/preferences", response_model=NotificationPreferencesOut)
async def update_preferences(
    body: NotificationPreferencesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update email / push toggles; omitted fields are unchanged."""
    return await NotificationService.update_preferences(
        db, user.id, body.model_dump(exclude_unset=True),
    )


@router.post("/broadcast", status_code=201)
async def broadcast(
    body: BroadcastRequest,
    user: User = Depends(require_user_type(UserType.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Admin-only: send a message to a user type and/or specific users."""
    count = await NotificationService.broadcast(
        db,
        title=body.title,
        message=body.message,
        type=body.type,
        priority=body.priority,
        user_type=body.user_type,
        recipient_ids=body.recipient_ids,
        action_url=body.action_url,
    )
    return {"message": "Broadcast sent", "data": {"count": count}}


# ── PUT /{notification_id}/read — mark single as read ───────────────

@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a single notification as read."""
    notification = await NotificationService.mark_read(db, notification_id, user.id)
    return {
        "message": "Notification marked as read",
        "data": NotificationResponse.model_validate(notification),
    }


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService.delete_notification(db, notification_id, user.id)
