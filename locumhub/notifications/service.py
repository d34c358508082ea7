"""Notification service — CRUD operations and cross-module helper dispatchers."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.common.constants import (
    ORGANISATION_USER_TYPES,
    DocumentEntityType,
    NotificationPriority,
    NotificationType,
    UserType,
)
from locumhub.common.exceptions import ForbiddenException, NotFoundException, ValidationException
from locumhub.common.pagination import PaginationParams, build_meta
from locumhub.notifications.models import Notification, NotificationPreference
from locumhub.notifications.schemas import (
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

# Preference topic that governs email / push delivery for each type
_TOPIC_BY_TYPE: dict[NotificationType, str] = {
    NotificationType.info: "important_news",
    NotificationType.system_alert: "important_news",
    NotificationType.new_registration: "profile_alerts",
    NotificationType.document_upload: "profile_alerts",
    NotificationType.document_review: "profile_alerts",
    NotificationType.document_expiring: "profile_alerts",
    NotificationType.document_expired: "profile_alerts",
    NotificationType.onboarding: "profile_alerts",
    NotificationType.shift_urgent: "emergency_shifts",
    NotificationType.shift_allocation: "shift_application_updates",
    NotificationType.timesheet: "daily_shift_updates",
}


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: uuid.UUID,
        type: NotificationType = NotificationType.info,
        priority: NotificationPriority = NotificationPriority.medium,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> Notification:
        """Create a new notification and flush to DB.

        The email / push channels the recipient opted into are recorded in
        ``data["channels"]`` for the outbound sender.
        """
        prefs = await NotificationService.get_preferences(db, recipient_id)
        topic = _TOPIC_BY_TYPE.get(NotificationType(type), "important_news")
        channels = ["in_app"]
        if getattr(prefs, f"{topic}_email"):
            channels.append("email")
        if getattr(prefs, f"{topic}_push"):
            channels.append("push")

        notification = Notification(
            recipient_id=recipient_id,
            type=NotificationType(type).value,
            priority=NotificationPriority(priority).value,
            title=title,
            message=message,
            action_url=action_url,
            entity_type=entity_type,
            entity_id=entity_id,
            data={**(data or {}), "channels": channels},
        )
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def notify_many(
        db: AsyncSession,
        recipient_ids: Iterable[uuid.UUID],
        **kwargs: Any,
    ) -> list[Notification]:
        """Create the same notification for several recipients (deduplicated)."""
        created = []
        for recipient_id in dict.fromkeys(recipient_ids):
            created.append(
                await NotificationService.create_notification(
                    db, recipient_id=recipient_id, **kwargs,
                )
            )
        return created

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        user_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
        priority: Optional[NotificationPriority] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications for a user, newest first."""
        query = (
            select(Notification)
            .where(Notification.recipient_id == user_id)
            .order_by(Notification.created_at.desc())
        )

        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        if notification_type is not None:
            query = query.where(Notification.type == notification_type.value)
        if priority is not None:
            query = query.where(Notification.priority == priority.value)

        count_q = query.with_only_columns(func.count()).order_by(None)
        total: int = (await db.execute(count_q)).scalar_one()

        rows = (
            await db.execute(
                query.offset(pagination.offset).limit(pagination.page_size)
            )
        ).scalars().all()

        meta = build_meta(total, pagination)

        # Unread count is always unfiltered (for the badge)
        unread = await NotificationService.get_unread_count(db, user_id)

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(**meta.model_dump(), unread=unread),
        )

    @staticmethod
    async def _get_owned(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Notification:
        result = await db.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        notification = result.scalars().first()

        if notification is None:
            raise NotFoundException("Notification", notification_id)

        if notification.recipient_id != user_id:
            raise ForbiddenException("You can only manage your own notifications.")
        return notification

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Notification:
        """Mark a single notification as read. Verifies ownership."""
        notification = await NotificationService._get_owned(db, notification_id, user_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            await db.flush()
        return notification

    @staticmethod
    async def mark_all_read(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> int:
        """Bulk-mark all unread notifications as read. Returns count updated."""
        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(Notification)
            .where(
                Notification.recipient_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=now)
        )
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def delete_notification(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> None:
        notification = await NotificationService._get_owned(db, notification_id, user_id)
        await db.delete(notification)
        await db.flush()

    @staticmethod
    async def get_unread_count(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> int:
        """Return the number of unread notifications for a user."""
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.recipient_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()

    # ── Preferences ─────────────────────────────────────────────────

    @staticmethod
    async def get_preferences(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> NotificationPreference:
        """Return the user's preferences, creating the defaults on first access."""
        result = await db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        prefs = result.scalars().first()
        if prefs is None:
            prefs = NotificationPreference(user_id=user_id)
            db.add(prefs)
            await db.flush()
        return prefs

    @staticmethod
    async def update_preferences(
        db: AsyncSession,
        user_id: uuid.UUID,
        changes: dict[str, bool],
    ) -> NotificationPreference:
        prefs = await NotificationService.get_preferences(db, user_id)
        for field, value in changes.items():
            if value is not None and hasattr(prefs, field):
                setattr(prefs, field, value)
        await db.flush()
        return prefs

    # ── Broadcast ───────────────────────────────────────────────────

    @staticmethod
    async def broadcast(
        db: AsyncSession,
        *,
        title: str,
        message: str,
        type: NotificationType,
        priority: NotificationPriority,
        user_type: Optional[UserType] = None,
        recipient_ids: Optional[list[uuid.UUID]] = None,
        action_url: Optional[str] = None,
    ) -> int:
        """Send a notification to every active user of a type and/or listed users."""
        if user_type is None and not recipient_ids:
            raise ValidationException(
                {"recipients": ["Provide a user_type or at least one recipient id."]}
            )

        targets: list[uuid.UUID] = list(recipient_ids or [])
        if user_type is not None:
            targets.extend(await active_user_ids(db, user_type))

        created = await NotificationService.notify_many(
            db,
            targets,
            type=type,
            priority=priority,
            title=title,
            message=message,
            action_url=action_url,
        )
        logger.info("Broadcast '%s' sent to %d user(s)", title, len(created))
        return len(created)


async def active_user_ids(db: AsyncSession, user_type: UserType) -> list[uuid.UUID]:
    result = await db.execute(
        select(User.id).where(
            User.user_type == user_type.value,
            User.is_active.is_(True),
        )
    )
    return list(result.scalars().all())


async def organisation_contact_ids(
    db: AsyncSession,
    organisation_id: uuid.UUID,
) -> list[uuid.UUID]:
    """Active users of the organisation; admins when it has none."""
    result = await db.execute(
        select(User.id).where(
            User.organisation_id == organisation_id,
            User.user_type.in_([t.value for t in ORGANISATION_USER_TYPES]),
            User.is_active.is_(True),
        )
    )
    ids = list(result.scalars().all())
    return ids or await active_user_ids(db, UserType.admin)


async def document_owner_ids(db: AsyncSession, document) -> list[uuid.UUID]:
    """Who should hear about a document: the staff member, the organisation's users, or admins."""
    if document.entity_type == DocumentEntityType.staff.value:
        return [document.entity_id]
    if document.entity_type == DocumentEntityType.care_home.value:
        result = await db.execute(
            select(User.id).where(
                User.organisation_id == document.entity_id,
                User.is_active.is_(True),
            )
        )
        return list(result.scalars().all())
    return await active_user_ids(db, UserType.admin)


# ── Cross-module helper dispatchers ─────────────────────────────────
# Imported by the registration, document, compliance, timesheet and
# shift services. They accept the ORM object directly.


async def notify_new_registration(db: AsyncSession, user) -> list[Notification]:
    """Tell every admin that a new locum has registered."""
    return await NotificationService.notify_many(
        db,
        await active_user_ids(db, UserType.admin),
        type=NotificationType.new_registration,
        priority=NotificationPriority.high,
        title="New Staff Registration",
        message=f"{user.first_name} {user.last_name} registered and is awaiting onboarding review.",
        action_url=f"/admin/onboarding/{user.id}",
        entity_type="user",
        entity_id=user.id,
    )


async def notify_new_enquiry(db: AsyncSession, enquiry) -> list[Notification]:
    """Tell every admin about a care home / GP practice enquiry."""
    label = "Care Home" if enquiry.kind == "care_home" else "GP Practice"
    return await NotificationService.notify_many(
        db,
        await active_user_ids(db, UserType.admin),
        type=NotificationType.new_registration,
        priority=NotificationPriority.medium,
        title=f"New {label} Enquiry",
        message=f"{enquiry.organisation_name} ({enquiry.contact_name}) submitted an enquiry.",
        action_url=f"/admin/enquiries/{enquiry.id}",
        entity_type="enquiry",
        entity_id=enquiry.id,
    )


async def notify_document_uploaded(db: AsyncSession, document) -> list[Notification]:
    """Tell admins a staff document is waiting for verification."""
    return await NotificationService.notify_many(
        db,
        await active_user_ids(db, UserType.admin),
        type=NotificationType.document_upload,
        priority=NotificationPriority.medium,
        title="Document Uploaded",
        message=f"'{document.title}' ({document.document_type}) was uploaded and needs review.",
        action_url=f"/admin/documents/{document.id}",
        entity_type="document",
        entity_id=document.id,
    )


async def notify_document_reviewed(
    db: AsyncSession,
    document,
    *,
    approved: bool,
    reason: Optional[str] = None,
) -> list[Notification]:
    """Tell the document's owner the outcome of a review."""
    if approved:
        title = "Document Verified"
        message = f"Your document '{document.title}' has been verified."
        priority = NotificationPriority.low
    else:
        title = "Document Rejected"
        message = f"Your document '{document.title}' was rejected. Reason: {reason}"
        priority = NotificationPriority.high
    return await NotificationService.notify_many(
        db,
        await document_owner_ids(db, document),
        type=NotificationType.document_review,
        priority=priority,
        title=title,
        message=message,
        action_url=f"/documents/{document.id}",
        entity_type="document",
        entity_id=document.id,
    )


async def notify_document_expiring(
    db: AsyncSession,
    document,
    days_left: int,
) -> list[Notification]:
    """Expiry reminder for a verified document."""
    priority = NotificationPriority.high if days_left <= 30 else NotificationPriority.medium
    return await NotificationService.notify_many(
        db,
        await document_owner_ids(db, document),
        type=NotificationType.document_expiring,
        priority=priority,
        title="Document Expiring Soon",
        message=(
            f"'{document.title}' expires on {document.expiry_date} "
            f"({days_left} day(s) left). Please upload a renewed copy."
        ),
        action_url=f"/documents/{document.id}",
        entity_type="document",
        entity_id=document.id,
        data={"days_left": days_left},
    )


async def notify_document_expired(db: AsyncSession, document) -> list[Notification]:
    return await NotificationService.notify_many(
        db,
        await document_owner_ids(db, document),
        type=NotificationType.document_expired,
        priority=NotificationPriority.urgent,
        title="Document Expired",
        message=(
            f"'{document.title}' expired on {document.expiry_date}. "
            f"You may not be offered shifts until it is renewed."
        ),
        action_url=f"/documents/{document.id}",
        entity_type="document",
        entity_id=document.id,
    )


async def notify_onboarding_decision(
    db: AsyncSession,
    user,
    *,
    approved: bool,
    notes: Optional[str] = None,
) -> Notification:
    """Tell an applicant whether onboarding was approved."""
    if approved:
        title = "Onboarding Approved"
        message = "Your profile has been approved. You can now be allocated shifts."
    else:
        title = "Onboarding Not Approved"
        message = f"Your application needs attention: {notes}"
    return await NotificationService.create_notification(
        db,
        recipient_id=user.id,
        type=NotificationType.onboarding,
        priority=NotificationPriority.high,
        title=title,
        message=message,
        action_url="/staff/profile",
        entity_type="user",
        entity_id=user.id,
    )


async def notify_timesheet_submitted(
    db: AsyncSession,
    timesheet,
    approver_ids: Iterable[uuid.UUID],
) -> list[Notification]:
    return await NotificationService.notify_many(
        db,
        approver_ids,
        type=NotificationType.timesheet,
        priority=NotificationPriority.medium,
        title="Timesheet Awaiting Approval",
        message=(
            f"A timesheet for the week of {timesheet.week_start} "
            f"({timesheet.total_hours} hours) requires your approval."
        ),
        action_url=f"/timesheets/{timesheet.id}",
        entity_type="timesheet",
        entity_id=timesheet.id,
    )


async def notify_timesheet_reviewed(db: AsyncSession, timesheet) -> Notification:
    approved = timesheet.status == "approved"
    message = f"Your timesheet for the week of {timesheet.week_start} was {timesheet.status}."
    if not approved and timesheet.approved_notes:
        message += f" Notes: {timesheet.approved_notes}"
    return await NotificationService.create_notification(
        db,
        recipient_id=timesheet.staff_id,
        type=NotificationType.timesheet,
        priority=NotificationPriority.medium if approved else NotificationPriority.high,
        title="Timesheet Approved" if approved else "Timesheet Rejected",
        message=message,
        action_url=f"/timesheets/{timesheet.id}",
        entity_type="timesheet",
        entity_id=timesheet.id,
    )


async def notify_urgent_shift(db: AsyncSession, shift) -> list[Notification]:
    """Alert admins and business support that an urgent shift needs filling."""
    recipients = await active_user_ids(db, UserType.admin)
    recipients += await active_user_ids(db, UserType.business_support)
    return await NotificationService.notify_many(
        db,
        recipients,
        type=NotificationType.shift_urgent,
        priority=NotificationPriority.urgent,
        title="Urgent Shift",
        message=(
            f"Urgent {shift.role} shift on {shift.shift_date} "
            f"{shift.start_time:%H:%M}–{shift.end_time:%H:%M} needs filling."
        ),
        action_url=f"/admin/shifts/{shift.id}",
        entity_type="shift",
        entity_id=shift.id,
    )


async def notify_shift_allocated(db: AsyncSession, shift, staff_id: uuid.UUID) -> Notification:
    return await NotificationService.create_notification(
        db,
        recipient_id=staff_id,
        type=NotificationType.shift_allocation,
        priority=NotificationPriority.high,
        title="Shift Confirmed",
        message=(
            f"You have been allocated the {shift.role} shift on {shift.shift_date} "
            f"{shift.start_time:%H:%M}–{shift.end_time:%H:%M}."
        ),
        action_url=f"/shifts/{shift.id}",
        entity_type="shift",
        entity_id=shift.id,
    )


async def notify_shift_booked(db: AsyncSession, shift, staff) -> list[Notification]:
    """Tell the organisation that a locum has booked one of its shifts."""
    return await NotificationService.notify_many(
        db,
        await organisation_contact_ids(db, shift.organisation_id),
        type=NotificationType.shift_allocation,
        priority=NotificationPriority.medium,
        title="Shift Booked",
        message=(
            f"{staff.first_name} {staff.last_name} booked the {shift.role} shift on "
            f"{shift.shift_date} {shift.start_time:%H:%M}–{shift.end_time:%H:%M}."
        ),
        action_url=f"/shifts/{shift.id}",
        entity_type="shift",
        entity_id=shift.id,
    )


async def notify_shift_released(db: AsyncSession, shift, staff, reason=None) -> list[Notification]:
    """Tell the organisation that a booked locum has pulled out of a shift."""
    message = (
        f"{staff.first_name} {staff.last_name} cancelled their booking for the "
        f"{shift.role} shift on {shift.shift_date}. The shift is open again."
    )
    if reason:
        message += f" Reason: {reason}"
    return await NotificationService.notify_many(
        db,
        await organisation_contact_ids(db, shift.organisation_id),
        type=NotificationType.shift_allocation,
        priority=NotificationPriority.high,
        title="Shift Booking Cancelled",
        message=message,
        action_url=f"/shifts/{shift.id}",
        entity_type="shift",
        entity_id=shift.id,
    )
