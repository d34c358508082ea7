"""Dashboard tests — KPI aggregation and the admin audit log."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from locumhub.common.audit import AuditTrail, create_audit_entry
from locumhub.common.constants import (
    DocumentStatus,
    EnquiryKind,
    EnquiryStatus,
    OnboardingStatus,
    Profession,
    ShiftStatus,
    TimesheetStatus,
    UserType,
)
from locumhub.common.pagination import PaginationParams
from locumhub.dashboard.service import DashboardService
from locumhub.notifications.service import NotificationService
from locumhub.registrations.models import Enquiry
from locumhub.shifts.models import Shift
from locumhub.timesheets.models import Timesheet
from tests.conftest import (
    _insert_document,
    _insert_staff,
    _insert_user,
    auth_headers_for,
)

TODAY = date(2026, 6, 1)
PAGE = PaginationParams(page=1, page_size=50, sort=None)


def _shift(organisation_id: uuid.UUID, shift_date: date, **overrides) -> Shift:
    fields = dict(
        organisation_id=organisation_id,
        role=Profession.gp.value,
        shift_date=shift_date,
        start_time=time(9, 0),
        end_time=time(17, 0),
        required_skills=[],
        is_urgent=False,
        status=ShiftStatus.open.value,
    )
    fields.update(overrides)
    return Shift(**fields)


def _timesheet(staff_id: uuid.UUID, organisation_id: uuid.UUID, status: TimesheetStatus) -> Timesheet:
    return Timesheet(
        staff_id=staff_id,
        organisation_id=organisation_id,
        week_start=TODAY,
        week_end=TODAY + timedelta(days=6),
        daily_hours={"monday": "8"},
        total_hours=Decimal("8"),
        status=status.value,
    )


def _enquiry(status: EnquiryStatus) -> Enquiry:
    return Enquiry(
        kind=EnquiryKind.care_home.value,
        contact_name="Olive Manager",
        email=f"{uuid.uuid4().hex[:8]}@willowcare.co.uk",
        organisation_name="Willow Care Home",
        phone="0113 496 0000",
        payload={},
        status=status.value,
    )


class TestDashboardStats:
    async def test_empty_database_reports_zeros(self, db, test_admin):
        stats = await DashboardService.get_stats(db, test_admin["id"], today=TODAY)

        assert stats.users_by_type["admin"] == 1
        assert stats.users_by_type["care_home"] == 0
        assert set(stats.documents_by_status) == {s.value for s in DocumentStatus}
        assert stats.pending_onboarding == 0
        assert stats.open_shifts == 0
        assert stats.unread_notifications == 0

    async def test_counts(self, db, test_admin, test_staff, test_organisation):
        await _insert_staff(db, onboarding_status=OnboardingStatus.pending)
        await _insert_user(db, user_type=UserType.care_home, onboarding_status=OnboardingStatus.pending)

        await _insert_document(
            db, entity_id=test_staff["id"], document_type="basic_life_support",
            status=DocumentStatus.verified, expiry_date=TODAY + timedelta(days=10),
        )
        await _insert_document(
            db, entity_id=test_staff["id"], document_type="infection_control",
            status=DocumentStatus.verified, expiry_date=TODAY + timedelta(days=60),
        )
        await _insert_document(
            db, entity_id=test_staff["id"], document_type="medical_cv",
            status=DocumentStatus.pending, expiry_date=TODAY + timedelta(days=5),
        )

        org_id = test_organisation["id"]
        db.add_all([
            _shift(org_id, TODAY),
            _shift(org_id, TODAY + timedelta(days=2), is_urgent=True),
            _shift(org_id, TODAY - timedelta(days=1)),
            _shift(org_id, TODAY + timedelta(days=3), status=ShiftStatus.cancelled.value),
            _timesheet(test_staff["id"], org_id, TimesheetStatus.pending_manager_approval),
            _timesheet(uuid.uuid4(), org_id, TimesheetStatus.approved),
            _enquiry(EnquiryStatus.new),
            _enquiry(EnquiryStatus.contacted),
        ])
        await NotificationService.create_notification(
            db, recipient_id=test_admin["id"], title="Hello", message="Unread",
        )
        await db.flush()

        stats = await DashboardService.get_stats(db, test_admin["id"], today=TODAY)

        assert stats.users_by_type["staff"] == 2
        assert stats.pending_onboarding == 1
        assert stats.documents_by_status["verified"] == 2
        assert stats.documents_by_status["pending"] == 1
        assert stats.documents_expiring_30_days == 1
        assert stats.open_shifts == 2
        assert stats.urgent_open_shifts == 1
        assert stats.timesheets_awaiting_approval == 1
        assert stats.new_enquiries == 1
        assert stats.unread_notifications == 1


class TestAuditLogs:
    async def test_newest_first_with_actor_name(self, db, test_admin):
        entity_id = uuid.uuid4()
        now = datetime.now(timezone.utc)
        db.add_all([
            AuditTrail(
                actor_id=test_admin["id"], action="create", entity_type="shift",
                entity_id=entity_id, created_at=now - timedelta(minutes=5),
            ),
            AuditTrail(
                actor_id=None, action="expire", entity_type="document",
                entity_id=uuid.uuid4(), created_at=now,
            ),
        ])
        await db.flush()

        page = await DashboardService.get_audit_logs(db, PAGE)

        assert page.meta.total == 2
        assert [item.action for item in page.data] == ["expire", "create"]
        assert page.data[0].actor_name is None
        assert page.data[1].actor_name == "Ada Admin"

    async def test_filters(self, db, test_admin, test_staff):
        shift_id = uuid.uuid4()
        await create_audit_entry(
            db, action="create", entity_type="shift", entity_id=shift_id,
            actor_id=test_admin["id"], new_values={"role": "gp"},
        )
        await create_audit_entry(
            db, action="cancel", entity_type="shift", entity_id=shift_id,
            actor_id=test_admin["id"],
        )
        await create_audit_entry(
            db, action="create", entity_type="timesheet", entity_id=uuid.uuid4(),
            actor_id=test_staff["id"],
        )

        by_entity = await DashboardService.get_audit_logs(db, PAGE, entity_id=shift_id)
        by_actor = await DashboardService.get_audit_logs(db, PAGE, actor_id=test_staff["id"])
        by_action = await DashboardService.get_audit_logs(
            db, PAGE, entity_type="shift", action="create",
        )

        assert by_entity.meta.total == 2
        assert [i.entity_type for i in by_actor.data] == ["timesheet"]
        assert by_action.meta.total == 1
        assert by_action.data[0].new_values == {"role": "gp"}

    async def test_pagination_meta(self, db, test_admin):
        for _ in range(3):
            await create_audit_entry(
                db, action="update", entity_type="rate_card", entity_id=uuid.uuid4(),
                actor_id=test_admin["id"],
            )
        page = await DashboardService.get_audit_logs(
            db, PaginationParams(page=2, page_size=2, sort=None),
        )
        assert page.meta.total == 3
        assert len(page.data) == 1


class TestDashboardApi:
    async def test_stats_for_admin(self, client, db, test_admin):
        await db.commit()
        resp = await client.get("/api/v1/dashboard/stats", headers=auth_headers_for(test_admin))
        assert resp.status_code == 200
        assert resp.json()["users_by_type"]["admin"] == 1

    async def test_stats_forbidden_for_staff(self, client, db, test_staff):
        await db.commit()
        resp = await client.get("/api/v1/dashboard/stats", headers=auth_headers_for(test_staff))
        assert resp.status_code == 403

    async def test_audit_logs_admin_only(self, client, db, test_admin, test_support):
        await create_audit_entry(
            db, action="create", entity_type="shift", entity_id=uuid.uuid4(),
            actor_id=test_admin["id"], ip_address="192.168.1.20",
        )
        await db.commit()

        denied = await client.get(
            "/api/v1/dashboard/audit-logs", headers=auth_headers_for(test_support),
        )
        assert denied.status_code == 403

        resp = await client.get(
            "/api/v1/dashboard/audit-logs",
            params={"entity_type": "shift"},
            headers=auth_headers_for(test_admin),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["actor_name"] == "Ada Admin"
        assert body["data"][0]["ip_address"] == "192.168.1.20"

    async def test_unauthenticated(self, client):
        resp = await client.get("/api/v1/dashboard/stats")
        assert resp.status_code == 401
