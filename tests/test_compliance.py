"""Compliance tests — tracker summary, expiry sweep, records, DBS checks and API."""

from __future__ import annotations

import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import select

from locumhub.accounts.models import User
from locumhub.common.constants import (
    ComplianceItemState,
    DbsVerificationStatus,
    DocumentEntityType,
    DocumentStatus,
    NotificationType,
    Profession,
)
from locumhub.common.exceptions import NotFoundException, ValidationException
from locumhub.common.pagination import PaginationParams
from locumhub.compliance.models import DbsCheck
from locumhub.compliance.requirements import (
    ENTITY_REQUIREMENTS,
    REQUIREMENTS,
    ROLE_REQUIREMENTS,
)
from locumhub.compliance.schemas import ComplianceRecordCreate, DbsCheckCreate
from locumhub.compliance.service import ComplianceService, summarise
from locumhub.documents.models import Document
from locumhub.notifications.models import Notification
from tests.conftest import (
    _insert_document,
    _insert_staff,
    _make_document,
    _make_staff,
    auth_headers_for,
)

TODAY = date(2026, 6, 1)
GP_MANDATORY = ROLE_REQUIREMENTS[Profession.gp].mandatory


def _doc(user: User, document_type: str, **kwargs) -> Document:
    return Document(**_make_document(entity_id=user.id, document_type=document_type, **kwargs))


async def _notifications(db, user_id: uuid.UUID, type_: NotificationType) -> list[Notification]:
    result = await db.execute(
        select(Notification).where(
            Notification.recipient_id == user_id,
            Notification.type == type_.value,
        )
    )
    return list(result.scalars().all())


# ═════════════════════════════════════════════════════════════════════
# 1. TRACKER SUMMARY
# ═════════════════════════════════════════════════════════════════════


class TestCatalogue:
    def test_staff_catalogue_counts(self):
        care_home = set(ENTITY_REQUIREMENTS[DocumentEntityType.care_home])
        staff = [r for r in REQUIREMENTS.values() if r.id not in care_home]
        mandatory = {r.id for r in staff if r.mandatory}
        supplementary = {r.id for r in staff if not r.mandatory}

        assert len(mandatory) == 15
        assert {"pharmacy_degree", "professional_qualification"} <= mandatory
        assert len(supplementary) == 4

    def test_role_checklists_use_catalogue_entries(self):
        for checklist in ROLE_REQUIREMENTS.values():
            assert set(checklist.mandatory) <= set(REQUIREMENTS)
            assert set(checklist.recommended) <= set(REQUIREMENTS)


class TestSummarise:
    def test_nothing_uploaded(self):
        user = User(**_make_staff())
        summary = summarise(user, [], TODAY)

        assert summary.mandatory_total == len(GP_MANDATORY)
        assert summary.mandatory_complete == 0
        assert summary.completion_percentage == 0.0
        assert summary.missing == list(GP_MANDATORY)
        assert summary.is_compliant is False
        assert summary.role_label == "General Practitioner"

    def test_fully_verified_is_compliant(self):
        user = User(**_make_staff())
        documents = [
            _doc(user, t, status=DocumentStatus.verified, expiry_date=TODAY + timedelta(days=365))
            for t in GP_MANDATORY
        ]
        summary = summarise(user, documents, TODAY)

        assert summary.completion_percentage == 100.0
        assert summary.is_compliant is True
        assert summary.missing == []
        assert summary.expiring == []

    def test_partial_completion_percentage(self):
        user = User(**_make_staff())
        documents = [
            _doc(user, "dbs_check", status=DocumentStatus.verified),
            _doc(user, "right_to_work", status=DocumentStatus.verified),
            _doc(user, "medical_indemnity", status=DocumentStatus.pending),
        ]
        summary = summarise(user, documents, TODAY)

        assert summary.mandatory_complete == 2
        assert summary.completion_percentage == round(2 / len(GP_MANDATORY) * 100, 1)
        states = {i.document_type: i.state for i in summary.items}
        assert states["medical_indemnity"] == ComplianceItemState.pending
        assert "medical_indemnity" not in summary.missing

    def test_verified_past_expiry_counts_as_expired(self):
        user = User(**_make_staff())
        documents = [
            _doc(user, "basic_life_support", status=DocumentStatus.verified,
                 expiry_date=TODAY - timedelta(days=1)),
        ]
        summary = summarise(user, documents, TODAY)

        assert summary.expired == ["basic_life_support"]
        assert summary.mandatory_complete == 0

    def test_expiring_within_warning_window(self):
        user = User(**_make_staff())
        documents = [
            _doc(user, "basic_life_support", status=DocumentStatus.verified,
                 expiry_date=TODAY + timedelta(days=20)),
            _doc(user, "infection_control", status=DocumentStatus.verified,
                 expiry_date=TODAY + timedelta(days=200)),
        ]
        summary = summarise(user, documents, TODAY, warning_days=30)

        assert summary.expiring == ["basic_life_support"]
        item = next(i for i in summary.items if i.document_type == "basic_life_support")
        assert item.days_until_expiry == 20
        assert item.expiring_soon is True

    def test_newest_non_archived_document_wins(self):
        user = User(**_make_staff())
        documents = [
            _doc(user, "dbs_check", status=DocumentStatus.archived),
            _doc(user, "dbs_check", status=DocumentStatus.rejected),
            _doc(user, "dbs_check", status=DocumentStatus.verified),
        ]
        summary = summarise(user, documents, TODAY)

        item = next(i for i in summary.items if i.document_type == "dbs_check")
        assert item.state == ComplianceItemState.rejected

    def test_supplementary_documents_counted_separately(self):
        user = User(**_make_staff())
        documents = [_doc(user, "advanced_life_support", status=DocumentStatus.verified)]
        summary = summarise(user, documents, TODAY)

        assert summary.supplementary_count == 1
        assert summary.mandatory_complete == 0


class TestSummaryQueries:
    async def test_get_summary_reads_staff_documents(self, db, test_staff):
        await _insert_document(
            db, entity_id=test_staff["id"], document_type="dbs_check",
            status=DocumentStatus.verified,
        )
        summary = await ComplianceService.get_summary(db, test_staff["id"], today=TODAY)
        assert summary.mandatory_complete == 1
        assert summary.user_id == test_staff["id"]

    async def test_get_summary_for_non_staff(self, db, test_admin):
        with pytest.raises(NotFoundException):
            await ComplianceService.get_summary(db, test_admin["id"])

    async def test_summaries_for_many(self, db):
        first = await _insert_staff(db)
        second = await _insert_staff(db, profession=Profession.clinical_pharmacist)
        await _insert_document(
            db, entity_id=first["id"], document_type="right_to_work",
            status=DocumentStatus.verified,
        )
        users = [await db.get(User, first["id"]), await db.get(User, second["id"])]

        summaries = await ComplianceService.summaries_for(db, users, today=TODAY)

        assert summaries[first["id"]].mandatory_complete == 1
        assert summaries[second["id"]].mandatory_complete == 0
        assert await ComplianceService.summaries_for(db, []) == {}

    async def test_expiring_documents_window(self, db, test_staff):
        soon = await _insert_document(
            db, entity_id=test_staff["id"], document_type="basic_life_support",
            status=DocumentStatus.verified, expiry_date=TODAY + timedelta(days=10),
        )
        await _insert_document(
            db, entity_id=test_staff["id"], document_type="infection_control",
            status=DocumentStatus.verified, expiry_date=TODAY + timedelta(days=45),
        )
        await _insert_document(
            db, entity_id=test_staff["id"], document_type="medical_cv",
            status=DocumentStatus.pending, expiry_date=TODAY + timedelta(days=5),
        )

        rows = await ComplianceService.expiring_documents(db, days=30, today=TODAY)

        assert [(d.id, left) for d, left in rows] == [(soon["id"], 10)]


# ═════════════════════════════════════════════════════════════════════
# 2. EXPIRY SWEEP
# ═════════════════════════════════════════════════════════════════════


class TestExpirySweep:
    async def test_overdue_document_expires_and_owner_notified(self, db, test_staff):
        doc = await _insert_document(
            db, entity_id=test_staff["id"], document_type="basic_life_support",
            status=DocumentStatus.verified, expiry_date=TODAY - timedelta(days=1),
        )

        counts = await ComplianceService.run_expiry_sweep(db, today=TODAY)

        assert counts["expired"] == 1
        stored = await db.get(Document, doc["id"])
        assert stored.status == DocumentStatus.expired.value
        assert len(await _notifications(db, test_staff["id"], NotificationType.document_expired)) == 1

    async def test_reminder_sent_once_per_threshold(self, db, test_staff):
        doc = await _insert_document(
            db, entity_id=test_staff["id"], document_type="medical_indemnity",
            status=DocumentStatus.verified, expiry_date=TODAY + timedelta(days=60),
        )

        first = await ComplianceService.run_expiry_sweep(db, today=TODAY, thresholds=[90, 30, 7])
        again = await ComplianceService.run_expiry_sweep(db, today=TODAY, thresholds=[90, 30, 7])

        assert first["reminders_sent"] == 1
        assert again["reminders_sent"] == 0
        stored = await db.get(Document, doc["id"])
        assert stored.last_reminder_days == 90

        later = TODAY + timedelta(days=31)
        crossed = await ComplianceService.run_expiry_sweep(db, today=later, thresholds=[90, 30, 7])
        assert crossed["reminders_sent"] == 1
        assert stored.last_reminder_days == 30

        reminders = await _notifications(db, test_staff["id"], NotificationType.document_expiring)
        assert len(reminders) == 2

    async def test_first_seen_inside_last_window_gets_one_reminder(self, db, test_staff):
        doc = await _insert_document(
            db, entity_id=test_staff["id"], document_type="medical_indemnity",
            status=DocumentStatus.verified, expiry_date=TODAY + timedelta(days=5),
        )

        first = await ComplianceService.run_expiry_sweep(db, today=TODAY, thresholds=[90, 30, 7])
        next_day = await ComplianceService.run_expiry_sweep(
            db, today=TODAY + timedelta(days=1), thresholds=[90, 30, 7],
        )

        assert first["reminders_sent"] == 1
        assert next_day["reminders_sent"] == 0
        stored = await db.get(Document, doc["id"])
        assert stored.last_reminder_days == 7
        reminders = await _notifications(db, test_staff["id"], NotificationType.document_expiring)
        assert len(reminders) == 1

    async def test_outside_every_threshold_is_quiet(self, db, test_staff):
        await _insert_document(
            db, entity_id=test_staff["id"], document_type="medical_indemnity",
            status=DocumentStatus.verified, expiry_date=TODAY + timedelta(days=200),
        )
        counts = await ComplianceService.run_expiry_sweep(db, today=TODAY, thresholds=[90, 30, 7])
        assert counts == {"expired": 0, "reminders_sent": 0, "dbs_expired": 0}

    async def test_pending_documents_are_ignored(self, db, test_staff):
        await _insert_document(
            db, entity_id=test_staff["id"], document_type="medical_indemnity",
            status=DocumentStatus.pending, expiry_date=TODAY - timedelta(days=3),
        )
        counts = await ComplianceService.run_expiry_sweep(db, today=TODAY)
        assert counts["expired"] == 0

    async def test_lapsed_dbs_checks_expire(self, db, test_staff, test_admin):
        check = await ComplianceService.create_dbs(
            db,
            DbsCheckCreate(
                staff_id=test_staff["id"],
                certificate_number="001234567890",
                issue_date=TODAY - timedelta(days=1200),
                expiry_date=TODAY - timedelta(days=5),
            ),
            actor_id=test_admin["id"],
        )

        counts = await ComplianceService.run_expiry_sweep(db, today=TODAY)

        assert counts["dbs_expired"] == 1
        assert check.verification_status == DbsVerificationStatus.expired.value


# ═════════════════════════════════════════════════════════════════════
# 3. RECORDS AND DBS CHECKS
# ═════════════════════════════════════════════════════════════════════


class TestComplianceRecords:
    async def test_create_list_update_delete(self, db, test_staff, test_admin):
        record = await ComplianceService.create_record(
            db,
            ComplianceRecordCreate(
                staff_id=test_staff["id"],
                type="fit_testing",
                title="FFP3 Fit Test",
                issue_date=date(2026, 1, 1),
                expiry_date=date(2027, 1, 1),
            ),
            actor_id=test_admin["id"],
        )
        assert record.compliance_category == "legal_safety"

        page = await ComplianceService.list_records(
            db, PaginationParams(page=1, page_size=50, sort=None), staff_id=test_staff["id"],
        )
        assert page.meta.total == 1

        updated = await ComplianceService.update_record(
            db, record, {"title": "FFP3 Fit Test (renewed)"}, actor_id=test_admin["id"],
        )
        assert updated.title == "FFP3 Fit Test (renewed)"

        with pytest.raises(ValidationException):
            await ComplianceService.update_record(
                db, record, {"expiry_date": date(2025, 1, 1)}, actor_id=test_admin["id"],
            )

        await ComplianceService.delete_record(db, record, actor_id=test_admin["id"])
        with pytest.raises(NotFoundException):
            await ComplianceService.get_record(db, record.id)

    async def test_record_requires_staff_member(self, db, test_admin):
        with pytest.raises(NotFoundException):
            await ComplianceService.create_record(
                db,
                ComplianceRecordCreate(staff_id=test_admin["id"], type="x", title="X"),
                actor_id=test_admin["id"],
            )

    def test_record_dates_validated_on_input(self):
        with pytest.raises(ValueError):
            ComplianceRecordCreate(
                staff_id=uuid.uuid4(), type="x", title="X",
                issue_date=date(2026, 2, 1), expiry_date=date(2026, 1, 1),
            )


class TestDbsChecks:
    async def _check(self, db, staff, admin, **overrides) -> DbsCheck:
        fields = dict(
            staff_id=staff["id"],
            certificate_number="001122334455",
            issue_date=date(2025, 1, 1),
            expiry_date=date(2028, 1, 1),
        )
        fields.update(overrides)
        return await ComplianceService.create_dbs(
            db, DbsCheckCreate(**fields), actor_id=admin["id"],
        )

    async def test_created_pending(self, db, test_staff, test_admin):
        check = await self._check(db, test_staff, test_admin)
        assert check.verification_status == DbsVerificationStatus.pending.value
        assert check.check_level == "enhanced"

    async def test_verify_stamps_reviewer(self, db, test_staff, test_admin):
        check = await self._check(db, test_staff, test_admin)
        await ComplianceService.verify_dbs(
            db, check, "verified", actor_id=test_admin["id"], today=TODAY,
        )
        assert check.verification_status == DbsVerificationStatus.verified.value
        assert check.verified_by_id == test_admin["id"]
        assert check.verified_at is not None

    async def test_reject_clears_reviewer(self, db, test_staff, test_admin):
        check = await self._check(db, test_staff, test_admin)
        await ComplianceService.verify_dbs(db, check, "verified", actor_id=test_admin["id"], today=TODAY)
        await ComplianceService.verify_dbs(
            db, check, "rejected", actor_id=test_admin["id"], notes="Name mismatch",
        )
        assert check.verification_status == DbsVerificationStatus.rejected.value
        assert check.verified_by_id is None
        assert check.notes == "Name mismatch"

    async def test_expired_check_cannot_be_verified(self, db, test_staff, test_admin):
        check = await self._check(
            db, test_staff, test_admin,
            issue_date=date(2022, 1, 1), expiry_date=date(2025, 1, 1),
        )
        with pytest.raises(ValidationException):
            await ComplianceService.verify_dbs(
                db, check, "verified", actor_id=test_admin["id"], today=TODAY,
            )

    async def test_update_checks_dates_against_stored(self, db, test_staff, test_admin):
        check = await self._check(db, test_staff, test_admin)
        with pytest.raises(ValidationException):
            await ComplianceService.update_dbs(
                db, check, {"expiry_date": date(2024, 1, 1)}, actor_id=test_admin["id"],
            )

    async def test_list_filters_by_status(self, db, test_staff, test_admin):
        check = await self._check(db, test_staff, test_admin)
        await self._check(db, test_staff, test_admin, certificate_number="009988776655")
        await ComplianceService.verify_dbs(db, check, "verified", actor_id=test_admin["id"], today=TODAY)

        page = await ComplianceService.list_dbs(
            db, PaginationParams(page=1, page_size=50, sort=None),
            status=DbsVerificationStatus.verified,
        )
        assert page.meta.total == 1
        assert page.data[0].id == check.id


# ═════════════════════════════════════════════════════════════════════
# 4. API
# ═════════════════════════════════════════════════════════════════════


class TestComplianceApi:
    async def test_requirements_for_role(self, client, test_staff, db):
        await db.commit()
        resp = await client.get(
            "/api/v1/compliance/requirements",
            params={"role": "gp"},
            headers=auth_headers_for(test_staff),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "gp"
        assert [r["id"] for r in body["mandatory"]] == list(GP_MANDATORY)

    async def test_requirements_for_care_home(self, client, test_staff, db):
        await db.commit()
        resp = await client.get(
            "/api/v1/compliance/requirements",
            params={"entity_type": "care_home"},
            headers=auth_headers_for(test_staff),
        )
        assert resp.status_code == 200
        assert "cqc_registration" in [r["id"] for r in resp.json()["mandatory"]]

    async def test_my_compliance(self, client, test_staff, db):
        await db.commit()
        resp = await client.get("/api/v1/compliance/me", headers=auth_headers_for(test_staff))
        assert resp.status_code == 200
        assert resp.json()["user_id"] == str(test_staff["id"])

    async def test_staff_cannot_read_another_summary(self, client, test_staff, db):
        other = await _insert_staff(db)
        await db.commit()
        resp = await client.get(
            f"/api/v1/compliance/summary/{other['id']}",
            headers=auth_headers_for(test_staff),
        )
        assert resp.status_code == 403

    async def test_support_reads_summary(self, client, test_staff, test_support, db):
        await db.commit()
        resp = await client.get(
            f"/api/v1/compliance/summary/{test_staff['id']}",
            headers=auth_headers_for(test_support),
        )
        assert resp.status_code == 200

    async def test_sweep_requires_documents_admin(self, client, test_admin, test_support, db):
        await db.commit()
        denied = await client.post(
            "/api/v1/compliance/sweep", headers=auth_headers_for(test_support),
        )
        assert denied.status_code == 403

        resp = await client.post(
            "/api/v1/compliance/sweep",
            params={"today": "2026-06-01"},
            headers=auth_headers_for(test_admin),
        )
        assert resp.status_code == 200
        assert resp.json() == {"expired": 0, "reminders_sent": 0, "dbs_expired": 0}

    async def test_staff_records_are_scoped(self, client, test_staff, db):
        other = await _insert_staff(db)
        await db.commit()
        headers = auth_headers_for(test_staff)

        created = await client.post(
            "/api/v1/compliance/records",
            json={"staff_id": str(test_staff["id"]), "type": "fit_testing", "title": "Fit Test"},
            headers=headers,
        )
        assert created.status_code == 201

        foreign = await client.post(
            "/api/v1/compliance/records",
            json={"staff_id": str(other["id"]), "type": "fit_testing", "title": "Fit Test"},
            headers=headers,
        )
        assert foreign.status_code == 403

        listed = await client.get("/api/v1/compliance/records", headers=headers)
        assert listed.status_code == 200
        assert listed.json()["meta"]["total"] == 1

    async def test_dbs_verify_endpoint(self, client, test_staff, test_support, db):
        await db.commit()
        created = await client.post(
            "/api/v1/compliance/dbs",
            json={
                "staff_id": str(test_staff["id"]),
                "certificate_number": "001234567890",
                "issue_date": "2026-01-15",
            },
            headers=auth_headers_for(test_staff),
        )
        assert created.status_code == 201
        check_id = created.json()["id"]

        forbidden = await client.post(
            f"/api/v1/compliance/dbs/{check_id}/verify",
            json={"status": "verified"},
            headers=auth_headers_for(test_staff),
        )
        assert forbidden.status_code == 403

        resp = await client.post(
            f"/api/v1/compliance/dbs/{check_id}/verify",
            json={"status": "verified"},
            headers=auth_headers_for(test_support),
        )
        assert resp.status_code == 200
        assert resp.json()["verification_status"] == "verified"
        assert resp.json()["verified_by_id"] == str(test_support["id"])

    async def test_expiring_endpoint(self, client, test_staff, test_admin, db):
        await _insert_document(
            db, entity_id=test_staff["id"], document_type="basic_life_support",
            status=DocumentStatus.verified, expiry_date=date.today() + timedelta(days=5),
        )
        await db.commit()
        resp = await client.get(
            "/api/v1/compliance/expiring",
            params={"days": 30},
            headers=auth_headers_for(test_admin),
        )
        assert resp.status_code == 200
        assert [d["days_left"] for d in resp.json()] == [5]
