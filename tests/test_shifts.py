"""Shift tests — lifecycle, scoring, allocation, staff booking and the API."""

from __future__ import annotations

import uuid
from datetime import date, time, timedelta

import pytest
from pydantic import ValidationError
from sqlalchemy import select

from locumhub.accounts.models import User
from locumhub.common.constants import (
    AccessLevel,
    AllocationReportStatus,
    CandidateResponseStatus,
    DocumentStatus,
    NotificationType,
    OnboardingStatus,
    Profession,
    ShiftStatus,
    SystemTab,
    UserType,
)
from locumhub.common.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from locumhub.common.pagination import PaginationParams
from locumhub.compliance.requirements import ROLE_REQUIREMENTS
from locumhub.compliance.service import summarise
from locumhub.notifications.models import Notification
from locumhub.shifts.models import Shift
from locumhub.shifts.schemas import AllocationResponseRequest, ShiftCreate
from locumhub.shifts.service import ShiftService, score_candidate
from tests.conftest import (
    _insert_document,
    _insert_staff,
    _insert_user,
    _make_document,
    _make_staff,
    auth_headers_for,
)

SHIFT_DAY = date.today() + timedelta(days=7)
PAGE = PaginationParams(page=1, page_size=50, sort=None)


def _shift(**overrides) -> Shift:
    fields = dict(
        id=uuid.uuid4(),
        organisation_id=uuid.uuid4(),
        role=Profession.gp.value,
        shift_date=SHIFT_DAY,
        start_time=time(9, 0),
        end_time=time(17, 0),
        required_skills=[],
        is_urgent=False,
        status=ShiftStatus.open.value,
    )
    fields.update(overrides)
    return Shift(**fields)


def _compliant_summary(user: User):
    from locumhub.documents.models import Document

    documents = [
        Document(**_make_document(
            entity_id=user.id, document_type=t, status=DocumentStatus.verified,
        ))
        for t in ROLE_REQUIREMENTS[Profession.gp].mandatory
    ]
    return summarise(user, documents, date.today())


async def _make_compliant(db, staff: dict) -> None:
    for document_type in ROLE_REQUIREMENTS[Profession(staff["profession"])].mandatory:
        await _insert_document(
            db, entity_id=staff["id"], document_type=document_type,
            status=DocumentStatus.verified,
        )


async def _user(db, data: dict) -> User:
    return await db.get(User, data["id"])


async def _post_shift(db, creator: dict, organisation: dict, **overrides) -> Shift:
    fields = dict(
        organisation_id=organisation["id"],
        role=Profession.gp,
        shift_date=SHIFT_DAY,
        start_time=time(9, 0),
        end_time=time(17, 0),
    )
    fields.update(overrides)
    return await ShiftService.create_shift(db, await _user(db, creator), ShiftCreate(**fields))


# ═════════════════════════════════════════════════════════════════════
# 1. SCORING
# ═════════════════════════════════════════════════════════════════════


class TestScoreCandidate:
    def test_perfect_match(self):
        staff = User(**_make_staff(years_experience=12))
        score, reasons = score_candidate(_shift(), staff, _compliant_summary(staff))

        assert score == 100
        assert reasons[0].startswith("Role match")
        assert "12 year(s) experience (+10)" in reasons

    def test_role_mismatch_and_partial_skills(self):
        staff = User(**_make_staff(
            profession=Profession.nurse_practitioner,
            years_experience=3,
            specializations=["Dermatology"],
        ))
        shift = _shift(required_skills=["dermatology", "minor surgery"])
        score, reasons = score_candidate(shift, staff, summarise(staff, [], date.today()))

        assert score == 0 + 0 + 10 + 3
        assert "Skills 1/2 matched (+10)" in reasons

    def test_skill_points_are_rounded(self):
        staff = User(**_make_staff(specializations=["a"]))
        shift = _shift(required_skills=["a", "b", "c"])
        score, _ = score_candidate(shift, staff, None)
        assert score == 40 + 7

    def test_no_summary_scores_no_compliance(self):
        staff = User(**_make_staff())
        score, reasons = score_candidate(_shift(), staff, None)
        assert score == 40 + 20
        assert "Compliance 0.0% complete (+0)" in reasons


# ═════════════════════════════════════════════════════════════════════
# 2. SHIFT LIFECYCLE
# ═════════════════════════════════════════════════════════════════════


class TestShiftLifecycle:
    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError):
            ShiftCreate(
                role=Profession.gp, shift_date=SHIFT_DAY,
                start_time=time(17, 0), end_time=time(9, 0),
            )

    async def test_organisation_posts_for_itself(self, db, test_org_user, test_organisation):
        shift = await _post_shift(db, test_org_user, {"id": None}, organisation_id=None)
        assert shift.organisation_id == test_organisation["id"]
        assert shift.status == ShiftStatus.open.value

    async def test_admin_must_name_organisation(self, db, test_admin, test_organisation):
        with pytest.raises(ValidationException):
            await _post_shift(db, test_admin, test_organisation, organisation_id=None)
        shift = await _post_shift(db, test_admin, test_organisation)
        assert shift.created_by_id == test_admin["id"]

    async def test_staff_cannot_post(self, db, test_staff, test_organisation):
        with pytest.raises(ForbiddenException):
            await _post_shift(db, test_staff, test_organisation)

    async def test_urgent_shift_alerts_admins_and_support(
        self, db, test_admin, test_support, test_org_user, test_organisation,
    ):
        await _post_shift(db, test_org_user, test_organisation, is_urgent=True)

        result = await db.execute(
            select(Notification.recipient_id).where(
                Notification.type == NotificationType.shift_urgent.value,
            )
        )
        assert set(result.scalars().all()) == {test_admin["id"], test_support["id"]}

    async def test_cancel(self, db, test_org_user, test_organisation):
        shift = await _post_shift(db, test_org_user, test_organisation, notes="Morning clinic")
        user = await _user(db, test_org_user)
        await ShiftService.cancel_shift(db, user, shift, "Clinic closed")

        assert shift.status == ShiftStatus.cancelled.value
        assert shift.notes == "Morning clinic\nClinic closed"
        with pytest.raises(InvalidTransitionException):
            await ShiftService.cancel_shift(db, user, shift)

    async def test_other_organisation_cannot_cancel(self, db, test_org_user, test_organisation):
        shift = await _post_shift(db, test_org_user, test_organisation)
        outsider = await _insert_user(db, user_type=UserType.gp_practice, organisation_id=uuid.uuid4())
        with pytest.raises(ForbiddenException):
            await ShiftService.cancel_shift(db, await _user(db, outsider), shift)

    async def test_assign_requires_approved_staff(self, db, test_admin, test_organisation):
        shift = await _post_shift(db, test_admin, test_organisation)
        pending = await _insert_staff(db, onboarding_status=OnboardingStatus.pending)
        with pytest.raises(ValidationException):
            await ShiftService.assign_shift(db, await _user(db, test_admin), shift, pending["id"])
        with pytest.raises(NotFoundException):
            await ShiftService.assign_shift(db, await _user(db, test_admin), shift, test_admin["id"])

    async def test_assign_once(self, db, test_admin, test_staff, test_organisation):
        admin = await _user(db, test_admin)
        shift = await _post_shift(db, test_admin, test_organisation)
        await ShiftService.assign_shift(db, admin, shift, test_staff["id"])

        assert shift.status == ShiftStatus.assigned.value
        assert shift.assigned_staff_id == test_staff["id"]
        other = await _insert_staff(db)
        with pytest.raises(InvalidTransitionException):
            await ShiftService.assign_shift(db, admin, shift, other["id"])

    async def test_staff_list_only_their_assignments(self, db, test_admin, test_staff, test_organisation):
        admin = await _user(db, test_admin)
        mine = await _post_shift(db, test_admin, test_organisation)
        await _post_shift(db, test_admin, test_organisation, start_time=time(18, 0), end_time=time(22, 0))
        await ShiftService.assign_shift(db, admin, mine, test_staff["id"])

        own = await ShiftService.list_shifts(db, await _user(db, test_staff), PAGE)
        everything = await ShiftService.list_shifts(db, admin, PAGE)

        assert [s.id for s in own.data] == [mine.id]
        assert everything.meta.total == 2

    async def test_open_shifts_urgent_first_within_day(self, db, test_admin, test_organisation):
        admin = await _user(db, test_admin)
        routine = await _post_shift(db, test_admin, test_organisation, start_time=time(8, 0), end_time=time(12, 0))
        urgent = await _post_shift(db, test_admin, test_organisation, is_urgent=True)
        await _post_shift(
            db, test_admin, test_organisation, shift_date=date.today() - timedelta(days=1),
        )

        shifts = await ShiftService.open_shifts(db, admin)

        assert [s.id for s in shifts] == [urgent.id, routine.id]


# ═════════════════════════════════════════════════════════════════════
# 3. ALLOCATION REPORT
# ═════════════════════════════════════════════════════════════════════


class TestAllocationReport:
    async def test_candidates_ranked_by_score(self, db, test_admin, test_organisation):
        veteran = await _insert_staff(db, last_name="Veteran", years_experience=15)
        await _make_compliant(db, veteran)
        junior = await _insert_staff(db, last_name="Junior", years_experience=1)
        nurse = await _insert_staff(db, last_name="Nurse", profession=Profession.nurse_practitioner)
        shift = await _post_shift(db, test_admin, test_organisation)

        report = await ShiftService.generate_report(db, await _user(db, test_admin), shift)

        ranked = [(c.staff_id, c.rank, c.match_score) for c in report.candidates]
        assert ranked == [
            (veteran["id"], 1, 100),
            (junior["id"], 2, 61),
            (nurse["id"], 3, 20),
        ]
        assert report.status == AllocationReportStatus.draft.value
        assert all(c.response_status == "pending" for c in report.candidates)

    async def test_equal_scores_ordered_by_surname(self, db, test_admin, test_organisation):
        young = await _insert_staff(db, first_name="Amy", last_name="Young", years_experience=4)
        mills_z = await _insert_staff(db, first_name="Zoe", last_name="Mills", years_experience=4)
        adams = await _insert_staff(db, first_name="Tom", last_name="adams", years_experience=4)
        mills_a = await _insert_staff(db, first_name="Ann", last_name="Mills", years_experience=4)
        shift = await _post_shift(db, test_admin, test_organisation)

        report = await ShiftService.generate_report(db, await _user(db, test_admin), shift)

        assert {c.match_score for c in report.candidates} == {64}
        assert [c.staff_id for c in report.candidates] == [
            adams["id"], mills_a["id"], mills_z["id"], young["id"],
        ]
        assert [c.rank for c in report.candidates] == [1, 2, 3, 4]

    async def test_ineligible_staff_excluded(self, db, test_admin, test_organisation):
        await _insert_staff(db, onboarding_status=OnboardingStatus.pending)
        await _insert_staff(db, is_active=False)
        eligible = await _insert_staff(db)
        shift = await _post_shift(db, test_admin, test_organisation)

        report = await ShiftService.generate_report(db, await _user(db, test_admin), shift)

        assert [c.staff_id for c in report.candidates] == [eligible["id"]]

    async def test_staff_booked_on_overlapping_shift_excluded(
        self, db, test_admin, test_organisation,
    ):
        admin = await _user(db, test_admin)
        busy = await _insert_staff(db, last_name="Busy")
        evening = await _insert_staff(db, last_name="Evening")
        free = await _insert_staff(db, last_name="Free")

        clash = await _post_shift(db, test_admin, test_organisation, start_time=time(13, 0), end_time=time(20, 0))
        await ShiftService.assign_shift(db, admin, clash, busy["id"])
        later = await _post_shift(db, test_admin, test_organisation, start_time=time(17, 0), end_time=time(21, 0))
        await ShiftService.assign_shift(db, admin, later, evening["id"])
        shift = await _post_shift(db, test_admin, test_organisation)

        report = await ShiftService.generate_report(db, admin, shift)

        candidates = {c.staff_id for c in report.candidates}
        assert busy["id"] not in candidates
        assert {evening["id"], free["id"]} <= candidates

    async def test_limit_and_regeneration(self, db, test_admin, test_organisation):
        admin = await _user(db, test_admin)
        for _ in range(3):
            await _insert_staff(db)
        shift = await _post_shift(db, test_admin, test_organisation)

        first = await ShiftService.generate_report(db, admin, shift, limit=2)
        assert len(first.candidates) == 2

        second = await ShiftService.generate_report(db, admin, shift)
        assert len(second.candidates) == 3
        stored = await ShiftService.get_report(db, shift.id)
        assert stored.id == second.id

    async def test_only_open_shifts(self, db, test_admin, test_staff, test_organisation):
        admin = await _user(db, test_admin)
        shift = await _post_shift(db, test_admin, test_organisation)
        await ShiftService.assign_shift(db, admin, shift, test_staff["id"])
        with pytest.raises(ValidationException):
            await ShiftService.generate_report(db, admin, shift)


class TestAllocationResponses:
    async def _report(self, db, admin: dict, organisation: dict):
        shift = await _post_shift(db, admin, organisation)
        report = await ShiftService.generate_report(db, await _user(db, admin), shift)
        return shift, report

    async def test_decline_moves_report_in_progress(self, db, test_admin, test_staff, test_organisation):
        shift, report = await self._report(db, test_admin, test_organisation)
        await ShiftService.record_response(
            db,
            await _user(db, test_admin),
            AllocationResponseRequest(
                shift_id=shift.id, staff_id=test_staff["id"],
                status=CandidateResponseStatus.declined, notes="On holiday",
            ),
        )

        assert report.status == AllocationReportStatus.in_progress.value
        candidate = report.candidates[0]
        assert candidate.response_status == "declined"
        assert candidate.contact_notes == "On holiday"
        assert candidate.last_contacted is not None
        assert shift.status == ShiftStatus.open.value

    async def test_accept_books_shift(self, db, test_admin, test_staff, test_organisation):
        shift, report = await self._report(db, test_admin, test_organisation)
        await ShiftService.record_response(
            db,
            await _user(db, test_admin),
            AllocationResponseRequest(
                shift_id=shift.id, staff_id=test_staff["id"],
                status=CandidateResponseStatus.accepted,
            ),
        )

        assert shift.status == ShiftStatus.assigned.value
        assert shift.assigned_staff_id == test_staff["id"]
        assert report.status == AllocationReportStatus.completed.value
        assert report.completed_at is not None
        result = await db.execute(
            select(Notification).where(
                Notification.recipient_id == test_staff["id"],
                Notification.type == NotificationType.shift_allocation.value,
            )
        )
        assert result.scalar_one().title == "Shift Confirmed"

    async def test_unknown_candidate(self, db, test_admin, test_staff, test_organisation):
        shift, _ = await self._report(db, test_admin, test_organisation)
        with pytest.raises(NotFoundException):
            await ShiftService.record_response(
                db,
                await _user(db, test_admin),
                AllocationResponseRequest(
                    shift_id=shift.id, staff_id=uuid.uuid4(),
                    status=CandidateResponseStatus.accepted,
                ),
            )

    async def test_no_report_yet(self, db, test_admin, test_staff, test_organisation):
        shift = await _post_shift(db, test_admin, test_organisation)
        with pytest.raises(NotFoundException):
            await ShiftService.record_response(
                db,
                await _user(db, test_admin),
                AllocationResponseRequest(
                    shift_id=shift.id, staff_id=test_staff["id"],
                    status=CandidateResponseStatus.no_response,
                ),
            )


# ═════════════════════════════════════════════════════════════════════
# 4. STAFF BOOKING
# ═════════════════════════════════════════════════════════════════════


async def _titles_for(db, recipient_id: uuid.UUID) -> list[str]:
    result = await db.execute(
        select(Notification.title).where(Notification.recipient_id == recipient_id)
    )
    return list(result.scalars().all())


class TestStaffBooking:
    async def test_staff_books_open_shift(
        self, db, test_staff, test_org_user, test_organisation,
    ):
        shift = await _post_shift(db, test_org_user, test_organisation, organisation_id=None)
        staff = await _user(db, test_staff)

        await ShiftService.book_shift(db, staff, shift)

        assert shift.status == ShiftStatus.assigned.value
        assert shift.assigned_staff_id == test_staff["id"]
        assert "Shift Confirmed" in await _titles_for(db, test_staff["id"])
        assert "Shift Booked" in await _titles_for(db, test_org_user["id"])
        assert [s.id for s in await ShiftService.my_shifts(db, staff)] == [shift.id]

    async def test_only_eligible_staff_can_book(
        self, db, test_admin, test_org_user, test_organisation,
    ):
        shift = await _post_shift(db, test_admin, test_organisation)

        with pytest.raises(ForbiddenException):
            await ShiftService.book_shift(db, await _user(db, test_org_user), shift)

        pending = await _insert_staff(db, onboarding_status=OnboardingStatus.pending)
        with pytest.raises(ValidationException):
            await ShiftService.book_shift(db, await _user(db, pending), shift)

        nurse = await _insert_staff(db, profession=Profession.nurse_practitioner)
        with pytest.raises(ValidationException) as exc_info:
            await ShiftService.book_shift(db, await _user(db, nurse), shift)
        assert "role" in exc_info.value.errors
        assert shift.status == ShiftStatus.open.value

    async def test_past_and_taken_shifts_cannot_be_booked(
        self, db, test_admin, test_staff, test_organisation,
    ):
        shift = await _post_shift(db, test_admin, test_organisation)
        staff = await _user(db, test_staff)

        with pytest.raises(ValidationException):
            await ShiftService.book_shift(db, staff, shift, today=SHIFT_DAY + timedelta(days=1))

        other = await _insert_staff(db)
        await ShiftService.book_shift(db, await _user(db, other), shift)
        with pytest.raises(InvalidTransitionException):
            await ShiftService.book_shift(db, staff, shift)

    async def test_overlapping_booking_rejected(
        self, db, test_admin, test_staff, test_organisation,
    ):
        staff = await _user(db, test_staff)
        day = await _post_shift(db, test_admin, test_organisation)
        clash = await _post_shift(
            db, test_admin, test_organisation, start_time=time(13, 0), end_time=time(20, 0),
        )
        evening = await _post_shift(
            db, test_admin, test_organisation, start_time=time(17, 0), end_time=time(21, 0),
        )

        await ShiftService.book_shift(db, staff, day)
        with pytest.raises(ValidationException):
            await ShiftService.book_shift(db, staff, clash)
        await ShiftService.book_shift(db, staff, evening)

        assert clash.status == ShiftStatus.open.value
        assert evening.assigned_staff_id == test_staff["id"]

    async def test_manager_cannot_double_book_either(
        self, db, test_admin, test_staff, test_organisation,
    ):
        admin = await _user(db, test_admin)
        first = await _post_shift(db, test_admin, test_organisation)
        second = await _post_shift(
            db, test_admin, test_organisation, start_time=time(10, 0), end_time=time(12, 0),
        )
        await ShiftService.assign_shift(db, admin, first, test_staff["id"])
        with pytest.raises(ValidationException):
            await ShiftService.assign_shift(db, admin, second, test_staff["id"])

    async def test_booking_completes_allocation_report(
        self, db, test_admin, test_staff, test_organisation,
    ):
        shift = await _post_shift(db, test_admin, test_organisation)
        report = await ShiftService.generate_report(db, await _user(db, test_admin), shift)

        await ShiftService.book_shift(db, await _user(db, test_staff), shift)

        assert report.status == AllocationReportStatus.completed.value
        assert report.candidates[0].response_status == CandidateResponseStatus.accepted.value

    async def test_release_reopens_shift(
        self, db, test_staff, test_org_user, test_organisation,
    ):
        shift = await _post_shift(db, test_org_user, test_organisation, organisation_id=None)
        staff = await _user(db, test_staff)
        await ShiftService.book_shift(db, staff, shift)

        outsider = await _insert_staff(db)
        with pytest.raises(ForbiddenException):
            await ShiftService.release_shift(db, await _user(db, outsider), shift)

        await ShiftService.release_shift(db, staff, shift, "Family emergency")

        assert shift.status == ShiftStatus.open.value
        assert shift.assigned_staff_id is None
        assert "Shift Booking Cancelled" in await _titles_for(db, test_org_user["id"])
        assert await ShiftService.my_shifts(db, staff) == []
        with pytest.raises(ForbiddenException):
            await ShiftService.release_shift(db, staff, shift)

        await ShiftService.book_shift(db, await _user(db, outsider), shift)
        assert shift.assigned_staff_id == outsider["id"]

    async def test_release_reopens_allocation(
        self, db, test_admin, test_staff, test_organisation,
    ):
        admin = await _user(db, test_admin)
        shift = await _post_shift(db, test_admin, test_organisation)
        report = await ShiftService.generate_report(db, admin, shift)
        await ShiftService.record_response(
            db,
            admin,
            AllocationResponseRequest(
                shift_id=shift.id, staff_id=test_staff["id"],
                status=CandidateResponseStatus.accepted,
            ),
        )

        await ShiftService.release_shift(db, await _user(db, test_staff), shift)

        assert report.status == AllocationReportStatus.in_progress.value
        assert report.completed_at is None
        assert report.candidates[0].response_status == CandidateResponseStatus.declined.value

    async def test_my_shifts_hides_past_by_default(
        self, db, test_admin, test_staff, test_organisation,
    ):
        admin = await _user(db, test_admin)
        past = await _post_shift(
            db, test_admin, test_organisation, shift_date=date.today() - timedelta(days=3),
        )
        upcoming = await _post_shift(db, test_admin, test_organisation)
        await ShiftService.assign_shift(db, admin, past, test_staff["id"])
        await ShiftService.assign_shift(db, admin, upcoming, test_staff["id"])
        staff = await _user(db, test_staff)

        assert [s.id for s in await ShiftService.my_shifts(db, staff)] == [upcoming.id]
        everything = await ShiftService.my_shifts(db, staff, include_past=True)
        assert [s.id for s in everything] == [past.id, upcoming.id]


# ═════════════════════════════════════════════════════════════════════
# 5. API
# ═════════════════════════════════════════════════════════════════════


class TestShiftApi:
    async def test_post_allocate_and_accept(self, client, db, test_org_user, test_staff, test_admin):
        await db.commit()
        org_headers = auth_headers_for(test_org_user)

        created = await client.post(
            "/api/v1/shifts",
            json={
                "role": "gp",
                "shift_date": SHIFT_DAY.isoformat(),
                "start_time": "09:00:00",
                "end_time": "17:00:00",
                "hourly_rate": "95.00",
            },
            headers=org_headers,
        )
        assert created.status_code == 201
        shift_id = created.json()["id"]

        report = await client.post(
            f"/api/v1/shifts/{shift_id}/allocation-report/generate",
            headers=auth_headers_for(test_admin),
        )
        assert report.status_code == 200
        candidates = report.json()["candidates"]
        assert candidates[0]["staff"]["id"] == str(test_staff["id"])

        accepted = await client.post(
            "/api/v1/shifts/allocation-response",
            json={"shift_id": shift_id, "staff_id": str(test_staff["id"]), "status": "accepted"},
            headers=org_headers,
        )
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "completed"

        shift = await client.get(f"/api/v1/shifts/{shift_id}", headers=auth_headers_for(test_staff))
        assert shift.status_code == 200
        assert shift.json()["status"] == "assigned"

    async def test_invalid_times_are_422(self, client, db, test_org_user):
        await db.commit()
        resp = await client.post(
            "/api/v1/shifts",
            json={
                "role": "gp",
                "shift_date": SHIFT_DAY.isoformat(),
                "start_time": "17:00:00",
                "end_time": "09:00:00",
            },
            headers=auth_headers_for(test_org_user),
        )
        assert resp.status_code == 422

    async def test_staff_cannot_view_unassigned_shift(
        self, client, db, test_admin, test_staff, test_organisation,
    ):
        shift = await _post_shift(db, test_admin, test_organisation)
        await db.commit()
        resp = await client.get(f"/api/v1/shifts/{shift.id}", headers=auth_headers_for(test_staff))
        assert resp.status_code == 403

    async def test_support_with_shift_access_reads_open_shifts(
        self, client, db, test_admin, test_organisation,
    ):
        support = await _insert_user(
            db,
            user_type=UserType.business_support,
            permissions={SystemTab.shifts.value: AccessLevel.read.value},
        )
        await _post_shift(db, test_admin, test_organisation)
        await db.commit()
        resp = await client.get("/api/v1/shifts/open", headers=auth_headers_for(support))
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    async def test_staff_books_and_releases(
        self, client, db, test_admin, test_staff, test_org_user, test_organisation,
    ):
        shift = await _post_shift(db, test_admin, test_organisation)
        await db.commit()
        staff_headers = auth_headers_for(test_staff)

        open_shifts = await client.get("/api/v1/shifts/open", headers=staff_headers)
        assert [s["id"] for s in open_shifts.json()] == [str(shift.id)]

        booked = await client.post(f"/api/v1/shifts/{shift.id}/book", headers=staff_headers)
        assert booked.status_code == 200
        assert booked.json()["status"] == "assigned"
        assert booked.json()["assigned_staff_id"] == str(test_staff["id"])

        mine = await client.get("/api/v1/shifts/mine", headers=staff_headers)
        assert [s["id"] for s in mine.json()] == [str(shift.id)]

        released = await client.post(
            f"/api/v1/shifts/{shift.id}/release",
            json={"reason": "Unwell"},
            headers=staff_headers,
        )
        assert released.status_code == 200
        assert released.json()["status"] == "open"
        assert released.json()["assigned_staff_id"] is None

    async def test_booking_errors(
        self, client, db, test_admin, test_staff, test_org_user, test_organisation,
    ):
        shift = await _post_shift(db, test_admin, test_organisation)
        other = await _insert_staff(db)
        await db.commit()

        forbidden = await client.post(
            f"/api/v1/shifts/{shift.id}/book", headers=auth_headers_for(test_org_user),
        )
        assert forbidden.status_code == 403

        first = await client.post(
            f"/api/v1/shifts/{shift.id}/book", headers=auth_headers_for(other),
        )
        assert first.status_code == 200
        taken = await client.post(
            f"/api/v1/shifts/{shift.id}/book", headers=auth_headers_for(test_staff),
        )
        assert taken.status_code == 409

        not_mine = await client.post(
            f"/api/v1/shifts/{shift.id}/release", headers=auth_headers_for(test_staff),
        )
        assert not_mine.status_code == 403
