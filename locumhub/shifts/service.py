"""Shift service — shift lifecycle, candidate scoring and manual allocation."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import Organisation, User
from locumhub.auth.dependencies import has_permission
from locumhub.common.audit import create_audit_entry
from locumhub.common.constants import (
    ORGANISATION_USER_TYPES,
    AccessLevel,
    AllocationReportStatus,
    CandidateResponseStatus,
    OnboardingStatus,
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
from locumhub.common.filters import apply_filters
from locumhub.common.pagination import PaginatedResponse, PaginationParams, paginate
from locumhub.compliance.schemas import ComplianceSummaryOut
from locumhub.compliance.service import ComplianceService
from locumhub.notifications.service import (
    notify_shift_allocated,
    notify_shift_booked,
    notify_shift_released,
    notify_urgent_shift,
)
from locumhub.shifts.models import AllocationCandidate, AllocationReport, Shift
from locumhub.shifts.schemas import AllocationResponseRequest, ShiftCreate

logger = logging.getLogger(__name__)

_ORG_TYPES = {t.value for t in ORGANISATION_USER_TYPES}

ROLE_POINTS = 40
COMPLIANCE_POINTS = 30
SKILL_POINTS = 20
EXPERIENCE_POINTS = 10
DEFAULT_CANDIDATE_LIMIT = 20


def score_candidate(
    shift: Shift,
    staff: User,
    summary: Optional[ComplianceSummaryOut],
) -> tuple[int, list[str]]:
    """Match score (0-100) of *staff* for *shift* and the reasons behind it.

    Role match 40, full mandatory compliance 30, required-skill overlap up
    to 20 (pro rata; a shift with no required skills scores the full 20),
    experience one point per year up to 10.
    """
    score = 0
    reasons: list[str] = []

    if staff.profession == shift.role:
        score += ROLE_POINTS
        reasons.append(f"Role match: {shift.role} (+{ROLE_POINTS})")
    else:
        reasons.append(f"Different role: {staff.profession or 'unspecified'} (+0)")

    if summary is not None and summary.is_compliant:
        score += COMPLIANCE_POINTS
        reasons.append(f"All mandatory documents verified (+{COMPLIANCE_POINTS})")
    else:
        pct = summary.completion_percentage if summary is not None else 0.0
        reasons.append(f"Compliance {pct}% complete (+0)")

    required = {s.strip().lower() for s in (shift.required_skills or []) if s.strip()}
    if required:
        held = {s.strip().lower() for s in (staff.specializations or [])}
        matched = len(required & held)
        points = round(SKILL_POINTS * matched / len(required))
        reasons.append(f"Skills {matched}/{len(required)} matched (+{points})")
    else:
        points = SKILL_POINTS
        reasons.append(f"No specific skills required (+{points})")
    score += points

    years = max(staff.years_experience or 0, 0)
    points = min(years, EXPERIENCE_POINTS)
    score += points
    reasons.append(f"{years} year(s) experience (+{points})")

    return score, reasons


def _overlaps(a: Shift, b: Shift) -> bool:
    return (
        a.shift_date == b.shift_date
        and a.start_time < b.end_time
        and b.start_time < a.end_time
    )


class ShiftService:

    # ── Access ───────────────────────────────────────────────────────

    @staticmethod
    def _assert_manage(user: User, shift: Shift) -> None:
        if has_permission(user, SystemTab.shifts, AccessLevel.write):
            return
        if user.user_type in _ORG_TYPES and user.organisation_id == shift.organisation_id:
            return
        raise ForbiddenException("You cannot manage this shift.")

    @staticmethod
    def _scoped(query, user: User):
        if has_permission(user, SystemTab.shifts, AccessLevel.read):
            return query
        if user.user_type in _ORG_TYPES:
            return query.where(Shift.organisation_id == user.organisation_id)
        return query.where(Shift.assigned_staff_id == user.id)

    # ── Shifts ───────────────────────────────────────────────────────

    @staticmethod
    async def get_shift(db: AsyncSession, shift_id: uuid.UUID) -> Shift:
        shift = await db.get(Shift, shift_id)
        if shift is None:
            raise NotFoundException("Shift", shift_id)
        return shift

    @staticmethod
    async def create_shift(db: AsyncSession, user: User, data: ShiftCreate) -> Shift:
        if has_permission(user, SystemTab.shifts, AccessLevel.write):
            if data.organisation_id is None:
                raise ValidationException({"organisation_id": ["organisation_id is required."]})
            organisation_id = data.organisation_id
        elif user.user_type in _ORG_TYPES and user.organisation_id is not None:
            organisation_id = user.organisation_id
        else:
            raise ForbiddenException("You cannot create shifts.")

        if await db.get(Organisation, organisation_id) is None:
            raise NotFoundException("Organisation", organisation_id)

        shift = Shift(
            organisation_id=organisation_id,
            role=data.role.value,
            shift_date=data.shift_date,
            start_time=data.start_time,
            end_time=data.end_time,
            hourly_rate=data.hourly_rate,
            required_skills=list(data.required_skills),
            is_urgent=data.is_urgent,
            notes=data.notes,
            status=ShiftStatus.open.value,
            created_by_id=user.id,
        )
        db.add(shift)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="shift",
            entity_id=shift.id,
            actor_id=user.id,
            new_values=data.model_dump(),
        )
        if shift.is_urgent:
            await notify_urgent_shift(db, shift)
        logger.info("Shift %s created for %s on %s", shift.id, shift.role, shift.shift_date)
        return shift

    @staticmethod
    async def list_shifts(
        db: AsyncSession,
        user: User,
        pagination: PaginationParams,
        *,
        status: Optional[ShiftStatus] = None,
        organisation_id: Optional[uuid.UUID] = None,
        role: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        is_urgent: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(Shift).order_by(Shift.shift_date.asc(), Shift.start_time.asc())
        query = ShiftService._scoped(query, user)
        query = apply_filters(
            query,
            Shift,
            {
                "status": status.value if status else None,
                "organisation_id": organisation_id,
                "role": role,
                "shift_date__from": date_from,
                "shift_date__to": date_to,
                "is_urgent": is_urgent,
            },
        )
        return await paginate(db, query, pagination, model=Shift)

    @staticmethod
    async def open_shifts(
        db: AsyncSession,
        user: User,
        *,
        today: Optional[date] = None,
    ) -> list[Shift]:
        """Open shifts from today onwards; urgent ones first within a day."""
        query = (
            select(Shift)
            .where(
                Shift.status == ShiftStatus.open.value,
                Shift.shift_date >= (today or date.today()),
            )
            .order_by(Shift.shift_date.asc(), Shift.is_urgent.desc(), Shift.start_time.asc())
        )
        if user.user_type in _ORG_TYPES and not has_permission(
            user, SystemTab.shifts, AccessLevel.read,
        ):
            query = query.where(Shift.organisation_id == user.organisation_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def cancel_shift(
        db: AsyncSession,
        user: User,
        shift: Shift,
        reason: Optional[str] = None,
    ) -> Shift:
        ShiftService._assert_manage(user, shift)
        if shift.status not in (ShiftStatus.open.value, ShiftStatus.assigned.value):
            raise InvalidTransitionException("Shift", shift.status, ShiftStatus.cancelled.value)

        old_status = shift.status
        shift.status = ShiftStatus.cancelled.value
        if reason:
            shift.notes = f"{shift.notes}\n{reason}" if shift.notes else reason
        await db.flush()
        await create_audit_entry(
            db,
            action="cancel",
            entity_type="shift",
            entity_id=shift.id,
            actor_id=user.id,
            old_values={"status": old_status},
            new_values={"status": shift.status, "reason": reason},
        )
        return shift

    @staticmethod
    async def _eligible_staff(db: AsyncSession, staff_id: uuid.UUID) -> User:
        staff = await db.get(User, staff_id)
        if staff is None or staff.user_type != UserType.staff.value:
            raise NotFoundException("Staff member", staff_id)
        if not staff.is_active or staff.onboarding_status != OnboardingStatus.approved.value:
            raise ValidationException(
                {"staff_id": ["Only active staff with approved onboarding can be allocated."]}
            )
        return staff

    @staticmethod
    async def _assign(
        db: AsyncSession,
        shift: Shift,
        staff: User,
        *,
        actor_id: uuid.UUID,
    ) -> Shift:
        if shift.status != ShiftStatus.open.value or shift.assigned_staff_id is not None:
            raise InvalidTransitionException("Shift", shift.status, ShiftStatus.assigned.value)
        clash = await ShiftService._clashing_shift(db, shift, staff.id)
        if clash is not None:
            raise ValidationException({
                "staff_id": [
                    f"Already booked {clash.start_time:%H:%M}–{clash.end_time:%H:%M} "
                    f"on {clash.shift_date}."
                ]
            })

        shift.status = ShiftStatus.assigned.value
        shift.assigned_staff_id = staff.id
        await db.flush()
        await create_audit_entry(
            db,
            action="assign",
            entity_type="shift",
            entity_id=shift.id,
            actor_id=actor_id,
            old_values={"status": ShiftStatus.open.value},
            new_values={"status": shift.status, "assigned_staff_id": staff.id},
        )
        await notify_shift_allocated(db, shift, staff.id)
        logger.info("Shift %s assigned to %s", shift.id, staff.id)
        return shift

    @staticmethod
    async def assign_shift(
        db: AsyncSession,
        user: User,
        shift: Shift,
        staff_id: uuid.UUID,
    ) -> Shift:
        ShiftService._assert_manage(user, shift)
        staff = await ShiftService._eligible_staff(db, staff_id)
        return await ShiftService._assign(db, shift, staff, actor_id=user.id)

    # ── Staff self-service ───────────────────────────────────────────

    @staticmethod
    async def my_shifts(
        db: AsyncSession,
        user: User,
        *,
        include_past: bool = False,
        today: Optional[date] = None,
    ) -> list[Shift]:
        """Shifts booked by or allocated to *user*, soonest first."""
        query = (
            select(Shift)
            .where(
                Shift.assigned_staff_id == user.id,
                Shift.status.in_([ShiftStatus.assigned.value, ShiftStatus.completed.value]),
            )
            .order_by(Shift.shift_date.asc(), Shift.start_time.asc())
        )
        if not include_past:
            query = query.where(Shift.shift_date >= (today or date.today()))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def book_shift(
        db: AsyncSession,
        user: User,
        shift: Shift,
        *,
        today: Optional[date] = None,
    ) -> Shift:
        """A locum books an open shift in their own profession."""
        if user.user_type != UserType.staff.value:
            raise ForbiddenException("Only staff members can book shifts.")
        if shift.status != ShiftStatus.open.value:
            raise InvalidTransitionException("Shift", shift.status, ShiftStatus.assigned.value)
        staff = await ShiftService._eligible_staff(db, user.id)
        if shift.shift_date < (today or date.today()):
            raise ValidationException({"shift_date": ["This shift has already taken place."]})
        if staff.profession != shift.role:
            raise ValidationException({"role": [f"This shift is for the '{shift.role}' role."]})

        await ShiftService._assign(db, shift, staff, actor_id=user.id)

        report = (
            await db.execute(select(AllocationReport).where(AllocationReport.shift_id == shift.id))
        ).scalars().first()
        if report is not None:
            report.status = AllocationReportStatus.completed.value
            report.completed_at = datetime.now(timezone.utc)
            for candidate in report.candidates:
                if candidate.staff_id == staff.id:
                    candidate.response_status = CandidateResponseStatus.accepted.value
            await db.flush()

        await notify_shift_booked(db, shift, staff)
        return shift

    @staticmethod
    async def release_shift(
        db: AsyncSession,
        user: User,
        shift: Shift,
        reason: Optional[str] = None,
    ) -> Shift:
        """The booked locum withdraws; the shift goes back to ``open``."""
        if shift.assigned_staff_id != user.id:
            raise ForbiddenException("You can only cancel your own booking.")
        if shift.status != ShiftStatus.assigned.value:
            raise InvalidTransitionException("Shift", shift.status, ShiftStatus.open.value)

        shift.status = ShiftStatus.open.value
        shift.assigned_staff_id = None
        await db.flush()

        report = (
            await db.execute(select(AllocationReport).where(AllocationReport.shift_id == shift.id))
        ).scalars().first()
        if report is not None and report.status == AllocationReportStatus.completed.value:
            report.status = AllocationReportStatus.in_progress.value
            report.completed_at = None
            for candidate in report.candidates:
                if candidate.staff_id == user.id:
                    candidate.response_status = CandidateResponseStatus.declined.value
            await db.flush()

        await create_audit_entry(
            db,
            action="release",
            entity_type="shift",
            entity_id=shift.id,
            actor_id=user.id,
            old_values={"status": ShiftStatus.assigned.value, "assigned_staff_id": user.id},
            new_values={"status": shift.status, "reason": reason},
        )
        await notify_shift_released(db, shift, user, reason)
        logger.info("Shift %s released by %s", shift.id, user.id)
        return shift

    # ── Allocation report ────────────────────────────────────────────

    @staticmethod
    async def _clashing_shift(
        db: AsyncSession,
        shift: Shift,
        staff_id: uuid.UUID,
    ) -> Optional[Shift]:
        """Another shift the staff member holds that overlaps *shift*."""
        result = await db.execute(
            select(Shift).where(
                Shift.id != shift.id,
                Shift.assigned_staff_id == staff_id,
                Shift.shift_date == shift.shift_date,
                Shift.status == ShiftStatus.assigned.value,
            )
        )
        return next((s for s in result.scalars().all() if _overlaps(s, shift)), None)

    @staticmethod
    async def _booked_staff(db: AsyncSession, shift: Shift) -> set[uuid.UUID]:
        """Staff already assigned to another shift overlapping *shift*."""
        result = await db.execute(
            select(Shift).where(
                Shift.id != shift.id,
                Shift.shift_date == shift.shift_date,
                Shift.status == ShiftStatus.assigned.value,
            )
        )
        return {s.assigned_staff_id for s in result.scalars().all() if _overlaps(s, shift)}

    @staticmethod
    async def get_report(db: AsyncSession, shift_id: uuid.UUID) -> AllocationReport:
        result = await db.execute(
            select(AllocationReport).where(AllocationReport.shift_id == shift_id)
        )
        report = result.scalars().first()
        if report is None:
            raise NotFoundException("AllocationReport", shift_id)
        return report

    @staticmethod
    async def generate_report(
        db: AsyncSession,
        user: User,
        shift: Shift,
        *,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
        today: Optional[date] = None,
    ) -> AllocationReport:
        """Rebuild the ranked candidate list for an open shift."""
        if shift.status != ShiftStatus.open.value:
            raise ValidationException(
                {"shift": [f"Cannot allocate a shift with status '{shift.status}'."]}
            )

        existing = await db.execute(
            select(AllocationReport).where(AllocationReport.shift_id == shift.id)
        )
        old = existing.scalars().first()
        if old is not None:
            await db.delete(old)
            await db.flush()

        result = await db.execute(
            select(User).where(
                User.user_type == UserType.staff.value,
                User.is_active.is_(True),
                User.onboarding_status == OnboardingStatus.approved.value,
            )
        )
        booked = await ShiftService._booked_staff(db, shift)
        staff = [u for u in result.scalars().all() if u.id not in booked]
        summaries = await ComplianceService.summaries_for(db, staff, today=today)

        scored = []
        for member in staff:
            score, reasons = score_candidate(shift, member, summaries.get(member.id))
            scored.append((score, member, reasons))
        scored.sort(key=lambda row: (-row[0], row[1].last_name.lower(), row[1].first_name.lower()))

        report = AllocationReport(
            shift_id=shift.id,
            status=AllocationReportStatus.draft.value,
            generated_by_id=user.id,
            generated_at=datetime.now(timezone.utc),
            candidates=[
                AllocationCandidate(
                    staff_id=member.id,
                    staff=member,
                    rank=rank,
                    match_score=score,
                    match_reasons=reasons,
                    response_status=CandidateResponseStatus.pending.value,
                )
                for rank, (score, member, reasons) in enumerate(scored[:limit], start=1)
            ],
        )
        db.add(report)
        await db.flush()

        await create_audit_entry(
            db,
            action="generate_allocation",
            entity_type="shift",
            entity_id=shift.id,
            actor_id=user.id,
            new_values={"candidates": len(report.candidates)},
        )
        logger.info(
            "Allocation report for shift %s: %d candidate(s) from %d eligible",
            shift.id, len(report.candidates), len(staff),
        )
        return report

    @staticmethod
    async def record_response(
        db: AsyncSession,
        user: User,
        body: AllocationResponseRequest,
    ) -> AllocationReport:
        """Record a candidate's answer; an acceptance books the shift."""
        shift = await ShiftService.get_shift(db, body.shift_id)
        ShiftService._assert_manage(user, shift)
        report = await ShiftService.get_report(db, shift.id)

        candidate = next((c for c in report.candidates if c.staff_id == body.staff_id), None)
        if candidate is None:
            raise NotFoundException("AllocationCandidate", body.staff_id)

        if body.status == CandidateResponseStatus.accepted:
            staff = await ShiftService._eligible_staff(db, body.staff_id)
            await ShiftService._assign(db, shift, staff, actor_id=user.id)
            report.status = AllocationReportStatus.completed.value
            report.completed_at = datetime.now(timezone.utc)
        elif report.status == AllocationReportStatus.draft.value:
            report.status = AllocationReportStatus.in_progress.value

        old_status = candidate.response_status
        candidate.response_status = body.status.value
        candidate.contact_notes = body.notes
        candidate.last_contacted = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action="allocation_response",
            entity_type="shift",
            entity_id=shift.id,
            actor_id=user.id,
            old_values={"staff_id": body.staff_id, "response_status": old_status},
            new_values={"staff_id": body.staff_id, "response_status": body.status.value},
        )
        return report
