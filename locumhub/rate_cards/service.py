"""Rate card service — CRUD, derived agency markup and cost previews."""

from __future__ import annotations

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.common.audit import create_audit_entry
from locumhub.common.exceptions import ConflictError, NotFoundException, ValidationException
from locumhub.rate_cards.models import RateCard
from locumhub.rate_cards.schemas import MAX_MARKUP, RateCardCreate, RateCardPreview

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def markup_percent(pay: Decimal, bill: Decimal) -> Decimal:
    """Agency markup over worker pay, as a percentage to two decimals."""
    return ((bill - pay) / pay * 100).quantize(_CENT, rounding=ROUND_HALF_UP)


def _values(data: RateCardCreate) -> dict:
    values = data.model_dump()
    values["role"] = data.role.strip()
    derived = {
        "agency_markup_min": (data.worker_pay_rate_min, data.client_bill_rate_min),
        "agency_markup_max": (data.worker_pay_rate_max, data.client_bill_rate_max),
    }
    errors: dict[str, list[str]] = {}
    for field, (pay, bill) in derived.items():
        if values[field] is not None:
            continue
        values[field] = markup_percent(pay, bill)
        if values[field] > MAX_MARKUP:
            errors[field] = [
                f"Derived markup {values[field]}% exceeds {MAX_MARKUP}%; "
                "check the pay and bill rates or supply the markup."
            ]
    if errors:
        raise ValidationException(errors)
    return values


class RateCardService:

    @staticmethod
    async def _ensure_role_free(
        db: AsyncSession,
        role: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(RateCard.id).where(func.lower(RateCard.role) == role.strip().lower())
        if exclude_id is not None:
            query = query.where(RateCard.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("role", role.strip())

    @staticmethod
    async def list_rate_cards(
        db: AsyncSession,
        *,
        include_inactive: bool = False,
    ) -> list[RateCard]:
        query = select(RateCard).order_by(RateCard.role.asc())
        if not include_inactive:
            query = query.where(RateCard.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_rate_card(db: AsyncSession, rate_card_id: uuid.UUID) -> RateCard:
        rate_card = await db.get(RateCard, rate_card_id)
        if rate_card is None:
            raise NotFoundException("RateCard", rate_card_id)
        return rate_card

    @staticmethod
    async def get_by_role(db: AsyncSession, role: str) -> RateCard:
        result = await db.execute(
            select(RateCard).where(
                func.lower(RateCard.role) == role.strip().lower(),
                RateCard.is_active.is_(True),
            )
        )
        rate_card = result.scalars().first()
        if rate_card is None:
            raise NotFoundException("RateCard", role)
        return rate_card

    @staticmethod
    async def create_rate_card(
        db: AsyncSession,
        data: RateCardCreate,
        *,
        actor_id: uuid.UUID,
    ) -> RateCard:
        await RateCardService._ensure_role_free(db, data.role)
        values = _values(data)
        rate_card = RateCard(**values)
        db.add(rate_card)
        await db.flush()
        await create_audit_entry(
            db,
            action="create",
            entity_type="rate_card",
            entity_id=rate_card.id,
            actor_id=actor_id,
            new_values=values,
        )
        logger.info("Rate card created for role '%s'", rate_card.role)
        return rate_card

    @staticmethod
    async def update_rate_card(
        db: AsyncSession,
        rate_card_id: uuid.UUID,
        data: RateCardCreate,
        *,
        actor_id: uuid.UUID,
    ) -> RateCard:
        rate_card = await RateCardService.get_rate_card(db, rate_card_id)
        await RateCardService._ensure_role_free(db, data.role, exclude_id=rate_card.id)
        values = _values(data)
        old = {field: getattr(rate_card, field) for field in values}
        for field, value in values.items():
            setattr(rate_card, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type="rate_card",
            entity_id=rate_card.id,
            actor_id=actor_id,
            old_values=old,
            new_values=values,
        )
        return rate_card

    @staticmethod
    async def delete_rate_card(
        db: AsyncSession,
        rate_card_id: uuid.UUID,
        *,
        actor_id: uuid.UUID,
    ) -> None:
        rate_card = await RateCardService.get_rate_card(db, rate_card_id)
        await create_audit_entry(
            db,
            action="delete",
            entity_type="rate_card",
            entity_id=rate_card.id,
            actor_id=actor_id,
            old_values={"role": rate_card.role},
        )
        await db.delete(rate_card)
        await db.flush()

    @staticmethod
    def preview(rate_card: RateCard, hours: Decimal) -> RateCardPreview:
        pay_min = (Decimal(rate_card.worker_pay_rate_min) * hours).quantize(_CENT)
        pay_max = (Decimal(rate_card.worker_pay_rate_max) * hours).quantize(_CENT)
        bill_min = (Decimal(rate_card.client_bill_rate_min) * hours).quantize(_CENT)
        bill_max = (Decimal(rate_card.client_bill_rate_max) * hours).quantize(_CENT)
        return RateCardPreview(
            role=rate_card.role,
            hours=hours,
            pay_total_min=pay_min,
            pay_total_max=pay_max,
            bill_total_min=bill_min,
            bill_total_max=bill_max,
            margin_min=bill_min - pay_min,
            margin_max=bill_max - pay_max,
        )
