"""Rate cards router — role pay / bill bands and cost previews."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.auth.dependencies import get_current_user, require_permission
from locumhub.common.constants import AccessLevel, SystemTab
from locumhub.database import get_db
from locumhub.rate_cards.schemas import RateCardCreate, RateCardOut, RateCardPreview
from locumhub.rate_cards.service import RateCardService

router = APIRouter(prefix="", tags=["rate-cards"])


@router.get("", response_model=list[RateCardOut])
async def list_rate_cards(
    include_inactive: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await RateCardService.list_rate_cards(db, include_inactive=include_inactive)


@router.get("/preview", response_model=RateCardPreview)
async def preview_rate_card(
    role: str = Query(..., min_length=1),
    hours: Decimal = Query(..., gt=0, le=168),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Pay / bill totals and agency margin for *hours* of work in *role*."""
    rate_card = await RateCardService.get_by_role(db, role)
    return RateCardService.preview(rate_card, hours)


@router.post("", response_model=RateCardOut, status_code=201)
async def create_rate_card(
    body: RateCardCreate,
    user: User = Depends(require_permission(SystemTab.settings, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    return await RateCardService.create_rate_card(db, body, actor_id=user.id)


@router.put("/{rate_card_id}", response_model=RateCardOut)
async def update_rate_card(
    rate_card_id: uuid.UUID,
    body: RateCardCreate,
    user: User = Depends(require_permission(SystemTab.settings, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    return await RateCardService.update_rate_card(db, rate_card_id, body, actor_id=user.id)


@router.delete("/{rate_card_id}", status_code=204)
async def delete_rate_card(
    rate_card_id: uuid.UUID,
    user: User = Depends(require_permission(SystemTab.settings, AccessLevel.write)),
    db: AsyncSession = Depends(get_db),
):
    await RateCardService.delete_rate_card(db, rate_card_id, actor_id=user.id)
