"""Auth endpoints — the current user's profile and effective permissions."""

from fastapi import APIRouter, Depends

from locumhub.accounts.models import User
from locumhub.auth.dependencies import get_current_user
from locumhub.auth.schemas import CurrentUserOut
from locumhub.common.constants import AccessLevel, SystemTab, UserType

router = APIRouter(prefix="", tags=["auth"])


@router.get("/me", response_model=CurrentUserOut)
async def get_me(user: User = Depends(get_current_user)):
    """Return the authenticated user; admins get admin on every tab."""
    out = CurrentUserOut.model_validate(user)
    if user.user_type == UserType.admin.value:
        out.permissions = {tab.value: AccessLevel.admin.value for tab in SystemTab}
    elif user.user_type != UserType.business_support.value:
        out.permissions = {}
    return out
