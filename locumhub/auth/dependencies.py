"""Auth dependencies — provider token validation, user-type and tab-permission checks.

Tokens are issued by the external auth provider. We verify the signature,
then map the ``sub`` claim to a local user (falling back to ``email`` the
first time a registered user signs in).
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from locumhub.accounts.models import User
from locumhub.common.constants import (
    ACCESS_LEVEL_RANK,
    AccessLevel,
    SystemTab,
    UserType,
)
from locumhub.common.exceptions import ForbiddenException, UnauthorizedException
from locumhub.config import settings
from locumhub.database import get_db

logger = logging.getLogger(__name__)


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException("Missing or invalid Authorization header.")
    return auth_header[7:]


def decode_provider_token(token: str) -> dict:
    """Verify a provider-issued JWT and return its claims."""
    options = {"verify_aud": bool(settings.AUTH_JWT_AUDIENCE)}
    kwargs = {}
    if settings.AUTH_JWT_AUDIENCE:
        kwargs["audience"] = settings.AUTH_JWT_AUDIENCE
    if settings.AUTH_JWT_ISSUER:
        kwargs["issuer"] = settings.AUTH_JWT_ISSUER
    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            options=options,
            **kwargs,
        )
    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired.")
    except JWTError:
        raise UnauthorizedException("Invalid token.")


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the bearer token and return the active local user."""
    payload = decode_provider_token(_extract_bearer(request))

    subject = payload.get("sub")
    if not subject:
        raise UnauthorizedException("Token has no subject.")

    result = await db.execute(select(User).where(User.auth_subject == subject))
    user = result.scalars().first()

    if user is None and payload.get("email"):
        result = await db.execute(
            select(User).where(
                func.lower(User.email) == payload["email"].lower(),
                User.auth_subject.is_(None),
            )
        )
        user = result.scalars().first()
        if user is not None:
            user.auth_subject = subject
            await db.flush()
            logger.info("Linked auth subject to user %s", user.id)

    if user is None or not user.is_active:
        raise UnauthorizedException("User account is inactive or not found.")

    request.state.user_type = UserType(user.user_type)
    return user


# ── User-type dependency ────────────────────────────────────────────

def require_user_type(*allowed: UserType) -> Callable:
    """Return a dependency that only lets the listed user types through.

    Admins pass every check.
    """

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.user_type == UserType.admin.value:
            return user
        if user.user_type not in {t.value for t in allowed}:
            raise ForbiddenException(
                detail=f"User type '{user.user_type}' is not permitted. Required: {[t.value for t in allowed]}.",
            )
        return user

    return _check


# ── Tab permission dependency ───────────────────────────────────────

def has_permission(user: User, tab: SystemTab, level: AccessLevel) -> bool:
    """True if *user* may perform *level* actions on *tab*."""
    if user.user_type == UserType.admin.value:
        return True
    if user.user_type != UserType.business_support.value:
        return False
    granted = (user.permissions or {}).get(tab.value)
    if granted is None:
        return False
    try:
        return ACCESS_LEVEL_RANK[AccessLevel(granted)] >= ACCESS_LEVEL_RANK[level]
    except ValueError:
        return False


def require_permission(tab: SystemTab, level: AccessLevel = AccessLevel.read) -> Callable:
    """Return a dependency for admin / business-support endpoints gated per tab."""

    async def _check(user: User = Depends(get_current_user)) -> User:
        if not has_permission(user, tab, level):
            raise ForbiddenException(
                detail=f"'{level.value}' access to '{tab.value}' is required.",
            )
        return user

    return _check
