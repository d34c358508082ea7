"""Business-support user tests — permissions, CRUD, toggling and admin-only API."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from locumhub.accounts.models import User
from locumhub.auth.dependencies import has_permission
from locumhub.business_support.schemas import BusinessSupportUserCreate
from locumhub.business_support.service import BusinessSupportService
from locumhub.common.constants import AccessLevel, SystemTab, UserType
from locumhub.common.exceptions import ConflictError, NotFoundException, ValidationException
from locumhub.common.pagination import PaginationParams
from tests.conftest import _insert_user, auth_headers_for

PAGE = PaginationParams(page=1, page_size=50, sort=None)


def _create(**overrides) -> BusinessSupportUserCreate:
    fields = dict(
        first_name="Rota",
        last_name="Coordinator",
        email="Rota.Coordinator@LocumHub.co.uk",
        department="Operations",
        permissions={"shifts": "write", "timesheets": "read"},
    )
    fields.update(overrides)
    return BusinessSupportUserCreate(**fields)


class TestBusinessSupportSchemas:
    def test_needs_at_least_one_tab(self):
        with pytest.raises(ValidationError):
            _create(permissions={})

    def test_unknown_tab_rejected(self):
        with pytest.raises(ValidationError):
            _create(permissions={"payroll": "read"})

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            _create(permissions={"shifts": "owner"})


class TestBusinessSupportService:
    async def test_create_stores_plain_permissions(self, db, test_admin):
        user = await BusinessSupportService.create_user(db, _create(), actor_id=test_admin["id"])

        assert user.user_type == UserType.business_support.value
        assert user.email == "rota.coordinator@locumhub.co.uk"
        assert user.permissions == {"shifts": "write", "timesheets": "read"}
        assert has_permission(user, SystemTab.shifts, AccessLevel.read)
        assert not has_permission(user, SystemTab.timesheets, AccessLevel.write)
        assert not has_permission(user, SystemTab.documents, AccessLevel.read)

    async def test_email_must_be_unique(self, db, test_admin, test_staff):
        with pytest.raises(ConflictError):
            await BusinessSupportService.create_user(
                db, _create(email=test_staff["email"].upper()), actor_id=test_admin["id"],
            )

    async def test_update_permissions_and_email(self, db, test_admin):
        user = await BusinessSupportService.create_user(db, _create(), actor_id=test_admin["id"])
        await BusinessSupportService.update_user(
            db,
            user,
            {"permissions": {SystemTab.documents: AccessLevel.admin}, "email": "Ops@LocumHub.co.uk"},
            actor_id=test_admin["id"],
        )
        assert user.permissions == {"documents": "admin"}
        assert user.email == "ops@locumhub.co.uk"

    async def test_update_rejects_empty_permissions(self, db, test_admin):
        user = await BusinessSupportService.create_user(db, _create(), actor_id=test_admin["id"])
        with pytest.raises(ValidationException):
            await BusinessSupportService.update_user(
                db, user, {"permissions": {}}, actor_id=test_admin["id"],
            )

    async def test_update_into_taken_email(self, db, test_admin, test_support):
        user = await BusinessSupportService.create_user(db, _create(), actor_id=test_admin["id"])
        with pytest.raises(ConflictError):
            await BusinessSupportService.update_user(
                db, user, {"email": test_support["email"]}, actor_id=test_admin["id"],
            )

    async def test_toggle_status(self, db, test_admin, test_support):
        user = await BusinessSupportService.get_user(db, test_support["id"])
        await BusinessSupportService.toggle_status(db, user, actor_id=test_admin["id"])
        assert user.is_active is False
        await BusinessSupportService.toggle_status(db, user, actor_id=test_admin["id"])
        assert user.is_active is True

    async def test_get_user_only_finds_support_users(self, db, test_staff):
        with pytest.raises(NotFoundException):
            await BusinessSupportService.get_user(db, test_staff["id"])

    async def test_list_search_and_filters(self, db, test_admin, test_support):
        await BusinessSupportService.create_user(db, _create(), actor_id=test_admin["id"])

        everyone = await BusinessSupportService.list_users(db, PAGE)
        ops = await BusinessSupportService.list_users(db, PAGE, department="Operations")
        found = await BusinessSupportService.list_users(db, PAGE, search="coord")

        assert everyone.meta.total == 2
        assert ops.meta.total == 1
        assert [u.last_name for u in found.data] == ["Coordinator"]

    async def test_delete(self, db, test_admin):
        user = await BusinessSupportService.create_user(db, _create(), actor_id=test_admin["id"])
        await BusinessSupportService.delete_user(db, user, actor_id=test_admin["id"])
        assert await db.get(User, user.id) is None


class TestBusinessSupportApi:
    async def test_admin_manages_support_users(self, client, db, test_admin):
        await db.commit()
        headers = auth_headers_for(test_admin)

        created = await client.post(
            "/api/v1/business-support/users",
            json={
                "first_name": "Rota",
                "last_name": "Coordinator",
                "email": "rota@locumhub.co.uk",
                "permissions": {"shifts": "write"},
            },
            headers=headers,
        )
        assert created.status_code == 201
        user_id = created.json()["id"]
        assert created.json()["permissions"] == {"shifts": "write"}

        updated = await client.patch(
            f"/api/v1/business-support/users/{user_id}",
            json={"department": "Finance"},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["department"] == "Finance"

        toggled = await client.post(
            f"/api/v1/business-support/users/{user_id}/toggle-status", headers=headers,
        )
        assert toggled.json()["is_active"] is False

        deleted = await client.delete(f"/api/v1/business-support/users/{user_id}", headers=headers)
        assert deleted.status_code == 204

    async def test_duplicate_email_is_409(self, client, db, test_admin, test_support):
        await db.commit()
        resp = await client.post(
            "/api/v1/business-support/users",
            json={
                "first_name": "Sam",
                "last_name": "Again",
                "email": test_support["email"],
                "permissions": {"reports": "read"},
            },
            headers=auth_headers_for(test_admin),
        )
        assert resp.status_code == 409
        assert "email" in resp.json()["errors"]

    async def test_permission_catalogue(self, client, db, test_admin):
        await db.commit()
        resp = await client.get(
            "/api/v1/business-support/permissions", headers=auth_headers_for(test_admin),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert {"key": "documents", "label": "Documents"} in body["tabs"]
        assert body["levels"] == ["read", "write", "admin"]

    async def test_support_users_cannot_manage_each_other(self, client, db, test_support):
        await db.commit()
        resp = await client.get(
            "/api/v1/business-support/users", headers=auth_headers_for(test_support),
        )
        assert resp.status_code == 403

    async def test_deactivated_support_user_is_locked_out(self, client, db, test_admin):
        support = await _insert_user(
            db,
            user_type=UserType.business_support,
            permissions={"dashboard": "read"},
            is_active=False,
        )
        await db.commit()
        resp = await client.get("/api/v1/dashboard/stats", headers=auth_headers_for(support))
        assert resp.status_code == 401
