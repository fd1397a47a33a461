"""Auth tests — bearer validation, session revocation, /me, role checks."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from toff.auth.dependencies import has_role
from toff.auth.models import UserSession
from toff.auth.service import (
    create_access_token,
    hash_token,
    open_session,
    revoke_session,
)
from toff.common.constants import UserRole
from tests.conftest import bearer_for, make_user


# ═════════════════════════════════════════════════════════════════════
# 1. Token validation
# ═════════════════════════════════════════════════════════════════════


class TestTokenValidation:

    async def test_missing_header(self, client):
        resp = await client.get("/api/v1/auth/me")
        assert resp.status_code == 401
        assert resp.json()["type"].endswith("/unauthorized")

    async def test_non_bearer_scheme(self, client):
        resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401

    async def test_garbage_token(self, client):
        resp = await client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert resp.status_code == 401

    async def test_expired_token(self, client, employee, settings):
        token = create_access_token(
            employee.id, settings,
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=5),
        )
        resp = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Token has expired."

    async def test_token_without_session(self, client, employee, settings):
        token = create_access_token(
            employee.id, settings,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
        resp = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 401

    async def test_token_signed_with_other_secret(self, client, employee, settings):
        other = settings.model_copy(update={"JWT_SECRET": "another-secret"})
        token = create_access_token(
            employee.id, other,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
        resp = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 401

    async def test_provider_issued_session_authenticates(self, client, db, employee, settings):
        token = await open_session(db, employee, settings)
        await db.commit()

        stored = (
            await db.execute(select(UserSession).where(UserSession.user_id == employee.id))
        ).scalars().one()
        assert stored.token_hash == hash_token(token)
        assert stored.token_hash != token

        resp = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 200
        assert resp.json()["email"] == "erin@toff.app"

    async def test_revoked_session(self, client, db, employee, settings):
        token = await open_session(db, employee, settings)
        await db.commit()
        assert await revoke_session(db, token) is True
        await db.commit()

        resp = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 401

    async def test_inactive_user(self, client, db, settings):
        user = await make_user(db, name="Gone", is_active=False)
        headers = await bearer_for(db, user, settings)

        resp = await client.get("/api/v1/auth/me", headers=headers)
        assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# 2. Endpoints
# ═════════════════════════════════════════════════════════════════════


class TestAuthEndpoints:

    async def test_me(self, client, db, manager, manager_headers):
        await make_user(db, name="Report", supervisor_id=manager.id)

        resp = await client.get("/api/v1/auth/me", headers=manager_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["email"] == "max@toff.app"
        assert data["role"] == "MANAGER"
        assert data["direct_reports_count"] == 1

    async def test_logout_revokes_current_session(self, client, employee_headers):
        resp = await client.post("/api/v1/auth/logout", headers=employee_headers)
        assert resp.status_code == 200

        again = await client.get("/api/v1/auth/me", headers=employee_headers)
        assert again.status_code == 401

    async def test_logout_leaves_other_sessions(self, client, db, employee, settings):
        first = await bearer_for(db, employee, settings)
        second = await bearer_for(db, employee, settings)

        await client.post("/api/v1/auth/logout", headers=first)

        resp = await client.get("/api/v1/auth/me", headers=second)
        assert resp.status_code == 200

    async def test_role_change_applies_to_live_session(
        self, client, db, employee, employee_headers, admin_headers,
    ):
        before = await client.get("/api/v1/admin/who-is-off", headers=employee_headers)
        assert before.status_code == 403

        await client.patch(
            f"/api/v1/admin/users/{employee.id}",
            json={"role": "ADMIN"},
            headers=admin_headers,
        )

        after = await client.get("/api/v1/admin/who-is-off", headers=employee_headers)
        assert after.status_code == 200


# ═════════════════════════════════════════════════════════════════════
# 3. Role hierarchy
# ═════════════════════════════════════════════════════════════════════


class TestRoles:

    @pytest.mark.parametrize(
        "role,required,expected",
        [
            (UserRole.admin, UserRole.manager, True),
            (UserRole.admin, UserRole.employee, True),
            (UserRole.manager, UserRole.employee, True),
            (UserRole.manager, UserRole.admin, False),
            (UserRole.employee, UserRole.manager, False),
        ],
    )
    async def test_hierarchy(self, db, role, required, expected):
        user = await make_user(db, role=role)
        assert has_role(user, required) is expected
