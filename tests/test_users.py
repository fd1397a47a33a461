"""User administration tests — provisioning, updates, deactivation."""

from __future__ import annotations

from datetime import date

from sqlalchemy import select

from toff.balance.models import TimeOffBalance
from toff.common.audit import AuditLog
from tests.conftest import TestSessionFactory, bearer_for


class TestUserAdmin:

    async def test_create_user_seeds_balance(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/admin/users",
            json={"name": "  New Hire ", "email": "New.Hire@Toff.App", "role": "EMPLOYEE"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "New Hire"
        assert data["email"] == "new.hire@toff.app"
        assert data["is_active"] is True

        async with TestSessionFactory() as session:
            balance = (
                await session.execute(
                    select(TimeOffBalance).where(
                        TimeOffBalance.year == date.today().year,
                    )
                )
            ).scalars().all()
            assert [str(b.user_id) for b in balance] == [data["id"]]

    async def test_duplicate_email_is_409(self, client, employee, admin_headers):
        resp = await client.post(
            "/api/v1/admin/users",
            json={"name": "Twin", "email": "erin@toff.app"},
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert "email" in resp.json()["errors"]

    async def test_invalid_email_is_400(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/admin/users",
            json={"name": "Nobody", "email": "not-an-email"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    async def test_unknown_supervisor_is_404(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/admin/users",
            json={
                "name": "Orphan",
                "email": "orphan@toff.app",
                "supervisor_id": "00000000-0000-0000-0000-000000000000",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 404

    async def test_non_admin_cannot_manage_users(self, client, manager_headers):
        resp = await client.get("/api/v1/admin/users", headers=manager_headers)
        assert resp.status_code == 403

    async def test_list_users_paginated(self, client, employee, manager, admin_headers):
        resp = await client.get("/api/v1/admin/users?page_size=2", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["meta"]["total"] == 3
        assert data["meta"]["total_pages"] == 2
        assert [u["name"] for u in data["data"]] == ["Ada Admin", "Erin Employee"]

    async def test_update_role_and_supervisor_is_audited(
        self, client, employee, manager, admin, admin_headers,
    ):
        resp = await client.patch(
            f"/api/v1/admin/users/{employee.id}",
            json={"role": "MANAGER", "supervisor_id": str(manager.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "MANAGER"
        assert resp.json()["supervisor_id"] == str(manager.id)

        async with TestSessionFactory() as session:
            entry = (
                await session.execute(
                    select(AuditLog).where(
                        AuditLog.entity_id == employee.id,
                        AuditLog.action == "update",
                    )
                )
            ).scalars().one()
        assert entry.actor_id == admin.id
        assert entry.details["old"]["role"] == "EMPLOYEE"
        assert entry.details["new"]["role"] == "MANAGER"

    async def test_self_supervision_is_400(self, client, employee, admin_headers):
        resp = await client.patch(
            f"/api/v1/admin/users/{employee.id}",
            json={"supervisor_id": str(employee.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    async def test_deactivation_revokes_sessions(
        self, client, db, employee, settings, admin_headers,
    ):
        headers = await bearer_for(db, employee, settings)
        assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 200

        resp = await client.patch(
            f"/api/v1/admin/users/{employee.id}",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False

        assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 401

    async def test_unknown_user_is_404(self, client, admin_headers):
        resp = await client.patch(
            "/api/v1/admin/users/00000000-0000-0000-0000-000000000000",
            json={"name": "Ghost"},
            headers=admin_headers,
        )
        assert resp.status_code == 404
