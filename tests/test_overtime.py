"""Overtime tests — submission window, decisions with vacation credit, rollup."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toff.balance.models import TimeOffBalance
from toff.common.audit import AuditLog
from toff.common.constants import AuditAction, RequestStatus
from toff.common.exceptions import (
    BadRequestException,
    ConflictError,
    ForbiddenException,
)
from toff.notifications.service import Notifier
from toff.overtime.models import OvertimeRequest
from toff.overtime.service import OvertimeService, hours_to_days
from tests.conftest import TestSessionFactory, make_overtime, make_settings, make_user


async def _vacation_days(user_id, year: int) -> Decimal:
    async with TestSessionFactory() as session:
        balance = (
            await session.execute(
                TimeOffBalance.__table__.select().where(
                    TimeOffBalance.user_id == user_id,
                    TimeOffBalance.year == year,
                )
            )
        ).first()
        return Decimal(str(balance.vacation_days))


async def _status_of(request_id) -> RequestStatus:
    async with TestSessionFactory() as session:
        return (await session.get(OvertimeRequest, request_id)).status


def test_hours_to_days():
    assert hours_to_days(Decimal("16"), 8) == Decimal("2")
    assert hours_to_days(Decimal("4"), 8) == Decimal("0.5")
    assert hours_to_days(Decimal("5"), 8) == Decimal("0.63")


# ═════════════════════════════════════════════════════════════════════
# 1. Submission
# ═════════════════════════════════════════════════════════════════════


class TestSubmit:

    async def test_creates_pending_request_bucketed_by_month(
        self, db: AsyncSession, employee, admin, notifier, mailer,
    ):
        request, dispatch = await OvertimeService.submit(
            db, employee, 6, notifier, notes="Release night", today=date(2025, 3, 27),
        )

        assert request.status == RequestStatus.pending
        assert request.hours == Decimal("6")
        assert (request.month, request.year) == (3, 2025)
        assert dispatch.sent == 1
        assert mailer.to("ada@toff.app")[0].subject == "[TOFF] New Overtime Request from Erin Employee"

    @pytest.mark.parametrize("hours", [0, -2])
    async def test_non_positive_hours_rejected(
        self, db: AsyncSession, employee, notifier, hours,
    ):
        with pytest.raises(BadRequestException):
            await OvertimeService.submit(db, employee, hours, notifier, today=date(2025, 3, 27))

    async def test_hours_beyond_two_decimals_rejected(
        self, db: AsyncSession, employee, notifier,
    ):
        with pytest.raises(BadRequestException, match="two decimal places"):
            await OvertimeService.submit(
                db, employee, Decimal("1.125"), notifier, today=date(2025, 3, 27),
            )

    async def test_outside_last_week_is_forbidden_when_enforced(
        self, db: AsyncSession, employee, mailer,
    ):
        notifier = Notifier(mailer, make_settings(OVERTIME_LAST_WEEK_ONLY=True))

        with pytest.raises(ForbiddenException):
            await OvertimeService.submit(db, employee, 4, notifier, today=date(2025, 3, 10))

        request, _ = await OvertimeService.submit(
            db, employee, 4, notifier, today=date(2025, 3, 27),
        )
        assert request.status == RequestStatus.pending


# ═════════════════════════════════════════════════════════════════════
# 2. Decisions
# ═════════════════════════════════════════════════════════════════════


class TestDecide:

    async def test_approval_credits_vacation_days(
        self, db: AsyncSession, employee, admin, notifier, mailer,
    ):
        overtime = await make_overtime(db, employee, "16")

        request = await OvertimeService.decide(
            db, overtime.id, RequestStatus.approved, admin, notifier,
        )

        assert request.status == RequestStatus.approved
        assert await _vacation_days(employee.id, 2025) == Decimal("24")
        assert (
            mailer.to("erin@toff.app")[0].subject
            == "[TOFF] Your overtime Request has been APPROVED"
        )

    async def test_fractional_credit(self, db: AsyncSession, employee, admin, notifier):
        overtime = await make_overtime(db, employee, "4")
        await OvertimeService.decide(db, overtime.id, RequestStatus.approved, admin, notifier)
        assert await _vacation_days(employee.id, 2025) == Decimal("22.5")

    async def test_credit_rounded_to_ledger_scale(
        self, db: AsyncSession, employee, admin, notifier,
    ):
        overtime = await make_overtime(db, employee, "5")
        await OvertimeService.decide(db, overtime.id, RequestStatus.approved, admin, notifier)

        assert await _vacation_days(employee.id, 2025) == Decimal("22.63")
        async with TestSessionFactory() as session:
            ledger = (
                await session.execute(
                    select(AuditLog).where(AuditLog.action == AuditAction.balance_adjust.value)
                )
            ).scalars().one()
            decision = (
                await session.execute(
                    select(AuditLog).where(
                        AuditLog.entity_id == overtime.id,
                        AuditLog.action == AuditAction.approve.value,
                    )
                )
            ).scalars().one()
        assert ledger.details["delta"] == "0.63"
        assert ledger.details["new"] == "22.63"
        assert decision.details["credited_days"] == "0.63"

    async def test_credit_goes_to_request_year(self, db: AsyncSession, employee, admin, notifier):
        overtime = await make_overtime(db, employee, "8", day=date(2024, 12, 30))
        await OvertimeService.decide(db, overtime.id, RequestStatus.approved, admin, notifier)
        assert await _vacation_days(employee.id, 2024) == Decimal("23")

    async def test_rejection_credits_nothing(
        self, db: AsyncSession, employee, admin, notifier,
    ):
        overtime = await make_overtime(db, employee, "16")
        request = await OvertimeService.decide(
            db, overtime.id, RequestStatus.rejected, admin, notifier,
        )

        assert request.status == RequestStatus.rejected
        async with TestSessionFactory() as session:
            balance = (
                await session.execute(
                    TimeOffBalance.__table__.select().where(
                        TimeOffBalance.user_id == employee.id,
                    )
                )
            ).first()
        assert balance is None

    async def test_second_decision_conflicts_without_double_credit(
        self, db: AsyncSession, employee, admin, notifier,
    ):
        overtime = await make_overtime(db, employee, "16")
        await OvertimeService.decide(db, overtime.id, RequestStatus.approved, admin, notifier)

        with pytest.raises(ConflictError):
            await OvertimeService.decide(
                db, overtime.id, RequestStatus.approved, admin, notifier,
            )

        assert await _vacation_days(employee.id, 2025) == Decimal("24")
        assert await _status_of(overtime.id) == RequestStatus.approved

    async def test_stale_pending_snapshot_loses_race(
        self, db: AsyncSession, employee, admin, notifier,
    ):
        overtime = await make_overtime(db, employee, "16")

        # Another reviewer approves while ``db`` still holds the PENDING row
        async with TestSessionFactory() as other:
            await OvertimeService.decide(
                other, overtime.id, RequestStatus.approved, admin, notifier,
            )
        assert overtime.status == RequestStatus.pending

        with pytest.raises(ConflictError, match="another reviewer"):
            await OvertimeService.decide(
                db, overtime.id, RequestStatus.approved, admin, notifier,
            )

        assert await _vacation_days(employee.id, 2025) == Decimal("24")
        assert await _status_of(overtime.id) == RequestStatus.approved
        async with TestSessionFactory() as session:
            approvals = (
                await session.execute(
                    select(func.count()).select_from(AuditLog).where(
                        AuditLog.entity_id == overtime.id,
                        AuditLog.action == AuditAction.approve.value,
                    )
                )
            ).scalar_one()
        assert approvals == 1

    async def test_non_admin_cannot_decide(self, db: AsyncSession, employee, manager, notifier):
        overtime = await make_overtime(db, employee, "8")
        with pytest.raises(ForbiddenException):
            await OvertimeService.decide(
                db, overtime.id, RequestStatus.approved, manager, notifier,
            )
        assert await _status_of(overtime.id) == RequestStatus.pending


# ═════════════════════════════════════════════════════════════════════
# 3. Listing and rollup
# ═════════════════════════════════════════════════════════════════════


class TestQueries:

    async def test_employee_sees_own_admin_sees_pending(
        self, db: AsyncSession, employee, admin,
    ):
        other = await make_user(db, name="Other")
        mine = await make_overtime(db, employee, "2")
        await make_overtime(db, other, "3", status=RequestStatus.approved)
        theirs = await make_overtime(db, other, "5")

        assert [r.id for r in await OvertimeService.list_requests(db, employee)] == [mine.id]
        assert {r.id for r in await OvertimeService.list_requests(db, admin)} == {
            mine.id, theirs.id,
        }

    async def test_rollup_sums_approved_hours(self, db: AsyncSession, employee):
        other = await make_user(db, name="Zed", email="zed@toff.app")
        await make_overtime(db, employee, "6", status=RequestStatus.approved)
        await make_overtime(db, employee, "10", status=RequestStatus.approved)
        await make_overtime(db, employee, "40", status=RequestStatus.rejected)
        await make_overtime(db, employee, "8", day=date(2024, 11, 28), status=RequestStatus.approved)
        await make_overtime(db, other, "4", status=RequestStatus.approved)

        rows = await OvertimeService.rollup(db, 2025, 8)

        assert [r.email for r in rows] == ["erin@toff.app", "zed@toff.app"]
        assert rows[0].total_hours == 16
        assert rows[0].days == 2
        assert rows[1].days == 0.5

    async def test_rollup_for_one_user(self, db: AsyncSession, employee):
        other = await make_user(db, name="Zed")
        await make_overtime(db, employee, "8", status=RequestStatus.approved)
        await make_overtime(db, other, "8", status=RequestStatus.approved)

        rows = await OvertimeService.rollup(db, 2025, 8, user_id=other.id)
        assert [r.user_id for r in rows] == [other.id]


# ═════════════════════════════════════════════════════════════════════
# 4. HTTP endpoints
# ═════════════════════════════════════════════════════════════════════


class TestOvertimeAPI:

    async def test_submit(self, client, admin, employee_headers):
        resp = await client.post(
            "/api/v1/overtime/requests",
            json={"hours": 7.5, "notes": "Migration"},
            headers=employee_headers,
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["request"]["hours"] == 7.5
        assert data["request"]["status"] == "PENDING"
        assert data["notifications"]["sent"] == 1

    async def test_zero_hours_is_400(self, client, employee_headers):
        resp = await client.post(
            "/api/v1/overtime/requests", json={"hours": 0}, headers=employee_headers,
        )
        assert resp.status_code == 400

    async def test_more_than_two_decimals_is_400(self, client, employee_headers):
        resp = await client.post(
            "/api/v1/overtime/requests", json={"hours": 0.001}, headers=employee_headers,
        )
        assert resp.status_code == 400
        assert "hours" in resp.json()["errors"]

    async def test_approve_over_http_credits_balance(
        self, client, db, employee, admin_headers, employee_headers,
    ):
        overtime = await make_overtime(db, employee, "16")

        resp = await client.patch(
            f"/api/v1/overtime/requests/{overtime.id}",
            json={"status": "APPROVED"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "APPROVED"

        balance = await client.get(
            "/api/v1/time-off/balance?year=2025", headers=employee_headers,
        )
        assert balance.json()["vacation_days"] == 24

    async def test_employee_cannot_decide(self, client, db, employee, employee_headers):
        overtime = await make_overtime(db, employee, "16")
        resp = await client.patch(
            f"/api/v1/overtime/requests/{overtime.id}",
            json={"status": "APPROVED"},
            headers=employee_headers,
        )
        assert resp.status_code == 403
