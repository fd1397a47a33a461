"""Notification dispatcher — formats and sends lifecycle emails.

Every send is isolated: a failure is logged and counted, never raised, so a
notification can never undo a committed transition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from toff.common.constants import RequestStatus
from toff.config import Settings
from toff.notifications import templates
from toff.notifications.mailer import Mailer
from toff.overtime.models import OvertimeRequest
from toff.time_off.models import TimeOffRequest
from toff.users.models import User

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Per-event delivery counts."""

    sent: int = 0
    failed: int = 0
    skipped: int = 0

    def merge(self, other: "DispatchResult") -> "DispatchResult":
        return DispatchResult(
            sent=self.sent + other.sent,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
        )


class Notifier:
    """Sends lifecycle notifications through a ``Mailer``."""

    def __init__(self, mailer: Mailer, settings: Settings) -> None:
        self.mailer = mailer
        self.settings = settings

    @property
    def app_url(self) -> str:
        return self.settings.APP_URL.rstrip("/")

    async def _send_one(self, to: str, subject: str, html: str) -> DispatchResult:
        try:
            delivered = await self.mailer.send(to, subject, html)
        except Exception:
            logger.warning("Failed to send '%s' to %s", subject, to, exc_info=True)
            return DispatchResult(failed=1)
        if delivered:
            return DispatchResult(sent=1)
        return DispatchResult(skipped=1)

    async def _send_each(
        self, recipients: Iterable[str], subject: str, html: str,
    ) -> DispatchResult:
        result = DispatchResult()
        for to in dict.fromkeys(recipients):  # dedupe, keep order
            result = result.merge(await self._send_one(to, subject, html))
        return result

    # ── Time off ────────────────────────────────────────────────────

    async def time_off_submitted(
        self,
        request: TimeOffRequest,
        requester: User,
        admin_emails: Iterable[str],
    ) -> DispatchResult:
        """Confirmation to the requester plus one email per admin."""
        subject, html = templates.time_off_submitted(
            name=requester.name,
            type_=request.type.value,
            start=request.start_date,
            end=request.end_date,
            working_days=request.working_days,
            reason=request.reason,
            app_url=self.app_url,
        )
        result = await self._send_one(requester.email, subject, html)

        subject, html = templates.time_off_new_for_admin(
            name=requester.name,
            email=requester.email,
            type_=request.type.value,
            start=request.start_date,
            end=request.end_date,
            working_days=request.working_days,
            reason=request.reason,
            request_id=str(request.id),
            app_url=self.app_url,
        )
        result = result.merge(await self._send_each(admin_emails, subject, html))

        if result.failed:
            logger.warning(
                "Time-off request %s: %d notification(s) failed",
                request.id, result.failed,
            )
        return result

    async def time_off_decided(
        self,
        request: TimeOffRequest,
        requester: User,
        note: Optional[str] = None,
    ) -> DispatchResult:
        if request.status == RequestStatus.approved:
            subject, html = templates.time_off_approved(
                name=requester.name,
                type_=request.type.value,
                start=request.start_date,
                end=request.end_date,
                app_url=self.app_url,
            )
        else:
            subject, html = templates.time_off_rejected(
                name=requester.name,
                type_=request.type.value,
                start=request.start_date,
                end=request.end_date,
                note=note,
                app_url=self.app_url,
            )
        return await self._send_one(requester.email, subject, html)

    # ── Overtime ────────────────────────────────────────────────────

    async def overtime_submitted(
        self,
        request: OvertimeRequest,
        requester: User,
        admin_emails: Iterable[str],
    ) -> DispatchResult:
        subject, html = templates.overtime_new_for_admin(
            name=requester.name,
            email=requester.email,
            hours=request.hours,
            hours_per_day=self.settings.HOURS_PER_DAY,
            request_date=request.request_date,
            notes=request.notes,
            request_id=str(request.id),
            app_url=self.app_url,
        )
        return await self._send_each(admin_emails, subject, html)

    async def overtime_decided(
        self,
        request: OvertimeRequest,
        requester: User,
    ) -> DispatchResult:
        subject, html = templates.request_status_changed(
            name=requester.name,
            request_type="overtime",
            status=request.status.value,
            app_url=self.app_url,
        )
        return await self._send_one(requester.email, subject, html)
