"""Email subjects and HTML bodies for lifecycle notifications.

Every builder returns ``(subject, html)``.  User-supplied text (names,
reasons, notes) is HTML-escaped before interpolation.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from html import escape
from typing import Optional, Union

from toff.common.constants import DATE_FORMAT

FOOTER = (
    '<hr><p style="color: #6b7280; font-size: 0.875rem;">'
    "This is an automated message from the TOFF (Time Off) system.</p>"
)

_BUTTON = (
    '<p><a href="{href}" style="display: inline-block; padding: 10px 20px; '
    "background-color: #4f46e5; color: white; text-decoration: none; "
    'border-radius: 5px;">{label}</a></p>'
)


def _fmt(day: date) -> str:
    return day.strftime(DATE_FORMAT)


def _label(value: str) -> str:
    """PAID_LEAVE -> Paid Leave."""
    return value.replace("_", " ").title()


def _button(href: str, label: str) -> str:
    return _BUTTON.format(href=escape(href, quote=True), label=label)


def _details(rows: list[tuple[str, Optional[str]]]) -> str:
    items = "".join(
        f"<li><strong>{label}:</strong> {value}</li>"
        for label, value in rows
        if value
    )
    return f"<ul>{items}</ul>"


# ── Time off ────────────────────────────────────────────────────────

def time_off_submitted(
    *,
    name: str,
    type_: str,
    start: date,
    end: date,
    working_days: int,
    reason: Optional[str],
    app_url: str,
) -> tuple[str, str]:
    subject = "Time Off Request Submitted"
    html = (
        "<h1>Time Off Request Submitted</h1>"
        f"<p>Hello {escape(name)},</p>"
        "<p>Your time off request has been submitted and is pending approval.</p>"
        + _details([
            ("Type", _label(type_)),
            ("Start Date", _fmt(start)),
            ("End Date", _fmt(end)),
            ("Working Days", str(working_days)),
            ("Reason", escape(reason) if reason else None),
        ])
        + _button(f"{app_url}/dashboard", "View Dashboard")
        + FOOTER
    )
    return subject, html


def time_off_new_for_admin(
    *,
    name: str,
    email: str,
    type_: str,
    start: date,
    end: date,
    working_days: int,
    reason: Optional[str],
    request_id: str,
    app_url: str,
) -> tuple[str, str]:
    subject = f"[TOFF] New Time Off Request from {name}"
    link = f"{app_url}/admin/requests?request={request_id}"
    html = (
        "<h2>New Time Off Request</h2>"
        "<p>A new time off request has been submitted and requires your attention.</p>"
        "<h3>Request Details:</h3>"
        + _details([
            ("Employee", f"{escape(name)} ({escape(email)})"),
            ("Type", _label(type_)),
            ("Start Date", _fmt(start)),
            ("End Date", _fmt(end)),
            ("Working Days", str(working_days)),
            ("Reason", escape(reason) if reason else None),
        ])
        + _button(link, "Review Request")
        + f"<p>Or copy this URL into your browser: {escape(link)}</p>"
        + FOOTER
    )
    return subject, html


def time_off_approved(
    *,
    name: str,
    type_: str,
    start: date,
    end: date,
    app_url: str,
) -> tuple[str, str]:
    subject = "Time Off Request Approved"
    html = (
        "<h1>Time Off Request Approved</h1>"
        f"<p>Hello {escape(name)},</p>"
        "<p>Your time off request has been approved!</p>"
        + _details([
            ("Type", _label(type_)),
            ("Start Date", _fmt(start)),
            ("End Date", _fmt(end)),
        ])
        + "<p>Enjoy your time off!</p>"
        + _button(f"{app_url}/dashboard", "View Dashboard")
        + FOOTER
    )
    return subject, html


def time_off_rejected(
    *,
    name: str,
    type_: str,
    start: date,
    end: date,
    note: Optional[str],
    app_url: str,
) -> tuple[str, str]:
    subject = "Time Off Request Rejected"
    html = (
        "<h1>Time Off Request Rejected</h1>"
        f"<p>Hello {escape(name)},</p>"
        "<p>Unfortunately, your time off request has been rejected.</p>"
        + _details([
            ("Type", _label(type_)),
            ("Start Date", _fmt(start)),
            ("End Date", _fmt(end)),
            ("Reason", escape(note) if note else None),
        ])
        + "<p>Please contact your manager if you have any questions.</p>"
        + _button(f"{app_url}/dashboard", "View Dashboard")
        + FOOTER
    )
    return subject, html


# ── Overtime ────────────────────────────────────────────────────────

def overtime_new_for_admin(
    *,
    name: str,
    email: str,
    hours: Union[Decimal, float],
    hours_per_day: int,
    request_date: date,
    notes: Optional[str],
    request_id: str,
    app_url: str,
) -> tuple[str, str]:
    subject = f"[TOFF] New Overtime Request from {name}"
    link = f"{app_url}/admin/requests?request={request_id}"
    days = Decimal(str(hours)) / Decimal(hours_per_day)
    html = (
        "<h2>New Overtime Request</h2>"
        "<p>A new overtime request has been submitted and requires your attention.</p>"
        "<h3>Request Details:</h3>"
        + _details([
            ("Employee", f"{escape(name)} ({escape(email)})"),
            ("Hours", f"{hours} ({days:.2f} days)"),
            ("Date", _fmt(request_date)),
            ("Notes", escape(notes) if notes else None),
        ])
        + _button(link, "Review Request")
        + f"<p>Or copy this URL into your browser: {escape(link)}</p>"
        + FOOTER
    )
    return subject, html


def request_status_changed(
    *,
    name: str,
    request_type: str,
    status: str,
    app_url: str,
) -> tuple[str, str]:
    subject = f"[TOFF] Your {request_type} Request has been {status}"
    html = (
        f"<h2>Request {status}</h2>"
        f"<p>Hello {escape(name)},</p>"
        f"<p>Your {escape(request_type)} request has been "
        f"<strong>{status.lower()}</strong>.</p>"
        + _button(f"{app_url}/dashboard", "View Dashboard")
        + FOOTER
    )
    return subject, html


def probe_message(*, app_url: str) -> tuple[str, str]:
    subject = "[TOFF] Test Email"
    html = (
        "<h2>Test Email</h2>"
        "<p>This is a test message confirming that TOFF can deliver email.</p>"
        + _button(app_url, "Open TOFF")
        + FOOTER
    )
    return subject, html
