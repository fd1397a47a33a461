"""SMTP mail transport.

Delivery runs ``smtplib`` in the threadpool so the event loop never blocks.
Exactly one attempt is made per message.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from fastapi.concurrency import run_in_threadpool

from toff.config import Settings

logger = logging.getLogger(__name__)


class Mailer:
    """Configured SMTP transport; owned by the service context."""

    def __init__(
        self,
        *,
        enabled: bool,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: int = 15,
        sender: str,
    ) -> None:
        self.enabled = enabled
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.sender = sender

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            enabled=settings.EMAIL_ENABLED,
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
            sender=settings.EMAIL_FROM,
        )

    def build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML-capable email client.")
        msg.add_alternative(html, subtype="html")
        return msg

    async def send(self, to: str, subject: str, html: str) -> bool:
        """Deliver one message.

        Returns False when delivery is disabled (message logged and dropped).
        Transport errors propagate to the caller.
        """
        if not self.enabled:
            logger.info("Email disabled; dropping message to %s (%s)", to, subject)
            return False

        msg = self.build_message(to, subject, html)
        logger.debug("Sending email to %s with subject %s", to, subject)
        await run_in_threadpool(self._deliver, msg)
        logger.info("Email sent to %s (%s)", to, subject)
        return True

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)
