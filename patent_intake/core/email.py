from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage

from patent_intake.core.config import Settings
from patent_intake.core.errors import MailConfigurationError

logger = logging.getLogger(__name__)

SMTP_NOT_CONFIGURED = "SMTP non configurato: verifica SMTP_HOST/SMTP_USER/SMTP_PASS."


@dataclass(frozen=True)
class SmtpTransport:
    """Connection parameters for one outbound SMTP session."""

    host: str
    port: int
    secure: bool
    user: str
    password: str

    def _send_sync(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        if self.secure:
            with smtplib.SMTP_SSL(self.host, self.port, context=context) as server:
                server.login(self.user, self.password)
                server.send_message(message)
            return

        with smtplib.SMTP(self.host, self.port) as server:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=context)
                server.ehlo()
            server.login(self.user, self.password)
            server.send_message(message)

    async def send(self, message: EmailMessage) -> None:
        """Send once on a worker thread; errors propagate to the caller."""
        logger.debug("SMTP send via %s:%s secure=%s", self.host, self.port, self.secure)
        await asyncio.to_thread(self._send_sync, message)


def make_transport(settings: Settings) -> SmtpTransport:
    if not settings.SMTP_HOST or not settings.SMTP_USER or not settings.SMTP_PASS:
        raise MailConfigurationError(SMTP_NOT_CONFIGURED)

    return SmtpTransport(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        secure=settings.SMTP_SECURE,
        user=settings.SMTP_USER,
        password=settings.SMTP_PASS,
    )
