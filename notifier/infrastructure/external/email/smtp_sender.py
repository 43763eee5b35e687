"""SMTP email sender (IEmailSender).

Composes an HTML message and delivers it over SMTP with SSL (or STARTTLS
when use_ssl is False). smtplib is blocking, so each send runs in a worker
thread; one connection per message, closed after the send.
"""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr

from notifier.domain.exceptions import DeliveryException
from notifier.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

CONFIRMATION = "Email sent."


class SmtpEmailSender:
    """Sends one HTML email per call; any failure raises DeliveryException."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        from_name: str = "",
        *,
        use_ssl: bool = True,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.from_email = from_email
        self.from_name = from_name
        self.use_ssl = use_ssl
        self.timeout_seconds = timeout_seconds

    def build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        """Compose the MIME message (HTML body)."""
        msg = EmailMessage()
        msg["From"] = formataddr((self.from_name, self.from_email)) if self.from_name else self.from_email
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(html, subtype="html")
        return msg

    async def send_email(self, to: str, subject: str, html: str) -> str:
        """Deliver the message; returns a confirmation string."""
        message = self.build_message(to, subject, html)
        return await asyncio.to_thread(self._send_blocking, to, message)

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout_seconds, context=context)
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds)
        server.starttls(context=context)
        return server

    def _send_blocking(self, to: str, message: EmailMessage) -> str:
        try:
            with self._connect() as server:
                server.login(self.username, self._password)
                refused = server.send_message(message, from_addr=self.from_email, to_addrs=[to])
        except smtplib.SMTPAuthenticationError as e:
            raise DeliveryException(to, f"authentication failed: {e}") from e
        except smtplib.SMTPRecipientsRefused as e:
            raise DeliveryException(to, "recipient refused") from e
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryException(to, str(e) or e.__class__.__name__) from e
        if refused:
            raise DeliveryException(to, "recipient refused")
        logger.debug("SMTP accepted message for %s", to)
        return CONFIRMATION
