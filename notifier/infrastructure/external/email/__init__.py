"""Outbound email delivery."""

from notifier.infrastructure.external.email.smtp_sender import SmtpEmailSender

__all__ = ["SmtpEmailSender"]
