"""Ports (Protocols) implemented by infrastructure adapters."""

from notifier.application.interfaces.services import (
    IDocumentSource,
    IEmailSender,
    ITemplateRenderer,
)

__all__ = [
    "IDocumentSource",
    "IEmailSender",
    "ITemplateRenderer",
]
