"""Service interfaces (ports) for the application layer.

Protocols define contracts for the collaborators the core depends on:
the local replica of each collection, template rendering, and email sending.
"""

from __future__ import annotations

from typing import Any, Protocol


# Local mirror interface (read side of the replication feed)
class IDocumentSource(Protocol):
    """Protocol for reading the full, current contents of a replicated collection."""

    def all_docs(self) -> list[dict[str, Any]]:
        """Return every live document, ordered by document id."""


# Template rendering interface
class ITemplateRenderer(Protocol):
    """Protocol for rendering an HTML email body from a logical template name."""

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        """Render template to HTML. Raises RenderException on failure."""


# Email sending interface
class IEmailSender(Protocol):
    """Protocol for delivering a single HTML email."""

    async def send_email(self, to: str, subject: str, html: str) -> str:
        """Send the message and return a confirmation. Raises DeliveryException on failure."""
