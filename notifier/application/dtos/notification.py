"""DTOs for notification dispatch."""

from dataclasses import dataclass, field
from typing import Any

from notifier.domain.enums import NotificationTemplate


@dataclass(frozen=True)
class NotificationJob:
    """One email to render and send: recipient, template, subject and render context."""

    to: str
    template: NotificationTemplate
    subject: str
    context: dict[str, Any] = field(default_factory=dict)
