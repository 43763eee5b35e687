"""Notification dispatcher: domain events to rendered, sent emails.

dispatch() maps an event to a NotificationJob and schedules the
render-and-send pipeline as its own asyncio task, returning at once.
Failures are logged per message and never reach the caller; there is
no retry.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from notifier.application.dtos.notification import NotificationJob
from notifier.domain.enums import NotificationTemplate
from notifier.domain.events import DailyUsage, DomainEvent, PlanChanged, UserCreated
from notifier.domain.exceptions import DeliveryException
from notifier.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from notifier.application.interfaces.services import IEmailSender, ITemplateRenderer

logger = get_logger(__name__)

WELCOME_SUBJECT = "Welcome to Awesomeness!"
PLAN_SUBJECT = "{plan} Plan Activated!"
DAILY_USAGE_SUBJECT = "Daily Usage Statistics"
DEFAULT_PLAN = "free"


def build_job(event: DomainEvent) -> NotificationJob:
    """Map a domain event to its email job (template, subject, context)."""
    if isinstance(event, UserCreated):
        return NotificationJob(
            to=event.user_id,
            template=NotificationTemplate.WELCOME,
            subject=WELCOME_SUBJECT,
            context={"email": event.user_id},
        )
    if isinstance(event, PlanChanged):
        plan = (event.plan or DEFAULT_PLAN).upper()
        return NotificationJob(
            to=event.user_id,
            template=NotificationTemplate.PLAN,
            subject=PLAN_SUBJECT.format(plan=plan),
            context={"plan": plan},
        )
    if isinstance(event, DailyUsage):
        return NotificationJob(
            to=event.user_id,
            template=NotificationTemplate.DAILY_USAGE,
            subject=DAILY_USAGE_SUBJECT,
            context={"usage": event.usage},
        )
    raise TypeError(f"Unsupported event: {event!r}")


class NotificationDispatcher:
    """Fire-and-forget email submission for domain events.

    Sends for different recipients run concurrently; no ordering between
    emails is guaranteed. In-flight tasks are tracked so shutdown can drain.
    """

    def __init__(self, renderer: "ITemplateRenderer", sender: "IEmailSender") -> None:
        self._renderer = renderer
        self._sender = sender
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of sends still in flight."""
        return len(self._tasks)

    def dispatch(self, event: DomainEvent) -> asyncio.Task[None]:
        """Schedule the email for an event. Must be called from a running event loop."""
        job = build_job(event)
        task = asyncio.create_task(self._deliver(job), name=f"email:{job.template.value}:{job.to}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def dispatch_all(self, events: list[DomainEvent] | tuple[DomainEvent, ...]) -> None:
        for event in events:
            self.dispatch(event)

    async def drain(self) -> None:
        """Wait for every in-flight send to finish (success or logged failure)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _deliver(self, job: NotificationJob) -> None:
        logger.info("Sending %s email to %s", job.template.value, job.to)
        try:
            html = self._renderer.render(job.template.value, job.context)
            confirmation = await self._sender.send_email(job.to, job.subject, html)
        except DeliveryException as exc:
            logger.error(
                "%s email to %s failed (%s): %s",
                job.template.value,
                job.to,
                exc.error_code,
                exc.details.get("reason", exc.message),
            )
        except Exception:
            logger.exception("%s email to %s failed unexpectedly", job.template.value, job.to)
        else:
            logger.info("%s email to %s. %s", job.template.value, job.to, confirmation)

