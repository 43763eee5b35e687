"""Daemon lifespan: startup and shutdown.

Single place for wiring (store, mirrors, feeds, workers, scheduler,
dispatcher) and for the startup/shutdown order. No business logic here.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx

from notifier.application.interfaces.services import IEmailSender, ITemplateRenderer
from notifier.application.services.notification_dispatcher import NotificationDispatcher
from notifier.application.services.snapshot_store import SnapshotStore
from notifier.application.services.workers import CollectionWorker, run_report_scheduler
from notifier.application.use_cases.daily_usage_report import DailyUsageReportScheduler
from notifier.application.use_cases.reconcile_collections import ReconcileCollectionsUseCase
from notifier.core.config import Settings
from notifier.domain.enums import Collection
from notifier.infrastructure.external.email.smtp_sender import SmtpEmailSender
from notifier.infrastructure.external.templates.jinja_renderer import JinjaTemplateRenderer
from notifier.infrastructure.replication import CouchReplicationFeed, LocalMirror
from notifier.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# Long-poll requests must outlive the server-side poll timeout.
_HTTP_TIMEOUT_MARGIN_SECONDS = 10.0


@dataclass
class NotifierRuntime:
    """Everything the running daemon owns; built by create_lifespan."""

    settings: Settings
    store: SnapshotStore
    dispatcher: NotificationDispatcher
    reconciler: ReconcileCollectionsUseCase
    scheduler: DailyUsageReportScheduler
    feeds: list[CouchReplicationFeed]
    workers: list[CollectionWorker]
    tasks: list[asyncio.Task[None]] = field(default_factory=list)

    def start(self) -> None:
        """Start one task per feed and worker, plus the report ticker."""
        for worker in self.workers:
            self.tasks.append(asyncio.create_task(worker.run(), name=f"worker:{worker.collection.value}"))
        for feed in self.feeds:
            self.tasks.append(asyncio.create_task(feed.run(), name=f"feed:{feed.collection.value}"))
        self.tasks.append(
            asyncio.create_task(
                run_report_scheduler(self.scheduler, self.dispatcher, self.settings.scheduler_tick_seconds),
                name="report-scheduler",
            )
        )
        logger.info("Notifier started (%d tasks)", len(self.tasks))

    async def stop(self) -> None:
        """Cancel loops, then let in-flight emails finish."""
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
        await self.dispatcher.drain()


def build_sender(settings: Settings) -> SmtpEmailSender:
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port or 465,
        username=settings.smtp_username,
        password=settings.smtp_password.get_secret_value(),
        from_email=settings.from_email,
        from_name=settings.from_name,
        use_ssl=settings.smtp_use_ssl,
        timeout_seconds=settings.smtp_timeout_seconds,
    )


@asynccontextmanager
async def create_lifespan(
    settings: Settings,
    *,
    sender: IEmailSender | None = None,
    renderer: ITemplateRenderer | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[NotifierRuntime]:
    """Build the runtime, yield it, and tear it down on exit.

    Shutdown order: cancel feeds/workers/scheduler, drain pending sends,
    close the HTTP client (only if created here).
    """
    # ---- Startup ----
    owns_client = http_client is None
    if http_client is None:
        http_client = httpx.AsyncClient(
            timeout=settings.replication_timeout_seconds + _HTTP_TIMEOUT_MARGIN_SECONDS
        )

    store = SnapshotStore()
    mirrors = {collection: LocalMirror(collection.value) for collection in Collection}
    queues: dict[Collection, asyncio.Queue[str]] = {collection: asyncio.Queue() for collection in Collection}

    dispatcher = NotificationDispatcher(
        renderer=renderer or JinjaTemplateRenderer(settings.templates_dir),
        sender=sender or build_sender(settings),
    )
    reconciler = ReconcileCollectionsUseCase(
        store,
        mirrors,
        is_production=settings.is_production,
        admin_account_id=settings.admin_account_id,
        test_account_id=settings.test_account_id,
    )
    runtime = NotifierRuntime(
        settings=settings,
        store=store,
        dispatcher=dispatcher,
        reconciler=reconciler,
        scheduler=DailyUsageReportScheduler(store),
        feeds=[
            CouchReplicationFeed(
                collection,
                settings.sync_base_url,
                mirrors[collection],
                queues[collection],
                http_client,
                batch_size=settings.replication_batch_size,
                poll_timeout_seconds=settings.replication_timeout_seconds,
                retry_seconds=settings.replication_retry_seconds,
            )
            for collection in Collection
        ],
        workers=[
            CollectionWorker(collection, queues[collection], reconciler, dispatcher)
            for collection in Collection
        ],
    )

    try:
        yield runtime
    finally:
        # ---- Shutdown ----
        await runtime.stop()
        logger.info("Background tasks stopped")
        if owns_client:
            await http_client.aclose()
            logger.info("HTTP client closed")
