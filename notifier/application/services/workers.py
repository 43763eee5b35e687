"""Long-running loops: one reconcile worker per collection and the report ticker.

Each collection has its own change channel (an asyncio.Queue of change
tokens). Its worker consumes tokens one at a time, so reconcile steps for
a collection never overlap, while different collections proceed
independently. A failure in one reconcile step is logged and the worker
keeps consuming.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from notifier.domain.enums import Collection
from notifier.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from notifier.application.services.notification_dispatcher import NotificationDispatcher
    from notifier.application.use_cases.daily_usage_report import DailyUsageReportScheduler
    from notifier.application.use_cases.reconcile_collections import ReconcileCollectionsUseCase

logger = get_logger(__name__)


class CollectionWorker:
    """Consumes change tokens for one collection and reconciles after each."""

    def __init__(
        self,
        collection: Collection,
        changes: "asyncio.Queue[str]",
        reconciler: "ReconcileCollectionsUseCase",
        dispatcher: "NotificationDispatcher",
    ) -> None:
        self.collection = collection
        self._changes = changes
        self._reconciler = reconciler
        self._dispatcher = dispatcher

    async def run(self) -> None:
        """Consume forever; cancel the task to stop."""
        while True:
            token = await self._changes.get()
            try:
                self.process(token)
            finally:
                self._changes.task_done()

    def process(self, token: str) -> None:
        """Reconcile the collection for one change token and dispatch its events."""
        try:
            result = self._reconciler.reconcile(self.collection)
        except Exception:
            logger.exception(
                "Reconciling %s failed (change %s); snapshot left unchanged",
                self.collection.value,
                token,
            )
            return
        if result.skipped:
            logger.debug("Reconcile of %s skipped at change %s: empty view", self.collection.value, token)
            return
        logger.debug(
            "Reconciled %s at change %s: %d entities, %d events",
            self.collection.value,
            token,
            result.snapshot_size,
            len(result.events),
        )
        self._dispatcher.dispatch_all(result.events)


async def run_report_scheduler(
    scheduler: "DailyUsageReportScheduler",
    dispatcher: "NotificationDispatcher",
    tick_seconds: float,
) -> None:
    """Tick the daily report scheduler forever; cancel the task to stop."""
    while True:
        try:
            reports = scheduler.tick()
        except Exception:
            logger.exception("Daily usage report cycle failed")
        else:
            dispatcher.dispatch_all(reports)
        await asyncio.sleep(tick_seconds)
