"""Tests for collection workers, the report ticker, and runtime wiring."""

import asyncio
import json
import logging
from datetime import datetime, timedelta

import httpx
import pytest

from notifier.application.services.notification_dispatcher import NotificationDispatcher
from notifier.application.services.workers import CollectionWorker, run_report_scheduler
from notifier.application.use_cases.daily_usage_report import DailyUsageReportScheduler
from notifier.application.use_cases.reconcile_collections import ReconcileCollectionsUseCase
from notifier.core.config import load_settings
from notifier.core.lifespan import create_lifespan
from notifier.domain.entities import StatisticsRecord, UserEntity
from notifier.domain.enums import Collection
from notifier.infrastructure.replication import CouchReplicationFeed, LocalMirror
from tests.conftest import user_doc


@pytest.fixture
def reconciler(store, sources) -> ReconcileCollectionsUseCase:
    return ReconcileCollectionsUseCase(store, sources, is_production=True)


async def test_worker_dispatches_events_from_each_change(reconciler, sources, renderer, sender) -> None:
    dispatcher = NotificationDispatcher(renderer, sender)
    queue: asyncio.Queue[str] = asyncio.Queue()
    worker = CollectionWorker(Collection.USERS, queue, reconciler, dispatcher)
    task = asyncio.create_task(worker.run())

    sources[Collection.USERS].docs = [user_doc("a@x.io")]
    await queue.put("1")
    await queue.join()
    sources[Collection.USERS].docs.append(user_doc("b@x.io"))
    await queue.put("2")
    await queue.put("2")  # at-least-once redelivery
    await queue.join()
    await dispatcher.drain()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert [(m["to"], m["subject"]) for m in sender.sent] == [("b@x.io", "Welcome to Awesomeness!")]


async def test_worker_logs_skipped_reconcile_of_empty_view(reconciler, renderer, sender, caplog) -> None:
    worker = CollectionWorker(Collection.USERS, asyncio.Queue(), reconciler, NotificationDispatcher(renderer, sender))
    with caplog.at_level(logging.DEBUG, logger="notifier.application.services.workers"):
        worker.process("1")

    assert "Reconcile of users skipped at change 1: empty view" in caplog.text
    assert sender.sent == []


async def test_worker_survives_reconcile_failure(renderer, sender, caplog) -> None:
    class ExplodingReconciler:
        def __init__(self) -> None:
            self.calls = 0

        def reconcile(self, collection):
            self.calls += 1
            raise RuntimeError("mirror unavailable")

    reconciler = ExplodingReconciler()
    queue: asyncio.Queue[str] = asyncio.Queue()
    worker = CollectionWorker(Collection.STATISTICS, queue, reconciler, NotificationDispatcher(renderer, sender))
    task = asyncio.create_task(worker.run())
    with caplog.at_level(logging.ERROR):
        await queue.put("1")
        await queue.put("2")
        await queue.join()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert reconciler.calls == 2
    assert "Reconciling statistics failed" in caplog.text


async def test_multi_batch_initial_sync_sends_no_welcome_emails(store, renderer, sender) -> None:
    docs = [user_doc(f"u{i:02d}@x.io") for i in range(30)]

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.001)
        since = int(request.url.params["since"])
        page = docs[since : since + int(request.url.params["limit"])]
        body = {
            "results": [{"id": doc["_id"], "doc": doc} for doc in page],
            "last_seq": since + len(page),
        }
        return httpx.Response(200, content=json.dumps(body).encode())

    mirrors = {collection: LocalMirror(collection.value) for collection in Collection}
    reconciler = ReconcileCollectionsUseCase(store, mirrors, is_production=True)
    dispatcher = NotificationDispatcher(renderer, sender)
    queue: asyncio.Queue[str] = asyncio.Queue()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        feed = CouchReplicationFeed(
            Collection.USERS,
            "http://couch.local",
            mirrors[Collection.USERS],
            queue,
            client,
            batch_size=10,
            poll_timeout_seconds=1,
            retry_seconds=0,
        )
        worker = CollectionWorker(Collection.USERS, queue, reconciler, dispatcher)
        tasks = [asyncio.create_task(feed.run()), asyncio.create_task(worker.run())]

        for _ in range(400):
            if len(store.get(Collection.USERS)) == 30:
                break
            await asyncio.sleep(0.005)
        await dispatcher.drain()
        assert len(store.get(Collection.USERS)) == 30
        assert sender.sent == []

        docs.append(user_doc("new@x.io"))
        for _ in range(400):
            if len(store.get(Collection.USERS)) == 31:
                break
            await asyncio.sleep(0.005)
        await dispatcher.drain()

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    assert [m["to"] for m in sender.sent] == ["new@x.io"]


async def test_report_scheduler_loop_dispatches_daily_usage(store, renderer, sender) -> None:
    store.replace(Collection.USERS, [UserEntity(id="a@x.io")])
    store.replace(Collection.STATISTICS, [StatisticsRecord(id="a@x.io", services={})])
    now = [datetime(2025, 3, 1, 23, 59, 59)]
    scheduler = DailyUsageReportScheduler(store, clock=lambda: now[0])
    dispatcher = NotificationDispatcher(renderer, sender)

    task = asyncio.create_task(run_report_scheduler(scheduler, dispatcher, tick_seconds=0.001))
    await asyncio.sleep(0.01)
    now[0] += timedelta(seconds=2)
    await asyncio.sleep(0.02)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await dispatcher.drain()

    assert [(m["to"], m["subject"]) for m in sender.sent] == [("a@x.io", "Daily Usage Statistics")]


async def test_lifespan_wires_feeds_to_notifications(required_env, renderer, sender) -> None:
    """End to end: replicated users produce a welcome email only after the baseline."""
    batches = {
        "users": [
            {"results": [{"id": "a@x.io", "doc": user_doc("a@x.io")}], "last_seq": "1"},
            {"results": [{"id": "b@x.io", "doc": user_doc("b@x.io")}], "last_seq": "2"},
        ],
    }

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.001)
        collection = request.url.path.strip("/").split("/")[0]
        pending = batches.get(collection) or []
        body = pending.pop(0) if pending else {"results": [], "last_seq": request.url.params["since"]}
        return httpx.Response(200, content=json.dumps(body).encode())

    settings = load_settings()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        async with create_lifespan(settings, sender=sender, renderer=renderer, http_client=client) as runtime:
            runtime.start()
            for _ in range(200):
                if sender.sent:
                    break
                await asyncio.sleep(0.005)
            users = [u.id for u in runtime.store.get(Collection.USERS)]

    assert users == ["a@x.io", "b@x.io"]
    assert [m["to"] for m in sender.sent] == ["b@x.io"]
    assert runtime.tasks == []
