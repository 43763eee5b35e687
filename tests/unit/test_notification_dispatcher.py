"""Tests for NotificationDispatcher and the event → job mapping."""

import asyncio
import logging

import pytest

from notifier.application.services.notification_dispatcher import NotificationDispatcher, build_job
from notifier.domain.enums import NotificationTemplate
from notifier.domain.events import DailyUsage, PlanChanged, UserCreated
from tests.conftest import FakeRenderer, FakeSender


class TestBuildJob:
    def test_user_created_maps_to_welcome(self) -> None:
        job = build_job(UserCreated(user_id="a@x.io"))
        assert job.to == "a@x.io"
        assert job.template is NotificationTemplate.WELCOME
        assert job.subject == "Welcome to Awesomeness!"

    def test_plan_changed_uppercases_plan(self) -> None:
        job = build_job(PlanChanged(user_id="a@x.io", plan="pro"))
        assert job.template is NotificationTemplate.PLAN
        assert job.subject == "PRO Plan Activated!"
        assert job.context == {"plan": "PRO"}

    def test_plan_changed_without_plan_defaults_to_free(self) -> None:
        job = build_job(PlanChanged(user_id="a@x.io", plan=None))
        assert job.subject == "FREE Plan Activated!"

    def test_daily_usage_maps_to_daily_usage_template(self) -> None:
        usage = {"id": "a@x.io", "services": []}
        job = build_job(DailyUsage(user_id="a@x.io", usage=usage))
        assert job.template is NotificationTemplate.DAILY_USAGE
        assert job.subject == "Daily Usage Statistics"
        assert job.context == {"usage": usage}

    def test_unknown_event_raises(self) -> None:
        with pytest.raises(TypeError):
            build_job(object())


async def test_dispatch_renders_and_sends(renderer, sender) -> None:
    dispatcher = NotificationDispatcher(renderer, sender)
    dispatcher.dispatch_all([UserCreated(user_id="a@x.io"), PlanChanged(user_id="b@x.io", plan="pro")])
    await dispatcher.drain()

    assert sorted(m["to"] for m in sender.sent) == ["a@x.io", "b@x.io"]
    assert {name for name, _ in renderer.calls} == {"welcome", "plan"}
    assert dispatcher.pending == 0


async def test_dispatch_returns_before_send_completes(renderer) -> None:
    release = asyncio.Event()

    class SlowSender(FakeSender):
        async def send_email(self, to: str, subject: str, html: str) -> str:
            await release.wait()
            return await super().send_email(to, subject, html)

    sender = SlowSender()
    dispatcher = NotificationDispatcher(renderer, sender)
    dispatcher.dispatch(UserCreated(user_id="a@x.io"))
    await asyncio.sleep(0)
    assert dispatcher.pending == 1
    assert sender.sent == []

    release.set()
    await dispatcher.drain()
    assert len(sender.sent) == 1


async def test_delivery_failure_is_logged_and_isolated(renderer, caplog) -> None:
    sender = FakeSender(fail_for={"bad@x.io"})
    dispatcher = NotificationDispatcher(renderer, sender)
    with caplog.at_level(logging.ERROR):
        dispatcher.dispatch_all([UserCreated(user_id="bad@x.io"), UserCreated(user_id="good@x.io")])
        await dispatcher.drain()

    assert [m["to"] for m in sender.sent] == ["good@x.io"]
    assert "DELIVERY_ERROR" in caplog.text
    assert "bad@x.io" in caplog.text


async def test_render_failure_is_treated_as_delivery_failure(sender, caplog) -> None:
    dispatcher = NotificationDispatcher(FakeRenderer(fail_on={"plan"}), sender)
    with caplog.at_level(logging.ERROR):
        task = dispatcher.dispatch(PlanChanged(user_id="a@x.io", plan="pro"))
        await dispatcher.drain()

    assert task.exception() is None
    assert sender.sent == []
    assert "RENDER_ERROR" in caplog.text


async def test_unexpected_sender_error_does_not_propagate(renderer, caplog) -> None:
    class BrokenSender:
        async def send_email(self, to: str, subject: str, html: str) -> str:
            raise RuntimeError("socket exploded")

    dispatcher = NotificationDispatcher(renderer, BrokenSender())
    with caplog.at_level(logging.ERROR):
        task = dispatcher.dispatch(UserCreated(user_id="a@x.io"))
        await dispatcher.drain()

    assert task.exception() is None
    assert "failed unexpectedly" in caplog.text
