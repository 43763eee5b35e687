"""Pytest configuration and fixtures for notifier.

Provides in-memory fakes for the collaborator ports (document sources,
template renderer, email sender) and a helper for required environment.
"""

from typing import Any

import pytest

from notifier.application.services.snapshot_store import SnapshotStore
from notifier.core.config import get_settings
from notifier.domain.enums import Collection
from notifier.domain.exceptions import DeliveryException, RenderException

REQUIRED_ENV = {
    "ENVIRONMENT": "production",
    "SMTP_HOST": "smtp.example.com",
    "SMTP_PORT": "465",
    "SMTP_USERNAME": "mailer",
    "SMTP_PASSWORD": "s3cret",
    "FROM_EMAIL": "noreply@example.com",
    "SYNC_BASE_URL": "http://couch.local:5984",
}


class FakeSource:
    """IDocumentSource over a mutable list of raw documents."""

    def __init__(self, docs: list[dict[str, Any]] | None = None) -> None:
        self.docs = list(docs or [])

    def all_docs(self) -> list[dict[str, Any]]:
        return [dict(d) for d in sorted(self.docs, key=lambda d: d["_id"])]


class FakeRenderer:
    """ITemplateRenderer that records calls; fails for names in fail_on."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_on = fail_on or set()

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        self.calls.append((template_name, context))
        if template_name in self.fail_on:
            raise RenderException(template_name, "boom")
        return f"<html>{template_name}</html>"


class FakeSender:
    """IEmailSender that records sent mail; fails for recipients in fail_for."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.sent: list[dict[str, str]] = []
        self.fail_for = fail_for or set()

    async def send_email(self, to: str, subject: str, html: str) -> str:
        if to in self.fail_for:
            raise DeliveryException(to, "connection refused")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return "Email sent."


def user_doc(user_id: str, plan: str | None = "free", **metadata: Any) -> dict[str, Any]:
    """Raw users document as replicated from the remote source."""
    meta = {"plan": plan, **metadata} if plan is not None else dict(metadata)
    return {"_id": user_id, "_rev": "1-abc", "metadata": meta}


@pytest.fixture
def store() -> SnapshotStore:
    return SnapshotStore()


@pytest.fixture
def sources() -> dict[Collection, FakeSource]:
    return {collection: FakeSource() for collection in Collection}


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def required_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> dict[str, str]:
    """Set every required variable and isolate from any local .env file."""
    monkeypatch.chdir(tmp_path)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    yield dict(REQUIRED_ENV)
    get_settings.cache_clear()
