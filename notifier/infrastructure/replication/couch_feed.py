"""Live, auto-retrying pull replication over the CouchDB _changes long-poll API.

One feed per collection pulls {base_url}/{collection}/_changes with
include_docs and applies each batch to the collection's LocalMirror.
Once caught up with the remote it pushes the last_seq onto the collection's
change queue. All HTTP calls use httpx.AsyncClient so they do not block the
event loop. Errors are logged and the feed retries; it never raises out of
run() except on cancellation.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from notifier.domain.enums import Collection
from notifier.domain.exceptions import FeedException
from notifier.infrastructure.replication.local_mirror import LocalMirror
from notifier.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class CouchReplicationFeed:
    """Replicates one remote collection into a local mirror and signals changes."""

    def __init__(
        self,
        collection: Collection,
        base_url: str,
        mirror: LocalMirror,
        changes: "asyncio.Queue[str]",
        http_client: httpx.AsyncClient,
        *,
        batch_size: int = 1000,
        poll_timeout_seconds: float = 60.0,
        retry_seconds: float = 5.0,
    ) -> None:
        self.collection = collection
        self.url = f"{base_url.rstrip('/')}/{collection.value}"
        self._mirror = mirror
        self._changes = changes
        self._http = http_client
        self._batch_size = batch_size
        self._poll_timeout_ms = int(poll_timeout_seconds * 1000)
        self._retry_seconds = retry_seconds
        self._since: str | int = 0
        self._unsignalled = 0

    @property
    def since(self) -> str | int:
        """Last sequence applied to the mirror."""
        return self._since

    async def run(self) -> None:
        """Replicate until cancelled; failures are logged and retried."""
        logger.info("Sync from %s started", self.url)
        try:
            while True:
                try:
                    await self.pull_once()
                except (FeedException, httpx.HTTPError, ValueError) as exc:
                    logger.error("Sync from %s error (since %s): %s", self.url, self.since, exc)
                    await asyncio.sleep(self._retry_seconds)
        except asyncio.CancelledError:
            logger.info("Sync from %s completed", self.url)
            raise

    async def pull_once(self) -> int:
        """Fetch one batch of changes and apply it to the mirror.

        A change token is queued only once the feed has caught up with the
        remote (``pending == 0``, or a short page when ``pending`` is absent),
        so a multi-batch catch-up is reconciled once, against the full mirror.

        Returns:
            Number of change rows applied to the mirror.

        Raises:
            FeedException: Non-200 response or malformed body.
            httpx.HTTPError: Transport failure.
        """
        params = {
            "feed": "longpoll",
            "include_docs": "true",
            "style": "main_only",
            "since": str(self._since),
            "limit": str(self._batch_size),
            "timeout": str(self._poll_timeout_ms),
        }
        resp = await self._http.get(f"{self.url}/_changes", params=params)
        if resp.status_code != 200:
            raise FeedException(self.collection.value, f"HTTP {resp.status_code}")
        body: dict[str, Any] = resp.json()
        if not isinstance(body, dict) or "results" not in body:
            raise FeedException(self.collection.value, "malformed _changes response")
        rows = body["results"] or []
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise FeedException(self.collection.value, "malformed _changes results")

        last_seq = body.get("last_seq", self._since)
        applied = self._mirror.apply(rows) if rows else 0
        self._since = last_seq
        self._unsignalled += applied
        if not self._caught_up(body, rows):
            logger.debug("Sync from %s: catching up, %d change(s) up to %s", self.url, applied, last_seq)
        elif self._unsignalled:
            await self._changes.put(str(last_seq))
            logger.debug("Sync from %s: %d change(s) up to %s", self.url, self._unsignalled, last_seq)
            self._unsignalled = 0
        return applied

    def _caught_up(self, body: dict[str, Any], rows: list[dict[str, Any]]) -> bool:
        pending = body.get("pending")
        if isinstance(pending, int) and not isinstance(pending, bool):
            return pending == 0
        return len(rows) < self._batch_size
