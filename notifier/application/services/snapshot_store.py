"""In-memory snapshot store: last-known-good view of each replicated collection.

One owned instance per daemon, injected into the reconciler and the report
scheduler. Each collection is held as an immutable tuple and replaced by a
single reference swap, so readers always see a complete snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from notifier.domain.enums import Collection
from notifier.domain.exceptions import ValidationException


class SnapshotStore:
    """Holds the current snapshot per collection; whole-collection replace only."""

    def __init__(self) -> None:
        self._snapshots: dict[Collection, tuple[Any, ...]] = {
            collection: () for collection in Collection
        }

    def get(self, collection: Collection) -> tuple[Any, ...]:
        """Return the current snapshot (ordered, immutable) for the collection."""
        return self._snapshots[collection]

    def is_empty(self, collection: Collection) -> bool:
        return not self._snapshots[collection]

    def replace(self, collection: Collection, entities: Iterable[Any]) -> None:
        """Swap in a new snapshot for the collection.

        The new snapshot is built and validated in full before the swap.
        Entities must expose a ``key`` attribute.

        Raises:
            ValidationException: If two entities share a key; the current
                snapshot is left untouched.
        """
        snapshot = tuple(entities)
        seen: set[str] = set()
        for entity in snapshot:
            if entity.key in seen:
                raise ValidationException(
                    f"Duplicate key {entity.key!r} in {collection.value} snapshot",
                    field="key",
                )
            seen.add(entity.key)
        self._snapshots[collection] = snapshot
