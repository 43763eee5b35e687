"""In-memory local mirror of one replicated collection (IDocumentSource)."""

from __future__ import annotations

import copy
from typing import Any


class LocalMirror:
    """Document store keyed by _id, fed by change rows from the replication feed.

    all_docs() returns deep copies so callers cannot mutate the mirror.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._docs: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._docs)

    def apply(self, rows: list[dict[str, Any]]) -> int:
        """Apply _changes rows (with include_docs). Returns the number of rows applied.

        Deleted rows remove the document; other rows insert or replace it.
        Rows without an id, or whose doc is not an object, are ignored.
        """
        applied = 0
        for row in rows:
            doc = row.get("doc")
            if doc is not None and not isinstance(doc, dict):
                continue
            doc_id = row.get("id") or (doc or {}).get("_id")
            if not doc_id:
                continue
            if row.get("deleted") or (doc or {}).get("_deleted"):
                self._docs.pop(doc_id, None)
            elif doc is not None:
                self._docs[doc_id] = doc
            else:
                continue
            applied += 1
        return applied

    def all_docs(self) -> list[dict[str, Any]]:
        """Return every document ordered by _id, like CouchDB _all_docs."""
        return [copy.deepcopy(self._docs[doc_id]) for doc_id in sorted(self._docs)]
