"""Materialize mirror documents into domain entities.

Mirror documents carry replication bookkeeping (_id, _rev); entities do
not. Design documents are never materialized. A document that cannot be
mapped is logged and skipped so one bad record does not block a collection.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from notifier.domain.entities import DeploymentRecord, StatisticsRecord, UserEntity
from notifier.domain.exceptions import ValidationException
from notifier.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_BOOKKEEPING_FIELDS = frozenset({"_id", "_rev", "_deleted", "_conflicts", "_attachments"})
_DESIGN_PREFIX = "_design/"


def strip_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Return the document's own fields with ``_id`` exposed as ``id``."""
    out = {k: v for k, v in doc.items() if k not in _BOOKKEEPING_FIELDS}
    out["id"] = doc.get("_id")
    return out


def to_user(doc: dict[str, Any]) -> UserEntity:
    metadata = dict(doc.get("metadata") or {})
    return UserEntity(id=doc.get("_id", ""), plan=metadata.get("plan"), metadata=metadata)


def to_statistics(doc: dict[str, Any]) -> StatisticsRecord:
    services = doc.get("services") or {}
    if isinstance(services, list):
        services = {
            str(entry.get("name", index)): entry for index, entry in enumerate(services)
        }
    return StatisticsRecord(
        id=doc.get("_id", ""),
        services={str(k): dict(v) for k, v in services.items()},
    )


def to_deployment(doc: dict[str, Any]) -> DeploymentRecord:
    return DeploymentRecord(service_name=doc.get("serviceName", ""), fields=strip_document(doc))


def materialize(
    docs: Iterable[dict[str, Any]],
    mapper: Callable[[dict[str, Any]], T],
) -> list[T]:
    """Map every non-design document, skipping (and logging) malformed ones."""
    entities: list[T] = []
    for doc in docs:
        doc_id = str(doc.get("_id", ""))
        if doc_id.startswith(_DESIGN_PREFIX):
            continue
        try:
            entities.append(mapper(doc))
        except (ValidationException, AttributeError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed document %r: %s", doc_id, exc)
    return entities
