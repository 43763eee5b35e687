"""DTOs for reconciliation results."""

from dataclasses import dataclass, field

from notifier.domain.enums import Collection
from notifier.domain.events import DomainEvent


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling one collection against its snapshot."""

    collection: Collection
    snapshot_size: int
    events: tuple[DomainEvent, ...] = field(default_factory=tuple)
    skipped: bool = False
