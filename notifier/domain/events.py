"""Domain events derived from snapshot transitions and the report schedule.

Events are immutable facts; the dispatcher turns each into one email job.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class UserCreated:
    """A user id appeared that was not in the previous users snapshot."""

    user_id: str


@dataclass(frozen=True)
class PlanChanged:
    """A known user's plan differs from the snapshot baseline."""

    user_id: str
    plan: str | None


@dataclass(frozen=True)
class DailyUsage:
    """End-of-day usage report for one user (statistics joined with deployments)."""

    user_id: str
    usage: dict[str, Any] = field(default_factory=dict)


DomainEvent = UserCreated | PlanChanged | DailyUsage
