"""Statistics domain entity: live usage counters per service for one user."""

from dataclasses import dataclass, field
from typing import Any

from notifier.domain.exceptions import ValidationException


@dataclass(frozen=True)
class StatisticsRecord:
    """Usage counters for a user, keyed by user id.

    services maps a service key to its usage entry; each entry carries the
    service ``name`` used to join against deployments.
    """

    id: str
    services: dict[str, dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationException("Statistics record ID is required", field="id")

    @property
    def key(self) -> str:
        return self.id

    def service_entries(self) -> list[dict[str, Any]]:
        """Return copies of the service usage entries in map order."""
        return [dict(entry) for entry in self.services.values()]
