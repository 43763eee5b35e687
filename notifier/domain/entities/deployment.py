"""Deployment domain entity: read-only reference data joined into usage reports."""

from dataclasses import dataclass, field
from typing import Any

from notifier.domain.exceptions import ValidationException


@dataclass(frozen=True)
class DeploymentRecord:
    """Deployment metadata for a single service, keyed by service name.

    fields holds the whole materialized document (including serviceName)
    so a report join can overlay every deployment attribute.
    """

    service_name: str
    fields: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.service_name:
            raise ValidationException(
                "Deployment record requires a service name", field="serviceName"
            )

    @property
    def key(self) -> str:
        return self.service_name
