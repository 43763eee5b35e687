"""Domain layer: entities, events, enums, and exceptions.

No dependencies on infrastructure. Used by application and
infrastructure layers.
"""

from notifier.domain.entities import DeploymentRecord, StatisticsRecord, UserEntity
from notifier.domain.enums import Collection, NotificationTemplate
from notifier.domain.events import DailyUsage, DomainEvent, PlanChanged, UserCreated
from notifier.domain.exceptions import (
    ConfigurationException,
    DeliveryException,
    FeedException,
    NotifierException,
    RenderException,
    ValidationException,
)

__all__ = [
    # Entities
    "DeploymentRecord",
    "StatisticsRecord",
    "UserEntity",
    # Enums
    "Collection",
    "NotificationTemplate",
    # Events
    "DailyUsage",
    "DomainEvent",
    "PlanChanged",
    "UserCreated",
    # Exceptions
    "ConfigurationException",
    "DeliveryException",
    "FeedException",
    "NotifierException",
    "RenderException",
    "ValidationException",
]
