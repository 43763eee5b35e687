"""Domain entities.

Pure read-models of the replicated collections; no transport concerns.
"""

from notifier.domain.entities.deployment import DeploymentRecord
from notifier.domain.entities.statistics import StatisticsRecord
from notifier.domain.entities.user import UserEntity

__all__ = [
    "DeploymentRecord",
    "StatisticsRecord",
    "UserEntity",
]
