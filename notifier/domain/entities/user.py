"""User domain entity.

A registered account as last observed in the replicated users collection.
Snapshots hold these immutably; a plan change produces a new instance.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from notifier.domain.exceptions import ValidationException


@dataclass(frozen=True)
class UserEntity:
    """Immutable user read-model keyed by email address.

    Validation runs on construction. Use with_plan() to derive an updated copy.
    """

    id: str
    plan: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate user rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("User ID is required", field="id")

    @property
    def key(self) -> str:
        """Snapshot key (the user's email address)."""
        return self.id

    def with_plan(self, plan: str | None) -> "UserEntity":
        """Return a copy of this user on the given plan."""
        return replace(self, plan=plan, metadata={**self.metadata, "plan": plan})
