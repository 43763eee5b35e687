"""Domain enumerations for the notifier daemon."""

from enum import Enum


class Collection(str, Enum):
    """Replicated collections mirrored into the snapshot store.

    The value doubles as the remote database name under SYNC_BASE_URL.
    """

    USERS = "users"
    STATISTICS = "statistics"
    DEPLOYMENTS = "deployments"


class NotificationTemplate(str, Enum):
    """Logical template names understood by the template renderer."""

    WELCOME = "welcome"
    PLAN = "plan"
    DAILY_USAGE = "daily-usage"
