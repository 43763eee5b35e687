"""
Local datetime utilities for calendar-day scheduling.

Daily reports follow the host's local calendar, so these helpers return
timezone-aware datetimes in the local zone rather than UTC.
"""

from datetime import datetime


def local_now() -> datetime:
    """
    Return the current local datetime with timezone info.

    Use this instead of datetime.now(), which is naive.

    Returns:
        Timezone-aware datetime in the host's local zone
    """
    return datetime.now().astimezone()
