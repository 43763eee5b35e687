"""Daily usage report: day-boundary detection and report payload building.

The scheduler is ticked on a short fixed cadence. It remembers the last
local calendar date it fired on and fires once on the first tick that
observes a later date, so missed or jittery ticks neither skip nor repeat
a report.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from notifier.domain.entities import DeploymentRecord, StatisticsRecord, UserEntity
from notifier.domain.enums import Collection
from notifier.domain.events import DailyUsage
from notifier.shared.telemetry.logging import get_logger
from notifier.shared.utils.datetime import local_now

if TYPE_CHECKING:
    from notifier.application.services.snapshot_store import SnapshotStore

logger = get_logger(__name__)


def join_services(
    record: StatisticsRecord,
    deployments: tuple[DeploymentRecord, ...],
) -> list[dict[str, Any]]:
    """Overlay each service usage entry with its deployment (matched by service name).

    Deployment fields win on conflicting keys. Inputs are not modified.
    """
    by_name = {d.service_name: d for d in deployments}
    joined: list[dict[str, Any]] = []
    for service in record.service_entries():
        deployment = by_name.get(service.get("name"))
        joined.append({**service, **deployment.fields} if deployment else service)
    return joined


class DailyUsageReportScheduler:
    """Fires the daily usage report at most once per local calendar day.

    Args:
        store: Snapshot store to read users, statistics and deployments from.
        clock: Returns the current local datetime; injectable for tests.
        last_fired: Date treated as already reported. Defaults to today so
            a fresh process waits for the next day boundary.
    """

    def __init__(
        self,
        store: "SnapshotStore",
        clock: Callable[[], datetime] = local_now,
        last_fired: date | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._last_fired = last_fired or clock().date()

    @property
    def last_fired(self) -> date:
        return self._last_fired

    def tick(self) -> list[DailyUsage]:
        """Evaluate one tick; return the report jobs if a new day has begun, else []."""
        today = self._clock().date()
        if today <= self._last_fired:
            return []
        self._last_fired = today
        reports = self.build_reports()
        logger.info("Daily usage cycle for %s: %d report(s)", today.isoformat(), len(reports))
        return reports

    def build_reports(self) -> list[DailyUsage]:
        """Build one DailyUsage per user that has a statistics record.

        Users without statistics (including those removed by the
        environment filter) get no report.
        """
        users: tuple[UserEntity, ...] = self._store.get(Collection.USERS)
        statistics: tuple[StatisticsRecord, ...] = self._store.get(Collection.STATISTICS)
        deployments: tuple[DeploymentRecord, ...] = self._store.get(Collection.DEPLOYMENTS)

        stats_by_user = {s.id: s for s in statistics}
        reports: list[DailyUsage] = []
        for user in users:
            record = stats_by_user.get(user.id)
            if record is None:
                continue
            usage = {"id": record.id, "services": join_services(record, deployments)}
            reports.append(DailyUsage(user_id=user.id, usage=usage))
        return reports
