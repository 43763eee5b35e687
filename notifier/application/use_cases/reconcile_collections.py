"""Reconcile freshly replicated collections against the snapshot store.

Each reconcile step reads the full local mirror of one collection,
materializes it, derives domain events by diffing against the current
snapshot, and replaces the snapshot before returning. Derivation and the
snapshot update happen in one synchronous call, so replaying the same
batch finds the snapshot already advanced and derives nothing.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from notifier.application.dtos.reconciliation import ReconcileResult
from notifier.application.services.document_mapper import (
    materialize,
    to_deployment,
    to_statistics,
    to_user,
)
from notifier.domain.entities import StatisticsRecord, UserEntity
from notifier.domain.enums import Collection
from notifier.domain.events import DomainEvent, PlanChanged, UserCreated
from notifier.shared.telemetry.logging import get_logger
from notifier.shared.utils.collections import unique_by

if TYPE_CHECKING:
    from notifier.application.interfaces.services import IDocumentSource
    from notifier.application.services.snapshot_store import SnapshotStore

logger = get_logger(__name__)


class ReconcileCollectionsUseCase:
    """Turns replicated collection contents into snapshot updates and domain events.

    Users: new ids yield UserCreated; a changed plan yields PlanChanged.
    Statistics: environment filter, then replace. Deployments: replace.

    At most one PlanChanged is derived per users cycle: the first user of
    the view (in document-id order) whose plan differs from the baseline.
    Further plan changes in the same batch are picked up by later cycles.
    """

    def __init__(
        self,
        store: "SnapshotStore",
        sources: Mapping[Collection, "IDocumentSource"],
        *,
        is_production: bool,
        admin_account_id: str = "admin",
        test_account_id: str = "go@dropstack.run",
    ) -> None:
        self._store = store
        self._sources = sources
        self._is_production = is_production
        self._admin_account_id = admin_account_id
        self._test_account_id = test_account_id

    def reconcile(self, collection: Collection) -> ReconcileResult:
        """Run the reconcile step for one collection."""
        if collection is Collection.USERS:
            return self.reconcile_users()
        if collection is Collection.STATISTICS:
            return self.reconcile_statistics()
        return self.reconcile_deployments()

    def reconcile_users(self) -> ReconcileResult:
        """Diff the users view against the baseline and advance it.

        An empty snapshot is treated as no history: the view becomes the
        baseline and no events are derived, so a restart does not greet
        every existing user again.

        Returns:
            ReconcileResult with UserCreated events (view order) followed by
            at most one PlanChanged.
        """
        view = materialize(self._sources[Collection.USERS].all_docs(), to_user)
        if not view:
            return ReconcileResult(Collection.USERS, len(self._store.get(Collection.USERS)), skipped=True)

        if self._store.is_empty(Collection.USERS):
            baseline = unique_by(view, key=lambda u: u.id)
            self._store.replace(Collection.USERS, baseline)
            logger.info("Users baseline adopted with %d users", len(baseline))
            return ReconcileResult(Collection.USERS, len(baseline))

        previous: tuple[UserEntity, ...] = self._store.get(Collection.USERS)
        known_ids = {u.id for u in previous}
        created = unique_by((u for u in view if u.id not in known_ids), key=lambda u: u.id)
        events: list[DomainEvent] = [UserCreated(user_id=u.id) for u in created]

        baseline = unique_by([*previous, *created], key=lambda u: u.id)
        plan_change = self._apply_first_plan_change(view, baseline)
        if plan_change is not None:
            events.append(plan_change)

        self._store.replace(Collection.USERS, baseline)
        if events:
            logger.info(
                "Users reconciled: %d created, %d plan change(s)",
                len(created),
                len(events) - len(created),
            )
        return ReconcileResult(Collection.USERS, len(baseline), tuple(events))

    @staticmethod
    def _apply_first_plan_change(
        view: list[UserEntity],
        baseline: list[UserEntity],
    ) -> PlanChanged | None:
        """Update the baseline in place for the first plan change found; return its event."""
        index_by_id = {u.id: i for i, u in enumerate(baseline)}
        for incoming in view:
            i = index_by_id.get(incoming.id)
            if i is None or baseline[i].plan == incoming.plan:
                continue
            baseline[i] = baseline[i].with_plan(incoming.plan)
            return PlanChanged(user_id=incoming.id, plan=incoming.plan)
        return None

    def reconcile_statistics(self) -> ReconcileResult:
        """Replace the statistics snapshot with the environment-filtered view."""
        view = materialize(self._sources[Collection.STATISTICS].all_docs(), to_statistics)
        if not view:
            return ReconcileResult(
                Collection.STATISTICS, len(self._store.get(Collection.STATISTICS)), skipped=True
            )
        filtered = self.filter_statistics(view)
        self._store.replace(Collection.STATISTICS, filtered)
        logger.debug("Statistics snapshot replaced (%d of %d records)", len(filtered), len(view))
        return ReconcileResult(Collection.STATISTICS, len(filtered))

    def filter_statistics(self, records: list[StatisticsRecord]) -> list[StatisticsRecord]:
        """Production drops the admin account; elsewhere only the test account is kept."""
        if self._is_production:
            return [r for r in records if r.id != self._admin_account_id]
        return [r for r in records if r.id == self._test_account_id]

    def reconcile_deployments(self) -> ReconcileResult:
        """Replace the deployments snapshot with the full view (first record per service name wins)."""
        view = unique_by(
            materialize(self._sources[Collection.DEPLOYMENTS].all_docs(), to_deployment),
            key=lambda d: d.service_name,
        )
        if not view:
            return ReconcileResult(
                Collection.DEPLOYMENTS, len(self._store.get(Collection.DEPLOYMENTS)), skipped=True
            )
        self._store.replace(Collection.DEPLOYMENTS, view)
        logger.debug("Deployments snapshot replaced (%d records)", len(view))
        return ReconcileResult(Collection.DEPLOYMENTS, len(view))
