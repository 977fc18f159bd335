"""Redeploy pipeline: match pods, restart their controllers, report outcomes."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import structlog

from workload_redeployer.services.kubernetes.matcher import WorkloadMatcher, name_contains
from workload_redeployer.services.kubernetes.reporter import OutcomeReporter
from workload_redeployer.services.kubernetes.restart import RestartTrigger

if TYPE_CHECKING:
    from workload_redeployer.integrations.kubernetes.client import KubernetesClient
    from workload_redeployer.integrations.kubernetes.config import RedeployConfig
    from workload_redeployer.integrations.kubernetes.models.workloads import (
        ControllerTarget,
        RestartOutcome,
    )

logger = structlog.get_logger()


class RedeployRunner:
    """Run one redeploy batch.

    Listing and owner resolution failures propagate to the caller. Restart
    failures do not: each target is attempted and reported regardless of
    what happened to the others. With more than one worker, restarts run on
    a thread pool but are still reported in the order the matcher produced
    them.
    """

    def __init__(
        self,
        matcher: WorkloadMatcher,
        trigger: RestartTrigger,
        reporter: OutcomeReporter,
        *,
        workers: int = 1,
    ) -> None:
        self._matcher = matcher
        self._trigger = trigger
        self._reporter = reporter
        self._workers = workers

    @classmethod
    def from_config(
        cls,
        client: KubernetesClient,
        config: RedeployConfig,
        reporter: OutcomeReporter | None = None,
    ) -> RedeployRunner:
        """Wire the matcher, trigger, and reporter from configuration."""
        matcher = WorkloadMatcher(
            client,
            name_contains(config.match.name_pattern),
            follow_replicasets=config.match.follow_replicasets,
        )
        trigger = RestartTrigger(client, conflict_retries=config.restart.conflict_retries)
        return cls(
            matcher,
            trigger,
            reporter or OutcomeReporter(),
            workers=config.restart.workers,
        )

    @property
    def matcher(self) -> WorkloadMatcher:
        return self._matcher

    def run(self, namespace: str | None = None) -> list[RestartOutcome]:
        """Restart every controller owning a matching pod in scope.

        Args:
            namespace: Namespace scope, or None for all namespaces.

        Returns:
            Outcomes in matcher emission order.

        Raises:
            KubernetesError: If listing pods or resolving their owners fails.
        """
        return self.restart_all(self._matcher.find_targets(namespace))

    def restart_all(self, targets: list[ControllerTarget]) -> list[RestartOutcome]:
        """Restart and report each target, then log the batch summary."""
        logger.info("redeploy_started", targets=len(targets))
        if self._workers > 1 and len(targets) > 1:
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                for outcome in pool.map(self._trigger.restart, targets):
                    self._reporter.report(outcome)
        else:
            for target in targets:
                self._reporter.report(self._trigger.restart(target))

        self._reporter.log_summary()
        return self._reporter.outcomes
