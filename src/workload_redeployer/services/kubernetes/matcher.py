"""Workload matcher.

Lists pods in a namespace (or across the cluster), keeps those whose name
matches a predicate, and resolves each kept pod to the Deployments and
StatefulSets that own it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from workload_redeployer.integrations.kubernetes.exceptions import KubernetesNotFoundError
from workload_redeployer.integrations.kubernetes.models.base import _get_owner_references
from workload_redeployer.integrations.kubernetes.models.workloads import (
    ControllerKind,
    ControllerTarget,
    PodRecord,
)
from workload_redeployer.services.kubernetes.base import K8sBaseManager

if TYPE_CHECKING:
    from workload_redeployer.integrations.kubernetes.client import KubernetesClient
    from workload_redeployer.integrations.kubernetes.models.base import OwnerReference

NamePredicate = Callable[[str], bool]

DEFAULT_NAME_FRAGMENT = "database"
REPLICA_SET_KIND = "ReplicaSet"


def name_contains(fragment: str) -> NamePredicate:
    """Build a case-sensitive substring predicate on pod names."""

    def _predicate(name: str) -> bool:
        return fragment in name

    return _predicate


class WorkloadMatcher(K8sBaseManager):
    """Resolve matching pods to restartable controller targets.

    By default only direct owners are considered: a pod owned by a
    ReplicaSet yields nothing, even when a Deployment owns that ReplicaSet.
    Set ``follow_replicasets`` to resolve that second hop.
    """

    _entity_name = "matcher"

    def __init__(
        self,
        client: KubernetesClient,
        predicate: NamePredicate | None = None,
        *,
        follow_replicasets: bool = False,
    ) -> None:
        """Initialize the matcher.

        Args:
            client: Kubernetes API client instance.
            predicate: Pod name test; defaults to containing "database".
            follow_replicasets: Resolve ReplicaSet owners to their Deployments.
        """
        super().__init__(client)
        self._predicate = predicate or name_contains(DEFAULT_NAME_FRAGMENT)
        self._follow_replicasets = follow_replicasets

    def list_pods(self, namespace: str | None = None) -> list[PodRecord]:
        """List pods in one namespace, or in all namespaces when None.

        Transient connection errors are retried; anything else propagates.

        Args:
            namespace: Namespace scope, or None for the whole cluster.

        Returns:
            Pod records in API order.

        Raises:
            KubernetesError: If the listing fails.
        """
        self._log.debug("listing_pods", namespace=namespace or "<all>")
        retry_decorator = self._client.make_retry_decorator()
        pods: list[PodRecord] = retry_decorator(self._fetch_pods)(namespace)
        self._log.debug("listed_pods", count=len(pods))
        return pods

    def _fetch_pods(self, namespace: str | None) -> list[PodRecord]:
        try:
            if namespace is None:
                result = self._client.core_v1.list_pod_for_all_namespaces(
                    _request_timeout=self._client.timeout
                )
            else:
                result = self._client.core_v1.list_namespaced_pod(
                    namespace=namespace, _request_timeout=self._client.timeout
                )
        except Exception as e:
            self._handle_api_error(e, "Pod", None, namespace)
        return [PodRecord.from_k8s_object(pod) for pod in result.items]

    def select_targets(self, pods: Iterable[PodRecord]) -> list[ControllerTarget]:
        """Pick the controller targets owning pods whose name matches.

        Every owner reference of every matching pod is visited. Targets are
        de-duplicated, keeping the order in which they were first seen.

        Args:
            pods: Pod records to inspect.

        Returns:
            Distinct controller targets in first-emission order.

        Raises:
            KubernetesError: If reading a ReplicaSet fails for any reason but 404.
        """
        targets: dict[ControllerTarget, None] = {}
        replica_set_owners: dict[tuple[str, str], list[OwnerReference]] = {}

        for pod in pods:
            if not self._predicate(pod.name):
                continue

            found = False
            for owner in pod.owner_references:
                for target in self._resolve_owner(pod.namespace, owner, replica_set_owners):
                    targets.setdefault(target, None)
                    found = True

            if not found:
                self._log.debug(
                    "skipped_pod_without_controller",
                    pod=pod.name,
                    namespace=pod.namespace,
                    owners=[owner.kind for owner in pod.owner_references],
                )

        self._log.info("selected_targets", count=len(targets))
        return list(targets)

    def find_targets(self, namespace: str | None = None) -> list[ControllerTarget]:
        """List pods in scope and select their controller targets."""
        return self.select_targets(self.list_pods(namespace))

    def _resolve_owner(
        self,
        namespace: str,
        owner: OwnerReference,
        replica_set_owners: dict[tuple[str, str], list[OwnerReference]],
    ) -> list[ControllerTarget]:
        kind = ControllerKind.from_owner_kind(owner.kind)
        if kind.actionable and owner.name:
            return [ControllerTarget(kind=kind, namespace=namespace, name=owner.name)]

        if not (self._follow_replicasets and owner.kind == REPLICA_SET_KIND and owner.name):
            return []

        key = (namespace, owner.name)
        if key not in replica_set_owners:
            replica_set_owners[key] = self._read_replica_set_owners(namespace, owner.name)

        return [
            ControllerTarget(
                kind=ControllerKind.DEPLOYMENT, namespace=namespace, name=rs_owner.name
            )
            for rs_owner in replica_set_owners[key]
            if rs_owner.kind == ControllerKind.DEPLOYMENT and rs_owner.name
        ]

    def _read_replica_set_owners(self, namespace: str, name: str) -> list[OwnerReference]:
        """Read a ReplicaSet's owners; a vanished ReplicaSet has none."""
        self._log.debug("reading_replicaset_owners", name=name, namespace=namespace)
        try:
            try:
                replica_set = self._client.apps_v1.read_namespaced_replica_set(
                    name=name, namespace=namespace, _request_timeout=self._client.timeout
                )
            except Exception as e:
                self._handle_api_error(e, REPLICA_SET_KIND, name, namespace)
        except KubernetesNotFoundError:
            self._log.warning("replicaset_not_found", name=name, namespace=namespace)
            return []
        return _get_owner_references(replica_set)
