"""Restart trigger for Deployments and StatefulSets.

A rolling restart is requested the same way ``kubectl rollout restart`` does
it: the pod template gets a ``kubectl.kubernetes.io/restartedAt`` annotation
holding the current time, and the controller recreates its pods because the
template changed. The full object is fetched, stamped, and replaced, so every
other field is written back exactly as it was read.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, ClassVar

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from workload_redeployer.integrations.kubernetes.exceptions import (
    KubernetesConflictError,
    KubernetesError,
)
from workload_redeployer.integrations.kubernetes.models.workloads import (
    ControllerKind,
    ControllerTarget,
    RestartOutcome,
)
from workload_redeployer.services.kubernetes.base import K8sBaseManager

if TYPE_CHECKING:
    from workload_redeployer.integrations.kubernetes.client import KubernetesClient

RESTARTED_AT_ANNOTATION = "kubectl.kubernetes.io/restartedAt"


class ControllerHandler(ABC):
    """Fetch and write operations for one controller kind."""

    kind: ClassVar[ControllerKind]

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client

    @abstractmethod
    def fetch(self, target: ControllerTarget) -> Any:
        """Read the controller's full object."""

    @abstractmethod
    def write(self, target: ControllerTarget, body: Any) -> Any:
        """Replace the controller with ``body``."""

    def stamp(self, body: Any, restarted_at: str) -> None:
        """Set the restart marker on the pod template, creating metadata as needed."""
        from kubernetes.client import V1ObjectMeta

        template = body.spec.template
        if template.metadata is None:
            template.metadata = V1ObjectMeta()
        if template.metadata.annotations is None:
            template.metadata.annotations = {}
        template.metadata.annotations[RESTARTED_AT_ANNOTATION] = restarted_at


class DeploymentHandler(ControllerHandler):
    kind = ControllerKind.DEPLOYMENT

    def fetch(self, target: ControllerTarget) -> Any:
        return self._client.apps_v1.read_namespaced_deployment(
            name=target.name, namespace=target.namespace, _request_timeout=self._client.timeout
        )

    def write(self, target: ControllerTarget, body: Any) -> Any:
        return self._client.apps_v1.replace_namespaced_deployment(
            name=target.name,
            namespace=target.namespace,
            body=body,
            _request_timeout=self._client.timeout,
        )


class StatefulSetHandler(ControllerHandler):
    kind = ControllerKind.STATEFUL_SET

    def fetch(self, target: ControllerTarget) -> Any:
        return self._client.apps_v1.read_namespaced_stateful_set(
            name=target.name, namespace=target.namespace, _request_timeout=self._client.timeout
        )

    def write(self, target: ControllerTarget, body: Any) -> Any:
        return self._client.apps_v1.replace_namespaced_stateful_set(
            name=target.name,
            namespace=target.namespace,
            body=body,
            _request_timeout=self._client.timeout,
        )


HANDLER_TYPES: tuple[type[ControllerHandler], ...] = (DeploymentHandler, StatefulSetHandler)


class RestartTrigger(K8sBaseManager):
    """Trigger rolling restarts one controller at a time.

    Errors never escape :meth:`restart`; each one becomes a failed
    :class:`RestartOutcome`. Writes are unconditional by default (last
    writer wins). With ``conflict_retries`` set, the fetched
    ``resourceVersion`` is kept as a precondition and a 409 causes a
    re-fetch and another attempt.
    """

    _entity_name = "restart"

    def __init__(
        self,
        client: KubernetesClient,
        *,
        conflict_retries: int = 0,
        handlers: dict[ControllerKind, ControllerHandler] | None = None,
    ) -> None:
        """Initialize the restart trigger.

        Args:
            client: Kubernetes API client instance.
            conflict_retries: Extra attempts after a write conflict; 0 writes
                unconditionally.
            handlers: Per-kind handlers; defaults to Deployment and StatefulSet.
        """
        super().__init__(client)
        self._conflict_retries = conflict_retries
        self._handlers = handlers or {
            handler_type.kind: handler_type(client) for handler_type in HANDLER_TYPES
        }
        self._stamp_lock = threading.Lock()
        self._last_stamp: datetime | None = None

    def restart(self, target: ControllerTarget) -> RestartOutcome:
        """Restart one controller.

        Args:
            target: Controller to restart.

        Returns:
            Success with the written marker value, or failure with its cause.
        """
        log = self._log.bind(kind=str(target.kind), name=target.name, namespace=target.namespace)
        log.info("restarting_controller")

        handler = self._handlers.get(target.kind)
        if handler is None:
            error = KubernetesError(
                message=f"Restarting {target.kind} resources is not supported",
                resource_type=str(target.kind),
                resource_name=target.name,
                namespace=target.namespace,
            )
            log.warning("restart_failed", error=str(error))
            return RestartOutcome.failed(target, error)

        try:
            if self._conflict_retries:
                retrying = Retrying(
                    retry=retry_if_exception_type(KubernetesConflictError),
                    stop=stop_after_attempt(self._conflict_retries + 1),
                    wait=wait_exponential(multiplier=0.1, max=2),
                    reraise=True,
                )
                restarted_at = retrying(self._apply, handler, target, optimistic=True)
            else:
                restarted_at = self._apply(handler, target, optimistic=False)
        except KubernetesError as e:
            log.warning("restart_failed", error=str(e), error_type=type(e).__name__)
            return RestartOutcome.failed(target, e)

        log.info("restarted_controller", restarted_at=restarted_at)
        return RestartOutcome.succeeded(target, restarted_at)

    def _apply(
        self, handler: ControllerHandler, target: ControllerTarget, *, optimistic: bool
    ) -> str:
        """Fetch, stamp, and write back; returns the marker value."""
        kind = str(target.kind)
        try:
            body = handler.fetch(target)
        except Exception as e:
            self._handle_api_error(e, kind, target.name, target.namespace)

        restarted_at = self._next_timestamp()
        handler.stamp(body, restarted_at)
        if not optimistic:
            body.metadata.resource_version = None

        try:
            handler.write(target, body)
        except Exception as e:
            self._handle_api_error(e, kind, target.name, target.namespace)
        return restarted_at

    def _next_timestamp(self) -> str:
        """Current UTC time, strictly later than any value issued before."""
        with self._stamp_lock:
            now = datetime.now(UTC)
            if self._last_stamp is not None and now <= self._last_stamp:
                now = self._last_stamp + timedelta(microseconds=1)
            self._last_stamp = now
        return now.isoformat()
