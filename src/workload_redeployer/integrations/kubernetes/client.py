"""Kubernetes API client wrapper.

Wraps the official kubernetes Python client with explicit kubeconfig loading,
lazy API group initialization, retry logic, and consistent error translation.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.exceptions import HTTPError as TransportError

from workload_redeployer.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import ApiClient, AppsV1Api, CoreV1Api

    from workload_redeployer.integrations.kubernetes.config import RedeployConfig

logger = structlog.get_logger()


class KubernetesClient:
    """Kubernetes API client built from an explicit configuration object.

    Wraps the official kubernetes Python client with:
    - Kubeconfig or in-cluster configuration loading
    - Lazy API group initialization
    - Automatic retry with tenacity for transient errors
    - Consistent error translation to custom exceptions
    - Context manager support

    Example:
        ```python
        from workload_redeployer.integrations.kubernetes import KubernetesClient
        from workload_redeployer.integrations.kubernetes.config import RedeployConfig

        config = RedeployConfig.from_env()
        with KubernetesClient(config) as client:
            pods = client.core_v1.list_pod_for_all_namespaces()
            print(f"Cluster runs {len(pods.items)} pods")
        ```
    """

    def __init__(self, config: RedeployConfig) -> None:
        """Initialize Kubernetes client from redeployer config.

        Args:
            config: Complete redeployer configuration.

        Raises:
            KubernetesConnectionError: If no cluster configuration can be loaded.
        """
        self._config = config
        self._retries = config.defaults.retry_attempts
        self._current_context: str | None = None

        # Lazy-loaded API instances
        self._api_client: ApiClient | None = None
        self._core_v1: CoreV1Api | None = None
        self._apps_v1: AppsV1Api | None = None

        self._load_config()

        logger.info(
            "Kubernetes client initialized",
            context=self._current_context,
            namespace=config.get_scope() or "<all>",
        )

    def _load_config(self) -> None:
        """Load Kubernetes configuration from kubeconfig or in-cluster.

        An explicit kubeconfig path must load. Without one, the default
        kubeconfig is tried first and in-cluster configuration second.
        """
        from kubernetes import config
        from kubernetes.config import ConfigException

        kubeconfig_path = self._config.kubeconfig or None

        try:
            config.load_kube_config(config_file=kubeconfig_path)
            self._current_context = self._read_active_context(kubeconfig_path)
            logger.debug("loaded_kubeconfig", kubeconfig=kubeconfig_path)
        except (ConfigException, OSError) as e:
            if kubeconfig_path:
                raise KubernetesConnectionError(
                    message=f"Cannot load kubeconfig '{kubeconfig_path}'",
                    original_error=e,
                ) from e
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as incluster_error:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=incluster_error,
                ) from incluster_error

        self._invalidate_api_cache()

    @staticmethod
    def _read_active_context(kubeconfig_path: str | None) -> str | None:
        """Return the active context name of a loaded kubeconfig."""
        from kubernetes import config

        try:
            _, active = config.list_kube_config_contexts(config_file=kubeconfig_path)
        except Exception:
            return None
        return active.get("name") if active else None

    def _invalidate_api_cache(self) -> None:
        """Clear cached API group instances."""
        if self._api_client is not None:
            self._api_client.close()
        self._api_client = None
        self._core_v1 = None
        self._apps_v1 = None

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def api_client(self) -> ApiClient:
        """Get the shared ApiClient used by every API group."""
        if self._api_client is None:
            from kubernetes.client import ApiClient

            self._api_client = ApiClient()
        return self._api_client

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance (pods)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api(self.api_client)
        return self._core_v1

    @property
    def apps_v1(self) -> AppsV1Api:
        """Get AppsV1Api instance (deployments, statefulsets, replicasets)."""
        if self._apps_v1 is None:
            from kubernetes.client import AppsV1Api

            self._apps_v1 = AppsV1Api(self.api_client)
        return self._apps_v1

    def get_current_context(self) -> str:
        """Get the current context name, or 'in-cluster' inside a pod."""
        return self._current_context or "unknown"

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException or transport error.

        Args:
            e: The original exception.
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException

        if isinstance(e, KubernetesError):
            return e

        if isinstance(e, (TransportError, OSError)):
            return KubernetesConnectionError(
                message="Kubernetes API server unreachable",
                original_error=e,
            )

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Validation failed",
                status_code=status,
                validation_errors=_status_causes(e.body),
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Retry Decorator
    # =========================================================================

    def make_retry_decorator(self) -> Any:
        """Create a retry decorator for transient connection errors.

        Returns:
            A tenacity retry decorator configured with exponential backoff.
        """
        return retry(
            retry=retry_if_exception_type(KubernetesConnectionError),
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def timeout(self) -> int:
        """Get the configured request timeout in seconds."""
        return self._config.defaults.timeout

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release resources."""
        self._invalidate_api_cache()
        logger.debug("Kubernetes client closed")

    def __enter__(self) -> KubernetesClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()


def _status_causes(body: Any) -> dict[str, str]:
    """Map ``details.causes`` of a Status response body to ``{field: message}``."""
    try:
        status = json.loads(body)
    except (TypeError, ValueError):
        return {}
    if not isinstance(status, dict):
        return {}
    causes = (status.get("details") or {}).get("causes") or []
    return {
        cause.get("field", ""): cause.get("message", "")
        for cause in causes
        if isinstance(cause, dict)
    }
