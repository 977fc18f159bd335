"""Kubernetes integration - API client and configuration models."""

from workload_redeployer.integrations.kubernetes.client import KubernetesClient
from workload_redeployer.integrations.kubernetes.config import (
    KubernetesDefaultsConfig,
    LoggingConfig,
    MatchConfig,
    RedeployConfig,
    RestartConfig,
)
from workload_redeployer.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

__all__ = [
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesDefaultsConfig",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesValidationError",
    "LoggingConfig",
    "MatchConfig",
    "RedeployConfig",
    "RestartConfig",
]
