"""Kubernetes resource models."""

from workload_redeployer.integrations.kubernetes.models.base import OwnerReference
from workload_redeployer.integrations.kubernetes.models.workloads import (
    ControllerKind,
    ControllerTarget,
    PodRecord,
    RestartOutcome,
)

__all__ = [
    "ControllerKind",
    "ControllerTarget",
    "OwnerReference",
    "PodRecord",
    "RestartOutcome",
]
