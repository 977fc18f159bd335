"""Kubernetes services for the redeployer.

Matcher, restart trigger, and outcome reporter, composed by RedeployRunner.
"""

from workload_redeployer.services.kubernetes.matcher import WorkloadMatcher, name_contains
from workload_redeployer.services.kubernetes.redeploy import RedeployRunner
from workload_redeployer.services.kubernetes.reporter import OutcomeReporter
from workload_redeployer.services.kubernetes.restart import (
    RESTARTED_AT_ANNOTATION,
    ControllerHandler,
    DeploymentHandler,
    RestartTrigger,
    StatefulSetHandler,
)

__all__ = [
    "RESTARTED_AT_ANNOTATION",
    "ControllerHandler",
    "DeploymentHandler",
    "OutcomeReporter",
    "RedeployRunner",
    "RestartTrigger",
    "StatefulSetHandler",
    "WorkloadMatcher",
    "name_contains",
]
