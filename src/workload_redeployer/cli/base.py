"""Shared CLI utilities: consoles, option annotations, and fatal error handling."""

from __future__ import annotations

from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from workload_redeployer.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

console = Console(soft_wrap=True, highlight=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False)


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

KubeconfigOption = Annotated[
    str,
    typer.Option(
        "--kubeconfig",
        help="Path to a kubeconfig file (empty uses the default kubeconfig or in-cluster access)",
    ),
]

NamespaceOption = Annotated[
    str,
    typer.Option(
        "--namespace",
        "-n",
        help="Kubernetes namespace to scan (empty scans all namespaces)",
    ),
]


# =============================================================================
# Error Handling
# =============================================================================


def describe_k8s_error(error: KubernetesError) -> str:
    """Render a Kubernetes error as a one-line description."""
    if isinstance(error, KubernetesConnectionError):
        return f"cannot connect to Kubernetes cluster: {error}"
    if isinstance(error, KubernetesAuthError):
        return f"authentication/authorization failed: {error}"
    if isinstance(error, KubernetesNotFoundError):
        return f"resource not found: {error}"
    if isinstance(error, KubernetesValidationError):
        return f"validation failed: {error}"
    if isinstance(error, KubernetesConflictError):
        return f"resource conflict: {error}"
    return str(error)


def fail(message: str) -> NoReturn:
    """Print a single diagnostic line to stderr and exit with code 1."""
    err_console.print(escape(f"Error {message}"))
    raise typer.Exit(1)


def handle_k8s_error(error: KubernetesError, phase: str) -> NoReturn:
    """Report a fatal Kubernetes error for ``phase`` and exit with code 1.

    Args:
        error: The Kubernetes error to report.
        phase: What was being done, e.g. "listing pods".

    Raises:
        typer.Exit: Always exits with code 1.
    """
    fail(f"{phase}: {describe_k8s_error(error)}")
