"""Shared pytest fixtures for workload_redeployer tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog
import typer
from kubernetes.client import (
    V1Container,
    V1Deployment,
    V1DeploymentSpec,
    V1LabelSelector,
    V1ObjectMeta,
    V1OwnerReference,
    V1Pod,
    V1PodSpec,
    V1PodTemplateSpec,
    V1StatefulSet,
    V1StatefulSetSpec,
)
from typer.testing import CliRunner

from workload_redeployer.cli.main import app


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    # Clear any REDEPLOY_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("REDEPLOY_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep rotating log files out of the real home directory."""
    log_dir = tmp_path / "logs"
    monkeypatch.setattr("workload_redeployer.logging.config.LOG_DIR", log_dir)
    return log_dir


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None]:
    """Undo handlers and structlog configuration added during a test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    yield
    for handler in root.handlers:
        if handler not in original_handlers:
            handler.close()
    root.handlers = original_handlers
    root.setLevel(original_level)
    structlog.reset_defaults()


# ============================================================================
# Kubernetes Object Factories
# ============================================================================


@pytest.fixture
def make_pod() -> Callable[..., V1Pod]:
    """Build a V1Pod owned by the given ``(kind, name)`` pairs."""

    def _make(
        name: str, namespace: str = "prod", owners: list[tuple[str, str]] | None = None
    ) -> V1Pod:
        owner_refs = [
            V1OwnerReference(
                api_version="apps/v1",
                kind=kind,
                name=owner_name,
                uid=f"uid-{kind.lower()}-{owner_name}",
            )
            for kind, owner_name in owners or []
        ]
        return V1Pod(
            metadata=V1ObjectMeta(
                name=name,
                namespace=namespace,
                owner_references=owner_refs or None,
            )
        )

    return _make


def _template(app_label: str, annotations: dict[str, str] | None = None) -> V1PodTemplateSpec:
    return V1PodTemplateSpec(
        metadata=V1ObjectMeta(labels={"app": app_label}, annotations=annotations),
        spec=V1PodSpec(
            containers=[V1Container(name=app_label, image="postgres:16", args=["-c", "fsync=on"])]
        ),
    )


@pytest.fixture
def make_deployment() -> Callable[..., V1Deployment]:
    """Build a V1Deployment as returned by the API server."""

    def _make(
        name: str = "web",
        namespace: str = "prod",
        annotations: dict[str, str] | None = None,
    ) -> V1Deployment:
        return V1Deployment(
            api_version="apps/v1",
            kind="Deployment",
            metadata=V1ObjectMeta(
                name=name,
                namespace=namespace,
                resource_version="1001",
                labels={"tier": "backend"},
            ),
            spec=V1DeploymentSpec(
                replicas=3,
                selector=V1LabelSelector(match_labels={"app": name}),
                template=_template(name, annotations),
            ),
        )

    return _make


@pytest.fixture
def make_stateful_set() -> Callable[..., V1StatefulSet]:
    """Build a V1StatefulSet as returned by the API server."""

    def _make(
        name: str = "database",
        namespace: str = "prod",
        annotations: dict[str, str] | None = None,
    ) -> V1StatefulSet:
        return V1StatefulSet(
            api_version="apps/v1",
            kind="StatefulSet",
            metadata=V1ObjectMeta(name=name, namespace=namespace, resource_version="2002"),
            spec=V1StatefulSetSpec(
                replicas=2,
                service_name=name,
                selector=V1LabelSelector(match_labels={"app": name}),
                template=_template(name, annotations),
            ),
        )

    return _make
