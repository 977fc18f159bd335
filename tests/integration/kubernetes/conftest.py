"""Kubernetes integration test fixtures using testcontainers K3S.

Provides a real K3S (lightweight Kubernetes) cluster in Docker so the
redeploy pipeline can be exercised against a live Kubernetes API server.
"""

from __future__ import annotations

import contextlib
import subprocess
import time
import uuid
from collections.abc import Callable, Generator
from typing import TYPE_CHECKING, Any

import pytest
import yaml
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs

from workload_redeployer.integrations.kubernetes.client import KubernetesClient
from workload_redeployer.integrations.kubernetes.config import RedeployConfig

if TYPE_CHECKING:
    from pathlib import Path


# ============================================================================
# Docker Availability Check
# ============================================================================


def _docker_available() -> bool:
    """Check if Docker daemon is running."""
    try:
        result = subprocess.run(
            ["docker", "info"],
            capture_output=True,
            timeout=10,
        )
        return result.returncode == 0
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False


# Module-level markers: skip if Docker unavailable
pytestmark = [
    pytest.mark.kubernetes,
    pytest.mark.integration,
    pytest.mark.skipif(
        not _docker_available(),
        reason="Docker not available -- skipping Kubernetes integration tests",
    ),
]


# ============================================================================
# K3S Container Class
# ============================================================================

K3S_IMAGE = "rancher/k3s:v1.31.4-k3s1"
WORKLOAD_IMAGE = "busybox:1.36"


class K3SContainer(DockerContainer):  # type: ignore[misc]
    """Single-node K3S cluster with the API server on a random host port."""

    K8S_API_PORT = 6443

    def __init__(self, image: str = K3S_IMAGE) -> None:
        super().__init__(image)
        self.with_command(
            "server"
            " --disable=traefik"
            " --disable=metrics-server"
            " --tls-san=0.0.0.0"
            " --write-kubeconfig-mode=644"
        )
        self.with_exposed_ports(self.K8S_API_PORT)
        # K3S needs elevated privileges to run containerd
        self.with_kwargs(
            privileged=True,
            tmpfs={"/run": "", "/var/run": ""},
        )

    def get_kubeconfig(self) -> str:
        """Return the cluster kubeconfig rewritten to the mapped host:port."""
        exit_code, output = self.exec("cat /etc/rancher/k3s/k3s.yaml")
        if exit_code != 0:
            raise RuntimeError(f"Failed to read kubeconfig: {output}")

        config = yaml.safe_load(output.decode("utf-8"))
        host = self.get_container_host_ip()
        port = self.get_exposed_port(self.K8S_API_PORT)
        for cluster in config.get("clusters", []):
            cluster.get("cluster", {})["server"] = f"https://{host}:{port}"

        return yaml.dump(config)


# ============================================================================
# K3S Cluster Fixtures (Session-Scoped)
# ============================================================================


@pytest.fixture(scope="session")
def k3s_container() -> Generator[K3SContainer]:
    """Session-scoped K3S container shared by every integration module."""
    if not _docker_available():
        pytest.skip("Docker not available -- skipping Kubernetes integration tests")

    container = K3SContainer()

    with container:
        wait_for_logs(container, "Node controller sync successful", timeout=120)
        # Give a short buffer for API server to stabilize
        time.sleep(2)
        yield container


@pytest.fixture(scope="session")
def k3s_kubeconfig_path(
    k3s_container: K3SContainer,
    tmp_path_factory: pytest.TempPathFactory,
) -> Path:
    """Write K3S kubeconfig to a temp file for KubernetesClient."""
    kubeconfig_path = tmp_path_factory.mktemp("k3s") / "kubeconfig.yaml"
    kubeconfig_path.write_text(k3s_container.get_kubeconfig())
    return kubeconfig_path


@pytest.fixture(scope="session")
def redeploy_config(k3s_kubeconfig_path: Path) -> RedeployConfig:
    """Configuration pointing at the K3S cluster."""
    return RedeployConfig(kubeconfig=str(k3s_kubeconfig_path))


@pytest.fixture(scope="session")
def k8s_client(redeploy_config: RedeployConfig) -> Generator[KubernetesClient]:
    """Session-scoped KubernetesClient connected to the K3S cluster."""
    client = KubernetesClient(redeploy_config)
    yield client
    client.close()


# ============================================================================
# Namespace Isolation Fixtures
# ============================================================================


@pytest.fixture
def test_namespace(k8s_client: KubernetesClient) -> Generator[str]:
    """Unique namespace per test; deleting it cascades to its workloads."""
    ns_name = f"inttest-{uuid.uuid4().hex[:8]}"
    k8s_client.core_v1.create_namespace(
        body={
            "apiVersion": "v1",
            "kind": "Namespace",
            "metadata": {"name": ns_name},
        }
    )

    for _ in range(30):
        ns = k8s_client.core_v1.read_namespace(name=ns_name)
        if ns.status.phase == "Active":
            break
        time.sleep(0.5)

    yield ns_name

    with contextlib.suppress(Exception):
        k8s_client.core_v1.delete_namespace(name=ns_name)


# ============================================================================
# Workload Helpers
# ============================================================================


def _pod_template(app: str) -> dict[str, Any]:
    return {
        "metadata": {"labels": {"app": app}},
        "spec": {
            "terminationGracePeriodSeconds": 1,
            "containers": [
                {"name": app, "image": WORKLOAD_IMAGE, "command": ["sleep", "3600"]}
            ],
        },
    }


@pytest.fixture
def create_stateful_set(k8s_client: KubernetesClient) -> Callable[..., Any]:
    """Create a single-replica StatefulSet."""

    def _create(name: str, namespace: str) -> Any:
        return k8s_client.apps_v1.create_namespaced_stateful_set(
            namespace=namespace,
            body={
                "apiVersion": "apps/v1",
                "kind": "StatefulSet",
                "metadata": {"name": name},
                "spec": {
                    "replicas": 1,
                    "serviceName": name,
                    "selector": {"matchLabels": {"app": name}},
                    "template": _pod_template(name),
                },
            },
        )

    return _create


@pytest.fixture
def create_deployment(k8s_client: KubernetesClient) -> Callable[..., Any]:
    """Create a single-replica Deployment."""

    def _create(name: str, namespace: str) -> Any:
        return k8s_client.apps_v1.create_namespaced_deployment(
            namespace=namespace,
            body={
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "metadata": {"name": name},
                "spec": {
                    "replicas": 1,
                    "selector": {"matchLabels": {"app": name}},
                    "template": _pod_template(name),
                },
            },
        )

    return _create


@pytest.fixture
def wait_for_pods(k8s_client: KubernetesClient) -> Callable[..., Any]:
    """Wait until pods with the given label exist (they need not be Ready)."""

    def _wait(namespace: str, app: str, timeout: int = 120) -> list[Any]:
        start = time.time()
        while time.time() - start < timeout:
            pods = k8s_client.core_v1.list_namespaced_pod(
                namespace=namespace,
                label_selector=f"app={app}",
            )
            if pods.items:
                return list(pods.items)
            time.sleep(1)
        raise TimeoutError(f"No pods for app '{app}' in '{namespace}' within {timeout}s")

    return _wait
