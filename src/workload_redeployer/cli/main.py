"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from pydantic import ValidationError

from workload_redeployer.cli.base import (
    KubeconfigOption,
    NamespaceOption,
    fail,
    handle_k8s_error,
)
from workload_redeployer.integrations.kubernetes.client import KubernetesClient
from workload_redeployer.integrations.kubernetes.config import RedeployConfig
from workload_redeployer.integrations.kubernetes.exceptions import KubernetesError
from workload_redeployer.logging.config import configure_logging
from workload_redeployer.services.kubernetes.redeploy import RedeployRunner

app = typer.Typer(
    name="redeploy",
    help="Rolling-restart the Deployments and StatefulSets behind database pods.",
    add_completion=False,
)


@app.command()
def main(
    kubeconfig: KubeconfigOption = "",
    namespace: NamespaceOption = "",
) -> None:
    """Restart every controller that owns a pod whose name contains "database".

    Each restart is reported on its own line. Failed restarts do not change
    the exit code; only setup, pod listing and owner resolution failures do.

    Examples:
        redeploy
        redeploy --namespace prod
        redeploy --kubeconfig ~/.kube/staging.yaml -n prod
    """
    try:
        config = RedeployConfig.from_env(kubeconfig=kubeconfig, namespace=namespace)
    except ValidationError as e:
        fail(f"loading configuration: {e.error_count()} invalid setting(s): {_first_error(e)}")

    try:
        configure_logging(
            verbose=config.logging.verbose,
            debug=config.logging.debug,
            json_output=config.logging.json_output,
            log_file=config.logging.file,
        )
    except OSError as e:
        fail(f"configuring logging: {e}")

    try:
        client = KubernetesClient(config)
    except KubernetesError as e:
        handle_k8s_error(e, "building kubeconfig")

    with client:
        runner = RedeployRunner.from_config(client, config)
        try:
            pods = runner.matcher.list_pods(config.get_scope())
        except KubernetesError as e:
            handle_k8s_error(e, "listing pods")

        try:
            targets = runner.matcher.select_targets(pods)
        except KubernetesError as e:
            handle_k8s_error(e, "resolving pod owners")

        runner.restart_all(targets)


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}"


if __name__ == "__main__":
    app()
