"""Kubeconfig binding and node inspection."""

from pathlib import Path

from devcluster.exceptions import KubernetesError
from devcluster.logging_config import get_logger
from devcluster.models.cluster import ClusterHandle, NodeStatus
from devcluster.providers.base import ClusterProvider
from devcluster.runner import CommandRunner

logger = get_logger(__name__)


def kubeconfig_path(name: str, kube_dir: Path) -> Path:
    """Per-cluster kubeconfig file, e.g. ~/.kube/kind-<name>.yaml."""
    return Path(kube_dir) / f"kind-{name}.yaml"


def bind_context(
    provider: ClusterProvider, runner: CommandRunner, name: str, kube_dir: Path
) -> ClusterHandle:
    """Export the cluster's kubeconfig and switch kubectl to its context.

    Providers that manage the default kubeconfig themselves (minikube) yield
    a handle without a kubeconfig path.
    """
    contents = provider.kubeconfig(name)
    kubeconfig = None
    if contents:
        kubeconfig = kubeconfig_path(name, kube_dir)
        kubeconfig.parent.mkdir(parents=True, exist_ok=True)
        kubeconfig.write_text(contents)
        logger.info(f"Wrote kubeconfig for '{name}' to {kubeconfig}")

    handle = provider.handle_for(name, kubeconfig)
    cmd = ["kubectl", "config", "use-context", handle.context]
    if kubeconfig:
        cmd += ["--kubeconfig", str(kubeconfig)]
    runner.run(cmd)
    return handle


def list_nodes(handle: ClusterHandle) -> list[NodeStatus]:
    """List the cluster's nodes through the Kubernetes API.

    Raises:
        KubernetesError: If the kubeconfig cannot be loaded or the API fails
    """
    from kubernetes import client, config
    from kubernetes.client.rest import ApiException

    config_file = str(handle.kubeconfig) if handle.kubeconfig else None
    try:
        api_client = config.new_client_from_config(config_file=config_file, context=handle.context)
    except Exception as e:
        raise KubernetesError(
            f"Failed to load kubeconfig for context '{handle.context}': {e}",
            "Make sure the cluster was created with devcluster and the kubeconfig exists",
        ) from e

    try:
        response = client.CoreV1Api(api_client).list_node()
    except ApiException as e:
        raise KubernetesError(f"Failed to list nodes: {e.reason}", str(e.body or "")) from e
    except Exception as e:
        raise KubernetesError(f"Failed to reach the Kubernetes API: {e}") from e

    nodes = []
    for node in response.items:
        labels = node.metadata.labels or {}
        if (
            "node-role.kubernetes.io/control-plane" in labels
            or "node-role.kubernetes.io/master" in labels
        ):
            role = "control-plane"
        else:
            role = "worker"

        status = "Unknown"
        for condition in node.status.conditions or []:
            if condition.type == "Ready":
                status = "Ready" if condition.status == "True" else "NotReady"

        nodes.append(
            NodeStatus(
                name=node.metadata.name,
                role=role,
                status=status,
                version=node.status.node_info.kubelet_version,
            )
        )
    return sorted(nodes, key=lambda n: n.name)
