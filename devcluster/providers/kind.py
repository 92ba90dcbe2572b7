"""kind (Kubernetes in Docker) provider."""

from pathlib import Path

from devcluster.exceptions import ClusterNotFoundError, DevClusterError
from devcluster.logging_config import get_logger
from devcluster.models.cluster import ClusterSpec
from devcluster.providers.base import ClusterProvider, ProviderResult
from devcluster.topology import KindClusterDescriptor

logger = get_logger(__name__)

# kind attaches node containers to this network instead of its default "kind"
NETWORK_ENV = "KIND_EXPERIMENTAL_DOCKER_NETWORK"


class KindProvider(ClusterProvider):
    """Creates multi-node clusters as Docker containers."""

    binary = "kind"
    exports_kubeconfig = True

    def create(
        self,
        descriptor: KindClusterDescriptor,
        spec: ClusterSpec,
        config_path: Path | None = None,
    ) -> ProviderResult:
        cmd = ["kind", "create", "cluster", "--name", spec.name]
        stdin = None
        if config_path:
            cmd += ["--config", str(config_path)]
        else:
            cmd += ["--config", "-"]
            stdin = descriptor.to_yaml()
        if spec.image:
            cmd += ["--image", spec.image]

        logger.info(f"Creating kind cluster '{spec.name}' with {len(descriptor.nodes)} nodes")
        result = self.runner.run(
            cmd, capture_output=False, input=stdin, env={NETWORK_ENV: spec.network}
        )
        return ProviderResult.from_process(result)

    def delete(self, name: str) -> ProviderResult:
        logger.info(f"Deleting kind cluster '{name}'")
        result = self.runner.run(["kind", "delete", "cluster", "--name", name])
        return ProviderResult.from_process(result)

    def exists(self, name: str) -> bool:
        result = self.runner.run(["kind", "get", "clusters"])
        clusters = [line.strip() for line in (result.stdout or "").splitlines()]
        return name in clusters

    def export_logs(self, name: str) -> Path | None:
        target = self.logs_dir / f"{name}-logs"
        try:
            self.runner.run(["kind", "export", "logs", str(target), "--name", name])
        except DevClusterError as e:
            logger.warning(f"Failed to export kind logs for '{name}': {e.message}")
            return None
        logger.info(f"Exported kind logs for '{name}' to {target}")
        return target

    def nodes(self, name: str) -> list[str]:
        """Container names of the cluster's nodes."""
        result = self.runner.run(["kind", "get", "nodes", "--name", name])
        return [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]

    def start(self, name: str) -> ProviderResult:
        return self._docker_nodes("start", name)

    def stop(self, name: str) -> ProviderResult:
        return self._docker_nodes("stop", name)

    def _docker_nodes(self, action: str, name: str) -> ProviderResult:
        nodes = self.nodes(name)
        if not nodes:
            raise ClusterNotFoundError(
                f"kind cluster '{name}' has no nodes",
                "Create it first with: devcluster create",
            )
        logger.info(f"Running docker {action} on {len(nodes)} nodes of '{name}'")
        result = self.runner.run(["docker", action, *nodes])
        return ProviderResult.from_process(result)

    def context_for(self, name: str) -> str:
        return f"kind-{name}"

    def kubeconfig(self, name: str) -> str | None:
        result = self.runner.run(["kind", "get", "kubeconfig", "--name", name])
        return result.stdout
