"""minikube provider."""

import json
from pathlib import Path

from devcluster.exceptions import DevClusterError
from devcluster.logging_config import get_logger
from devcluster.models.cluster import ClusterSpec
from devcluster.providers.base import ClusterProvider, ProviderResult
from devcluster.runner import CommandRunner
from devcluster.topology import KindClusterDescriptor

logger = get_logger(__name__)


class MinikubeProvider(ClusterProvider):
    """Creates clusters with minikube, one profile per cluster name."""

    binary = "minikube"

    def __init__(
        self,
        runner: CommandRunner,
        logs_dir: Path = Path("."),
        driver: str = "docker",
        cpus: int = 4,
    ):
        super().__init__(runner, logs_dir)
        self.driver = driver
        self.cpus = cpus

    def create(
        self,
        descriptor: KindClusterDescriptor,
        spec: ClusterSpec,
        config_path: Path | None = None,
    ) -> ProviderResult:
        # minikube counts the control plane in --nodes
        cmd = [
            "minikube",
            "start",
            "-p",
            spec.name,
            f"--driver={self.driver}",
            "--nodes",
            str(len(descriptor.nodes)),
            "--cpus",
            str(self.cpus),
        ]
        if spec.kubernetes_version:
            cmd.append(f"--kubernetes-version={spec.kubernetes_version}")

        logger.info(f"Starting minikube profile '{spec.name}' with {len(descriptor.nodes)} nodes")
        result = self.runner.run(cmd, capture_output=False)
        return ProviderResult.from_process(result)

    def delete(self, name: str) -> ProviderResult:
        logger.info(f"Deleting minikube profile '{name}'")
        return ProviderResult.from_process(self.runner.run(["minikube", "delete", "-p", name]))

    def exists(self, name: str) -> bool:
        # minikube exits non-zero when no profile exists at all
        result = self.runner.run(["minikube", "profile", "list", "-o", "json"], check=False)
        if result.returncode != 0:
            return False
        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse minikube profile list: {e}")
            return False
        profiles = data.get("valid") or []
        return any(p.get("Name") == name for p in profiles)

    def export_logs(self, name: str) -> Path | None:
        target = self.logs_dir / f"{name}-minikube.log"
        try:
            self.runner.run(["minikube", "logs", "-p", name, "--file", str(target)])
        except DevClusterError as e:
            logger.warning(f"Failed to export minikube logs for '{name}': {e.message}")
            return None
        logger.info(f"Exported minikube logs for '{name}' to {target}")
        return target

    def start(self, name: str) -> ProviderResult:
        return ProviderResult.from_process(
            self.runner.run(["minikube", "start", "-p", name], capture_output=False)
        )

    def stop(self, name: str) -> ProviderResult:
        return ProviderResult.from_process(self.runner.run(["minikube", "stop", "-p", name]))

    def context_for(self, name: str) -> str:
        return name

    def enable_addon(self, name: str, addon: str) -> ProviderResult:
        logger.info(f"Enabling minikube addon '{addon}' on '{name}'")
        return ProviderResult.from_process(
            self.runner.run(["minikube", "addons", "enable", addon, "-p", name])
        )
