"""Interface for external cluster providers."""

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel

from devcluster.models.cluster import ClusterHandle, ClusterSpec
from devcluster.runner import CommandRunner
from devcluster.topology import KindClusterDescriptor


class ProviderResult(BaseModel):
    """Exit status and output of a provider call."""

    command: list[str]
    returncode: int
    output: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @classmethod
    def from_process(cls, process: subprocess.CompletedProcess) -> "ProviderResult":
        return cls(
            command=[str(c) for c in process.args],
            returncode=process.returncode,
            output=process.stdout or "",
        )


class ClusterProvider(ABC):
    """A command-line tool that creates and deletes local clusters.

    Providers are black boxes: the orchestrator only trusts their exit
    status. Calls are synchronous and may block for as long as the tool
    takes to pull images and boot nodes.
    """

    binary: str
    # True when kubeconfig() returns contents that are written to kube_dir
    exports_kubeconfig = False

    def __init__(self, runner: CommandRunner, logs_dir: Path = Path(".")):
        self.runner = runner
        self.logs_dir = Path(logs_dir)

    @abstractmethod
    def create(
        self,
        descriptor: KindClusterDescriptor,
        spec: ClusterSpec,
        config_path: Path | None = None,
    ) -> ProviderResult:
        """Create the cluster described by descriptor."""

    @abstractmethod
    def delete(self, name: str) -> ProviderResult:
        """Delete the named cluster."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Return True if the provider knows the named cluster."""

    @abstractmethod
    def export_logs(self, name: str) -> Path | None:
        """Dump diagnostics for a failed cluster. Never raises."""

    @abstractmethod
    def start(self, name: str) -> ProviderResult:
        """Start a stopped cluster."""

    @abstractmethod
    def stop(self, name: str) -> ProviderResult:
        """Stop a running cluster without deleting it."""

    @abstractmethod
    def context_for(self, name: str) -> str:
        """kubectl context name the provider assigns to the cluster."""

    def kubeconfig(self, name: str) -> str | None:
        """Kubeconfig contents for the cluster, if the provider exports one."""
        return None

    def handle_for(self, name: str, kubeconfig: Path | None = None) -> ClusterHandle:
        return ClusterHandle(name=name, context=self.context_for(name), kubeconfig=kubeconfig)
