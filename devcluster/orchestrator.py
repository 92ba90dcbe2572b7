"""Cluster lifecycle orchestration.

Every operation takes the cluster name as its resource key. Steps run one
at a time and the first failing step aborts the sequence; nothing is rolled
back. Two orchestrations against the same cluster name must not run
concurrently, and an interrupted ``create`` can leave a partial cluster and
network behind (``delete`` cleans both up).
"""

import time
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, Field

from devcluster.addons import AddonInstaller, metallb_pool_range
from devcluster.config import Settings
from devcluster.exceptions import (
    ClusterNotFoundError,
    ClusterUnreachableError,
    ProviderCallError,
    ReadinessTimeoutError,
    ToolNotFoundError,
)
from devcluster.kube import bind_context, kubeconfig_path, list_nodes
from devcluster.logging_config import get_logger
from devcluster.models.addon import AddonId, InstallResult
from devcluster.models.cluster import ClusterHandle, ClusterSpec, NodeStatus
from devcluster.providers.base import ClusterProvider
from devcluster.providers.kind import KindProvider
from devcluster.providers.minikube import MinikubeProvider
from devcluster.providers.network import DockerNetwork
from devcluster.readiness import Readiness, ReadinessPoller
from devcluster.runner import CommandRunner
from devcluster.topology import descriptor_path, render, write_descriptor

logger = get_logger(__name__)


class ProvisionReport(BaseModel):
    """What a successful create produced."""

    handle: ClusterHandle
    nodes: list[NodeStatus] = Field(default_factory=list)
    addons: list[InstallResult] = Field(default_factory=list)


class DeleteReport(BaseModel):
    """What delete found and removed."""

    name: str
    cluster_deleted: bool = False
    network_removed: bool = False
    files_removed: list[Path] = Field(default_factory=list)


class LifecycleOrchestrator:
    """Sequences provider, poller and installer calls into lifecycle commands.

    Args:
        settings: Loaded configuration
        provider: External cluster tool
        runner: Command runner shared by every step
        network: Docker network manager; None when the provider owns networking
        persist_descriptor: Write the rendered topology next to the state dir
        sleep: Blocking wait used for the settle period and between probes
        node_lister: Lists nodes once the kube-context is bound
    """

    def __init__(
        self,
        settings: Settings,
        provider: ClusterProvider,
        runner: CommandRunner,
        network: DockerNetwork | None = None,
        persist_descriptor: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        node_lister: Callable[[ClusterHandle], list[NodeStatus]] = list_nodes,
    ):
        self.settings = settings
        self.provider = provider
        self.runner = runner
        self.network = network
        self.persist_descriptor = persist_descriptor
        self.sleep = sleep
        self.node_lister = node_lister
        self.poller = ReadinessPoller(runner, sleep)

    # ------------------------------------------------------------ create
    def create(
        self, spec: ClusterSpec | None = None, install_addons: bool = False
    ) -> ProvisionReport:
        """Provision a cluster and gate on its API becoming reachable.

        Raises:
            InvalidSpecError: Before any external call, if the spec is invalid
            ProviderCallError: If any external step fails
            ReadinessTimeoutError: If the API never answered; logs are exported first
        """
        spec = spec or self.settings.cluster
        descriptor = render(spec)
        if install_addons:
            self.check_default_addons(spec)

        if self.network is not None:
            self.network.ensure(spec.network, spec.subnet)

        config_path = None
        if self.persist_descriptor:
            config_path = write_descriptor(
                descriptor, descriptor_path(spec.name, self.settings.state_dir)
            )

        self.provider.create(descriptor, spec, config_path)

        if self.settings.settle_seconds:
            settle = self.settings.settle_seconds
            logger.info(f"Waiting {settle:g}s for '{spec.name}' to initialize")
            self.sleep(settle)

        probe_handle = self.provider.handle_for(spec.name)
        if self.poller.await_ready(probe_handle, self.settings.retry) is Readiness.TIMED_OUT:
            logs = self.provider.export_logs(spec.name)
            raise ReadinessTimeoutError(
                f"Cluster '{spec.name}' failed to start after "
                f"{self.settings.retry.max_attempts} attempts",
                f"Diagnostic logs exported to {logs}" if logs else "Log export failed",
            )

        handle = bind_context(self.provider, self.runner, spec.name, self.settings.kube_dir)
        nodes = self.node_lister(handle)
        logger.info(f"Cluster '{spec.name}' has {len(nodes)} nodes")

        report = ProvisionReport(handle=handle, nodes=nodes)
        if install_addons:
            report.addons = self.install_default_addons(handle, spec)
        return report

    def check_default_addons(self, spec: ClusterSpec) -> None:
        """Reject addon settings that cannot work with spec before provisioning.

        Raises:
            InvalidSpecError: If the MetalLB pool cannot be derived from the subnet
        """
        metallb_pool_range(spec.subnet, self.settings.addons.metallb_pool)

    def install_default_addons(
        self, handle: ClusterHandle, spec: ClusterSpec
    ) -> list[InstallResult]:
        return AddonInstaller(self.runner, self.settings.addons, spec.subnet).install_all(handle)

    # ------------------------------------------------------------ delete
    def delete(self, name: str) -> DeleteReport:
        """Destroy the cluster, its network and local artifacts.

        A cluster the provider does not know is skipped; network and file
        cleanup still run. Addons are not torn down one by one.
        """
        report = DeleteReport(name=name)

        if self.provider.exists(name):
            self.provider.delete(name)
            report.cluster_deleted = True
        else:
            logger.info(f"Cluster '{name}' not found, skipping cluster deletion")

        if self.network is not None:
            report.network_removed = self.network.remove(self._network_for(name))

        for path in self._artifacts(name):
            if path.exists():
                path.unlink()
                report.files_removed.append(path)
                logger.info(f"Removed {path}")
        return report

    def _artifacts(self, name: str) -> list[Path]:
        """Local files this orchestrator writes for a cluster."""
        paths = []
        if self.provider.exports_kubeconfig:
            paths.append(kubeconfig_path(name, self.settings.kube_dir))
        if self.persist_descriptor:
            paths.append(descriptor_path(name, self.settings.state_dir))
        return paths

    def _network_for(self, name: str) -> str:
        if name == self.settings.cluster.name:
            return self.settings.cluster.network
        return f"{name}-net"

    # ------------------------------------------------------- start / stop
    def start(self, name: str) -> None:
        self.provider.start(name)

    def stop(self, name: str) -> None:
        self.provider.stop(name)

    # ------------------------------------------------------------ addons
    def lookup(self, name: str) -> ClusterHandle:
        """Find an existing cluster by name.

        Raises:
            ClusterNotFoundError: If the provider does not know the cluster
        """
        if not self.provider.exists(name):
            raise ClusterNotFoundError(
                f"Cluster '{name}' not found", "Create it first with: devcluster create"
            )
        kubeconfig = None
        if self.provider.exports_kubeconfig:
            kubeconfig = kubeconfig_path(name, self.settings.kube_dir)
        return self.provider.handle_for(
            name, kubeconfig if kubeconfig and kubeconfig.exists() else None
        )

    def install_addons(self, name: str, addon: str | None = None) -> list[InstallResult]:
        """Install one addon, or all of them in fixed order when addon is None.

        Raises:
            UnknownAddonError: Before any external call, for unsupported names
            ClusterNotFoundError: If the cluster does not exist
            ClusterUnreachableError: If the cluster API does not answer
            ProviderCallError: If a single named addon fails to install
        """
        selected = AddonId.parse(addon) if addon else None

        handle = self.lookup(name)
        if not self.poller.probe(handle):
            raise ClusterUnreachableError(
                f"Cluster '{name}' is not reachable",
                f"Check it is running: kubectl cluster-info --context {handle.context}",
            )

        subnet = self.settings.cluster.subnet
        installer = AddonInstaller(self.runner, self.settings.addons, subnet)
        if selected is not None:
            return [installer.install(selected, handle)]
        return installer.install_all(handle)

    def status(self, name: str) -> list[NodeStatus]:
        return self.node_lister(self.lookup(name))


class MinikubeOrchestrator(LifecycleOrchestrator):
    """Lifecycle for minikube profiles; addons are minikube's own."""

    provider: MinikubeProvider

    def check_default_addons(self, spec: ClusterSpec) -> None:
        """minikube addons take no cluster-derived settings."""

    def install_default_addons(
        self, handle: ClusterHandle, spec: ClusterSpec
    ) -> list[InstallResult]:
        results = []
        for addon in self.settings.minikube.addons:
            try:
                self.provider.enable_addon(handle.name, addon)
            except ToolNotFoundError:
                raise
            except ProviderCallError as e:
                logger.error(f"minikube addon '{addon}' failed: {e.message}")
                results.append(
                    InstallResult(addon=addon, success=False, message=e.format_message())
                )
                continue
            results.append(InstallResult(addon=addon, success=True, message="enabled"))
        return results


def build_kind_orchestrator(
    settings: Settings, runner: CommandRunner | None = None
) -> LifecycleOrchestrator:
    runner = runner or CommandRunner()
    return LifecycleOrchestrator(
        settings,
        KindProvider(runner, logs_dir=settings.state_dir),
        runner,
        network=DockerNetwork(runner),
        persist_descriptor=True,
    )


def build_minikube_orchestrator(
    settings: Settings, runner: CommandRunner | None = None
) -> MinikubeOrchestrator:
    runner = runner or CommandRunner()
    provider = MinikubeProvider(
        runner,
        logs_dir=settings.state_dir,
        driver=settings.minikube.driver,
        cpus=settings.minikube.cpus,
    )
    return MinikubeOrchestrator(settings, provider, runner)
