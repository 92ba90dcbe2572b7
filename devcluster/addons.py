"""Addon installation for kind clusters.

Each ``AddonId`` maps to one handler registered with ``@register``. Handlers
apply remote manifests with kubectl and must be safe to run again against a
cluster that already has the addon.
"""

import ipaddress
import json
import subprocess
from collections.abc import Callable

from devcluster.config import AddonSettings
from devcluster.exceptions import InvalidSpecError, ProviderCallError, ToolNotFoundError
from devcluster.logging_config import get_logger
from devcluster.models.addon import AddonId, AddonRequest, InstallResult
from devcluster.models.cluster import ClusterHandle
from devcluster.runner import CommandRunner
from devcluster.yaml_io import dump_documents

logger = get_logger(__name__)

METALLB_NAMESPACE = "metallb-system"
METALLB_POOL_OFFSETS = (100, 200)
INSECURE_TLS_ARG = "--kubelet-insecure-tls"

AddonHandler = Callable[["AddonInstaller", ClusterHandle], str]

_HANDLERS: dict[AddonId, AddonHandler] = {}


def register(addon: AddonId) -> Callable[[AddonHandler], AddonHandler]:
    """Register the installer function for an addon."""

    def decorator(func: AddonHandler) -> AddonHandler:
        _HANDLERS[addon] = func
        return func

    return decorator


def metallb_pool_range(subnet: str, override: str | None = None) -> str:
    """Address range handed to MetalLB.

    Defaults to host offsets .100 through .200 of the cluster subnet.

    Raises:
        InvalidSpecError: If the subnet is too small for the default range
    """
    if override:
        return override
    network = ipaddress.IPv4Network(subnet)
    first, last = METALLB_POOL_OFFSETS
    if network.num_addresses <= last + 1:
        raise InvalidSpecError(
            f"Subnet {subnet} is too small for the default MetalLB pool",
            "Use a /24 or larger subnet, or set addons.metallb_pool explicitly",
        )
    return f"{network.network_address + first}-{network.network_address + last}"


def metallb_manifests(pool_range: str) -> list[dict]:
    """IPAddressPool and L2Advertisement for layer 2 mode."""
    return [
        {
            "apiVersion": "metallb.io/v1beta1",
            "kind": "IPAddressPool",
            "metadata": {"name": "default-address-pool", "namespace": METALLB_NAMESPACE},
            "spec": {"addresses": [pool_range]},
        },
        {
            "apiVersion": "metallb.io/v1beta1",
            "kind": "L2Advertisement",
            "metadata": {"name": "default", "namespace": METALLB_NAMESPACE},
            "spec": {},
        },
    ]


class AddonInstaller:
    """Applies addons against a running cluster, one kubectl call at a time."""

    def __init__(self, runner: CommandRunner, settings: AddonSettings, subnet: str):
        self.runner = runner
        self.settings = settings
        self.subnet = subnet

    def kubectl(
        self, handle: ClusterHandle, *args: str, input: str | None = None, check: bool = True
    ) -> subprocess.CompletedProcess:
        return self.runner.run(
            ["kubectl", *handle.kubectl_flags(), *args], input=input, check=check
        )

    def install(self, addon: AddonId | str, handle: ClusterHandle) -> InstallResult:
        """Install a single addon.

        Unknown names are rejected before anything is run.

        Raises:
            UnknownAddonError: If the addon name is not supported
            ProviderCallError: If a kubectl call fails
        """
        request = AddonRequest(
            addon=addon if isinstance(addon, AddonId) else AddonId.parse(addon), handle=handle
        )
        handler = _HANDLERS[request.addon]
        logger.info(f"Installing addon '{request.addon.value}' on '{handle.name}'")
        message = handler(self, request.handle)
        return InstallResult(addon=request.addon.value, success=True, message=message)

    def install_all(self, handle: ClusterHandle) -> list[InstallResult]:
        """Install every addon in fixed order.

        A failing kubectl call or unusable addon setting is recorded and the
        remaining addons are still attempted. A missing kubectl binary aborts
        the sequence.
        """
        results = []
        for addon in AddonId.ordered():
            try:
                results.append(self.install(addon, handle))
            except ToolNotFoundError:
                raise
            except (ProviderCallError, InvalidSpecError) as e:
                logger.error(f"Addon '{addon.value}' failed: {e.message}")
                results.append(
                    InstallResult(addon=addon.value, success=False, message=e.format_message())
                )
        return results


@register(AddonId.MINIO)
def install_minio(installer: AddonInstaller, handle: ClusterHandle) -> str:
    ref = installer.settings.minio_ref
    installer.kubectl(handle, "apply", "-k", f"github.com/minio/operator?ref={ref}")
    return f"MinIO operator {ref} applied"


@register(AddonId.METALLB)
def install_metallb(installer: AddonInstaller, handle: ClusterHandle) -> str:
    version = installer.settings.metallb_version
    pool_range = metallb_pool_range(installer.subnet, installer.settings.metallb_pool)
    url = (
        f"https://raw.githubusercontent.com/metallb/metallb/{version}"
        "/config/manifests/metallb-native.yaml"
    )
    installer.kubectl(handle, "apply", "-f", url)
    # The pool is validated by the controller's webhook, so it has to be up first.
    installer.kubectl(
        handle,
        "wait",
        "-n",
        METALLB_NAMESPACE,
        "--for=condition=Available",
        "deployment/controller",
        "--timeout=120s",
    )
    manifests = dump_documents(*metallb_manifests(pool_range))
    installer.kubectl(handle, "apply", "-f", "-", input=manifests)
    return f"MetalLB {version} applied with pool {pool_range}"


@register(AddonId.METRICS_SERVER)
def install_metrics_server(installer: AddonInstaller, handle: ClusterHandle) -> str:
    installer.kubectl(handle, "apply", "-f", installer.settings.metrics_server_url)

    current = installer.kubectl(
        handle,
        "get",
        "deployment",
        "metrics-server",
        "-n",
        "kube-system",
        "-o",
        "jsonpath={.spec.template.spec.containers[0].args}",
    )
    if INSECURE_TLS_ARG in (current.stdout or ""):
        return "Metrics Server applied (kubelet TLS already relaxed)"

    patch = [
        {"op": "add", "path": "/spec/template/spec/containers/0/args/-", "value": INSECURE_TLS_ARG}
    ]
    installer.kubectl(
        handle,
        "patch",
        "deployment",
        "metrics-server",
        "-n",
        "kube-system",
        "--type=json",
        f"-p={json.dumps(patch)}",
    )
    return "Metrics Server applied with --kubelet-insecure-tls"
