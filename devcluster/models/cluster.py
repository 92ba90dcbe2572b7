"""Data models for cluster configuration and identity."""

import ipaddress
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CLUSTER_NAME = "zalpy-kind"
DEFAULT_SUBNET = "172.23.0.0/24"
DEFAULT_KUBERNETES_VERSION = "v1.29.2"
DEFAULT_WORKER_COUNT = 2
DEFAULT_API_PORT = 6443

KIND_NODE_IMAGE_REPO = "kindest/node"

_NAME_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_VERSION_PATTERN = re.compile(r"^v?\d+\.\d+\.\d+$")
# Release channels minikube resolves itself; kind falls back to its default node image
VERSION_CHANNELS = ("stable", "latest")


class ClusterSpec(BaseModel):
    """Everything needed to provision one local cluster.

    ``worker_count`` is not bounded here; the topology renderer rejects
    negative counts.
    """

    model_config = ConfigDict(frozen=True)

    name: str = DEFAULT_CLUSTER_NAME
    network_name: str | None = None
    subnet: str = DEFAULT_SUBNET
    kubernetes_version: str | None = DEFAULT_KUBERNETES_VERSION
    node_image: str | None = None
    worker_count: int = DEFAULT_WORKER_COUNT
    api_port: int = Field(default=DEFAULT_API_PORT, ge=1, le=65535)
    api_server_address: str = "0.0.0.0"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the cluster name is a DNS label."""
        if not v:
            raise ValueError("name cannot be empty")
        if len(v) > 63:
            raise ValueError("name cannot exceed 63 characters")
        if not _NAME_PATTERN.match(v):
            raise ValueError(
                f"name '{v}' must contain only lowercase alphanumeric characters and hyphens, "
                "and cannot start or end with a hyphen"
            )
        return v

    @field_validator("subnet")
    @classmethod
    def validate_subnet(cls, v: str) -> str:
        """Validate subnet is an IPv4 CIDR."""
        try:
            network = ipaddress.IPv4Network(v, strict=True)
        except ValueError as e:
            raise ValueError(f"subnet '{v}' must be a valid IPv4 CIDR (e.g., 172.23.0.0/24): {e}")
        return str(network)

    @field_validator("kubernetes_version")
    @classmethod
    def validate_kubernetes_version(cls, v: str | None) -> str | None:
        """Normalize blank versions to None and require a leading 'v'.

        The channel names ``stable`` and ``latest`` are kept as given.
        """
        if v is None or not v.strip():
            return None
        v = v.strip()
        if v.lower() in VERSION_CHANNELS:
            return v.lower()
        if not _VERSION_PATTERN.match(v):
            raise ValueError(f"kubernetes_version '{v}' must look like v1.29.2, stable or latest")
        return v if v.startswith("v") else f"v{v}"

    @property
    def network(self) -> str:
        """Docker network the cluster nodes attach to."""
        return self.network_name or f"{self.name}-net"

    @property
    def image(self) -> str | None:
        """Node image for container-based providers, None for the provider default."""
        if self.node_image:
            return self.node_image
        if self.kubernetes_version and self.kubernetes_version not in VERSION_CHANNELS:
            return f"{KIND_NODE_IMAGE_REPO}:{self.kubernetes_version}"
        return None

    @property
    def node_count(self) -> int:
        """Total nodes including the single control plane."""
        return 1 + self.worker_count


class ClusterHandle(BaseModel):
    """Provider-assigned identity of a running cluster."""

    name: str
    context: str
    kubeconfig: Path | None = None

    def kubectl_flags(self) -> list[str]:
        """Flags that point kubectl at this cluster."""
        flags = []
        if self.kubeconfig:
            flags += ["--kubeconfig", str(self.kubeconfig)]
        flags += ["--context", self.context]
        return flags


class NodeStatus(BaseModel):
    """Kubernetes node status information."""

    name: str
    role: str
    status: str  # Ready, NotReady, Unknown
    version: str
