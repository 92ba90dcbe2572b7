"""Topology rendering for kind clusters.

The descriptor is built as typed models and only turned into YAML when it is
written to disk or printed.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from devcluster.exceptions import InvalidSpecError
from devcluster.logging_config import get_logger
from devcluster.models.cluster import ClusterSpec
from devcluster.yaml_io import dump_documents, write_document

logger = get_logger(__name__)

CONTROL_PLANE = "control-plane"
WORKER = "worker"


class KindNode(BaseModel):
    """One node entry in a kind cluster descriptor."""

    role: str

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        """Validate role is either control-plane or worker."""
        allowed_roles = [CONTROL_PLANE, WORKER]
        if v not in allowed_roles:
            raise ValueError(f"role must be one of {allowed_roles}, got '{v}'")
        return v


class KindNetworking(BaseModel):
    """API server exposure settings."""

    model_config = ConfigDict(populate_by_name=True)

    api_server_address: str = Field(alias="apiServerAddress")
    api_server_port: int = Field(alias="apiServerPort")


class KindClusterDescriptor(BaseModel):
    """Declarative kind cluster configuration (kind.x-k8s.io/v1alpha4)."""

    model_config = ConfigDict(populate_by_name=True)

    kind: str = "Cluster"
    api_version: str = Field(default="kind.x-k8s.io/v1alpha4", alias="apiVersion")
    networking: KindNetworking
    nodes: list[KindNode]

    @property
    def control_planes(self) -> list[KindNode]:
        return [n for n in self.nodes if n.role == CONTROL_PLANE]

    @property
    def workers(self) -> list[KindNode]:
        return [n for n in self.nodes if n.role == WORKER]

    def to_dict(self) -> dict:
        """Convert to the on-disk kind config format."""
        return self.model_dump(by_alias=True, mode="json")

    def to_yaml(self) -> str:
        return dump_documents(self.to_dict())


def render(spec: ClusterSpec) -> KindClusterDescriptor:
    """Build the node topology for a cluster spec.

    Produces exactly one control-plane node followed by ``spec.worker_count``
    worker nodes. The result depends only on the spec.

    Args:
        spec: Cluster specification

    Returns:
        The rendered descriptor

    Raises:
        InvalidSpecError: If the worker count is negative
    """
    if spec.worker_count < 0:
        raise InvalidSpecError(
            f"Worker count must be zero or more, got {spec.worker_count}",
            "Pass --workers 0 for a single-node cluster",
        )

    nodes = [KindNode(role=CONTROL_PLANE)]
    nodes += [KindNode(role=WORKER) for _ in range(spec.worker_count)]

    logger.debug(
        f"Rendered topology for '{spec.name}': 1 control-plane, {spec.worker_count} workers"
    )
    return KindClusterDescriptor(
        networking=KindNetworking(
            api_server_address=spec.api_server_address,
            api_server_port=spec.api_port,
        ),
        nodes=nodes,
    )


def descriptor_path(spec_name: str, state_dir: Path) -> Path:
    """Location of the generated descriptor for a cluster."""
    return Path(state_dir) / f"{spec_name}-config.yaml"


def write_descriptor(descriptor: KindClusterDescriptor, path: Path) -> Path:
    """Write the descriptor as kind config YAML."""
    logger.debug(f"Writing kind config: {path}")
    return write_document(descriptor.to_dict(), Path(path))
