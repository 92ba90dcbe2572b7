"""Data models for cluster addons."""

from enum import Enum

from pydantic import BaseModel

from devcluster.exceptions import UnknownAddonError
from devcluster.models.cluster import ClusterHandle


class AddonId(str, Enum):
    """Addons that can be installed on a kind cluster.

    Declaration order is the installation order used when installing all.
    """

    MINIO = "minio"
    METALLB = "metallb"
    METRICS_SERVER = "metrics-server"

    @classmethod
    def ordered(cls) -> list["AddonId"]:
        """All addons in installation order."""
        return list(cls)

    @classmethod
    def parse(cls, name: str) -> "AddonId":
        """Resolve a user-supplied addon name.

        Raises:
            UnknownAddonError: If the name is not a supported addon
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            supported = ", ".join(a.value for a in cls)
            raise UnknownAddonError(
                f"Unknown addon '{name}'",
                f"Supported addons: {supported}",
            )


class AddonRequest(BaseModel):
    """A single addon to apply against a cluster."""

    addon: AddonId
    handle: ClusterHandle


class InstallResult(BaseModel):
    """Outcome of installing one addon.

    ``addon`` is the addon's name; provider-native addons (minikube) are not
    part of ``AddonId``.
    """

    addon: str
    success: bool
    message: str = ""
