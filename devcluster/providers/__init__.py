"""External cluster providers."""

from devcluster.providers.base import ClusterProvider, ProviderResult
from devcluster.providers.kind import KindProvider
from devcluster.providers.minikube import MinikubeProvider
from devcluster.providers.network import DockerNetwork

__all__ = [
    "ClusterProvider",
    "ProviderResult",
    "KindProvider",
    "MinikubeProvider",
    "DockerNetwork",
]
