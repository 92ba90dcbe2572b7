"""Data models for cluster configuration and state."""

from devcluster.models.addon import AddonId, AddonRequest, InstallResult
from devcluster.models.cluster import ClusterHandle, ClusterSpec, NodeStatus
from devcluster.models.retry import RetryBudget

__all__ = [
    "AddonId",
    "AddonRequest",
    "InstallResult",
    "ClusterHandle",
    "ClusterSpec",
    "NodeStatus",
    "RetryBudget",
]
