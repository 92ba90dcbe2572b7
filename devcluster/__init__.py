"""Local Kubernetes development cluster manager."""

__version__ = "0.1.0"
