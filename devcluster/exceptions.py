"""Custom exceptions for devcluster."""


class DevClusterError(Exception):
    """Base exception for all devcluster errors.

    Every error carries a short machine-readable ``reason`` code and the
    process exit code the CLI reports for it.
    """

    reason = "error"
    exit_code = 1

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class UnsupportedPlatformError(DevClusterError):
    """Exception raised when no provider binary exists for this OS/arch."""

    reason = "unsupported-platform"


class InvalidSpecError(DevClusterError):
    """Exception raised when a cluster spec cannot be rendered."""

    reason = "invalid-spec"


class ProviderCallError(DevClusterError):
    """Exception raised when an external command exits non-zero."""

    reason = "provider-call-failed"

    def __init__(
        self,
        message: str,
        details: str = None,
        command: list[str] | None = None,
        returncode: int | None = None,
    ):
        self.command = command or []
        self.returncode = returncode
        super().__init__(message, details)


class ToolNotFoundError(ProviderCallError):
    """Exception raised when a required binary is not on PATH."""

    reason = "tool-not-found"


class ReadinessTimeoutError(DevClusterError):
    """Exception raised when the cluster API never became reachable."""

    reason = "readiness-timeout"


class UnknownAddonError(DevClusterError):
    """Exception raised for addon names outside the supported set."""

    reason = "unknown-addon"


class ClusterNotFoundError(DevClusterError):
    """Exception raised when the provider does not know the named cluster."""

    reason = "cluster-not-found"


class ClusterUnreachableError(DevClusterError):
    """Exception raised when an existing cluster does not answer probes."""

    reason = "cluster-unreachable"


class KubernetesError(DevClusterError):
    """Exception raised for Kubernetes API errors."""

    reason = "kubernetes"


class ConfigurationError(DevClusterError):
    """Exception raised for configuration errors."""

    reason = "configuration"
