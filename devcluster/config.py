"""Configuration for devcluster.

Settings come from built-in defaults, optionally overlaid by a YAML file
(``devcluster.yaml`` in the working directory, or the path given with
``--config``), and finally by command-line overrides.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from devcluster.exceptions import ConfigurationError, InvalidSpecError
from devcluster.logging_config import get_logger
from devcluster.models.cluster import ClusterSpec
from devcluster.models.retry import RetryBudget

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path("devcluster.yaml")

METRICS_SERVER_URL = (
    "https://github.com/kubernetes-sigs/metrics-server/releases/latest/download/components.yaml"
)

MINIKUBE_ADDONS = [
    "storage-provisioner-gluster",
    "ingress-dns",
    "ingress",
    "istio-provisioner",
    "istio",
]


class AddonSettings(BaseModel):
    """Versions and parameters for kind cluster addons."""

    minio_ref: str = "v7.0.1"
    metallb_version: str = "v0.14.9"
    metallb_pool: str | None = None  # e.g. 172.23.0.100-172.23.0.200
    metrics_server_url: str = METRICS_SERVER_URL


class MinikubeSettings(BaseModel):
    """Settings for the minikube provider."""

    profile: str = "minikube"
    driver: str = "docker"
    cpus: int = Field(default=4, ge=1)  # istio needs 4
    addons: list[str] = Field(default_factory=lambda: list(MINIKUBE_ADDONS))
    install_dir: Path = Path("/usr/local/bin")


class Settings(BaseModel):
    """Top-level configuration."""

    cluster: ClusterSpec = Field(default_factory=ClusterSpec)
    retry: RetryBudget = Field(default_factory=RetryBudget)
    settle_seconds: float = Field(default=30.0, ge=0)
    state_dir: Path = Path(".")
    kube_dir: Path = Field(default=Path("~/.kube"), validate_default=True)
    addons: AddonSettings = Field(default_factory=AddonSettings)
    minikube: MinikubeSettings = Field(default_factory=MinikubeSettings)

    @field_validator("state_dir", "kube_dir")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        """Expand ~ in directory settings."""
        return Path(v).expanduser()

    def with_cluster(self, **overrides) -> "Settings":
        """Return a copy whose cluster spec has the given fields replaced.

        None values are ignored so unset CLI options keep configured values.

        Raises:
            InvalidSpecError: If the resulting spec does not validate
        """
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        try:
            cluster = ClusterSpec(**{**self.cluster.model_dump(), **updates})
        except ValidationError as e:
            raise InvalidSpecError("Invalid cluster settings", format_validation_error(e))
        return self.model_copy(update={"cluster": cluster})

    def save(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Settings":
        """Load configuration from a YAML file.

        Args:
            path: Explicit config file. When None, ``devcluster.yaml`` in the
                working directory is used if present, else the defaults.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if path is None:
            if not DEFAULT_CONFIG_FILE.exists():
                logger.debug("No config file found, using defaults")
                return cls()
            path = DEFAULT_CONFIG_FILE

        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Config file not found: {config_path}",
                f"Expected location: {config_path.absolute()}",
            )

        logger.debug(f"Loading config file: {config_path}")
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse config file {config_path}", str(e))

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration in {config_path}", format_validation_error(e)
            )


def format_validation_error(error: ValidationError) -> str:
    """One line per failing field, dotted location first."""
    lines = []
    for item in error.errors():
        field = ".".join(str(x) for x in item["loc"]) or "(root)"
        lines.append(f"  - {field}: {item['msg']}")
    return "\n".join(lines)
