"""Docker network management for kind clusters."""

from devcluster.logging_config import get_logger
from devcluster.runner import CommandRunner

logger = get_logger(__name__)


class DockerNetwork:
    """Creates and removes the bridge network cluster nodes attach to."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def exists(self, name: str) -> bool:
        return self.runner.succeeds(["docker", "network", "inspect", name])

    def ensure(self, name: str, subnet: str) -> bool:
        """Create the network unless it already exists.

        Returns:
            True if the network was created
        """
        if self.exists(name):
            logger.info(f"Docker network '{name}' already exists")
            return False
        logger.info(f"Creating Docker network '{name}' with subnet {subnet}")
        self.runner.run(["docker", "network", "create", f"--subnet={subnet}", name])
        return True

    def remove(self, name: str) -> bool:
        """Remove the network if present.

        Returns:
            True if the network was removed
        """
        if not self.exists(name):
            logger.debug(f"Docker network '{name}' not found, nothing to remove")
            return False
        logger.info(f"Removing Docker network '{name}'")
        self.runner.run(["docker", "network", "rm", name])
        return True
