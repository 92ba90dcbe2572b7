"""Thin wrapper around subprocess for calling external tools.

Every call to kind, minikube, docker and kubectl goes through
``CommandRunner`` so that failures surface as ``ProviderCallError`` and tests
can substitute scripted results by overriding ``_execute``.
"""

import os
import subprocess

from devcluster.exceptions import ProviderCallError, ToolNotFoundError
from devcluster.logging_config import get_logger, log_output

logger = get_logger(__name__)


class CommandRunner:
    """Runs external commands one at a time."""

    def run(
        self,
        cmd: list[str],
        *,
        check: bool = True,
        capture_output: bool = True,
        input: str | None = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """Run a command and return the completed process.

        Args:
            cmd: Command and arguments
            check: Raise ProviderCallError on a non-zero exit
            capture_output: Capture stdout/stderr instead of streaming them
            input: Text fed to the command's stdin
            env: Extra environment variables layered over os.environ

        Returns:
            The completed process

        Raises:
            ToolNotFoundError: If the binary is not on PATH
            ProviderCallError: If check is set and the command fails
        """
        cmd_str = " ".join(cmd)
        logger.debug(f"Running: {cmd_str}")

        try:
            result = self._execute(cmd, capture_output=capture_output, input=input, env=env)
        except FileNotFoundError:
            logger.error(f"{cmd[0]} binary not found in PATH")
            raise ToolNotFoundError(
                f"{cmd[0]} is not installed or not in PATH",
                f"Install {cmd[0]} and ensure the '{cmd[0]}' command is in your PATH",
                command=cmd,
            )

        logger.debug(f"Command completed with return code {result.returncode}: {cmd_str}")
        if capture_output:
            log_output(logger, cmd[0], result.stdout)
            log_output(logger, cmd[0], result.stderr)

        if check and result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.error(f"Command failed with return code {result.returncode}: {cmd_str}")
            raise ProviderCallError(
                f"Command failed: {cmd_str} (exit code {result.returncode})",
                stderr or None,
                command=cmd,
                returncode=result.returncode,
            )
        return result

    def succeeds(self, cmd: list[str], env: dict[str, str] | None = None) -> bool:
        """Return True if the command exits zero, discarding its output."""
        return self.run(cmd, check=False, env=env).returncode == 0

    def _execute(
        self,
        cmd: list[str],
        *,
        capture_output: bool,
        input: str | None,
        env: dict[str, str] | None,
    ) -> subprocess.CompletedProcess:
        merged_env = {**os.environ, **env} if env else None
        return subprocess.run(
            cmd,
            capture_output=capture_output,
            text=True,
            input=input,
            env=merged_env,
            check=False,
        )
