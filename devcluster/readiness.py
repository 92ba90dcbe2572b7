"""Readiness polling for freshly created clusters."""

import time
from collections.abc import Callable
from enum import Enum

from devcluster.logging_config import get_logger
from devcluster.models.cluster import ClusterHandle
from devcluster.models.retry import RetryBudget
from devcluster.runner import CommandRunner

logger = get_logger(__name__)


class Readiness(str, Enum):
    """Terminal outcomes of a readiness wait."""

    READY = "ready"
    TIMED_OUT = "timed-out"


class ReadinessPoller:
    """Probes the cluster API with ``kubectl cluster-info`` until it answers."""

    def __init__(self, runner: CommandRunner, sleep: Callable[[float], None] = time.sleep):
        self.runner = runner
        self.sleep = sleep

    def probe(self, handle: ClusterHandle) -> bool:
        """Run a single cluster-info query against the handle's context."""
        return self.runner.succeeds(["kubectl", "cluster-info", *handle.kubectl_flags()])

    def await_ready(self, handle: ClusterHandle, budget: RetryBudget) -> Readiness:
        """Probe until the cluster answers or the budget is spent.

        The wait after each failed attempt comes from the budget; there is no
        wait after the last attempt.

        Args:
            handle: Cluster to probe
            budget: Attempt count and delay policy

        Returns:
            Readiness.READY on the first successful probe, otherwise
            Readiness.TIMED_OUT after budget.max_attempts failures
        """
        for attempt in range(1, budget.max_attempts + 1):
            if self.probe(handle):
                logger.info(f"Cluster '{handle.name}' is ready after {attempt} attempt(s)")
                return Readiness.READY

            if attempt == budget.max_attempts:
                break

            delay = budget.delay_for(attempt)
            logger.info(
                f"Cluster '{handle.name}' not ready ({attempt}/{budget.max_attempts}), "
                f"retrying in {delay:g}s"
            )
            self.sleep(delay)

        logger.error(
            f"Cluster '{handle.name}' failed to become ready after {budget.max_attempts} attempts"
        )
        return Readiness.TIMED_OUT
