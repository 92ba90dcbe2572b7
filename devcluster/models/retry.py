"""Retry budget for readiness polling."""

from pydantic import BaseModel, ConfigDict, Field


class RetryBudget(BaseModel):
    """How many times to probe and how long to wait between probes.

    A ``backoff`` of 1.0 gives a fixed delay; anything larger grows the delay
    geometrically after each failed attempt.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=10, ge=1)
    delay: float = Field(default=15.0, ge=0)
    backoff: float = Field(default=1.0, ge=1.0)

    def delay_for(self, attempt: int) -> float:
        """Return the wait after the given (1-based) failed attempt."""
        return self.delay * self.backoff ** (attempt - 1)
