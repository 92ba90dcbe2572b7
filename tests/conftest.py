"""Pytest configuration and shared fixtures."""

import os
import subprocess
from dataclasses import dataclass

import pytest
from hypothesis import Verbosity, settings

from devcluster.config import Settings
from devcluster.models.retry import RetryBudget
from devcluster.runner import CommandRunner

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


@dataclass
class Call:
    cmd: list[str]
    input: str | None
    env: dict[str, str] | None


@dataclass
class Rule:
    pattern: tuple[str, ...]
    returncodes: list[int]
    stdout: str
    stderr: str
    missing: bool


def _matches(pattern: tuple[str, ...], cmd: list[str]) -> bool:
    """True if pattern's tokens appear in cmd in order."""
    it = iter(cmd)
    return all(token in it for token in pattern)


class FakeRunner(CommandRunner):
    """CommandRunner that records commands and returns scripted results.

    Rules match when their tokens appear in the command in order; the rule
    with the longest pattern wins. Unmatched commands succeed with no output.
    A list of return codes is consumed one per call, repeating the last.
    """

    def __init__(self):
        self.calls: list[Call] = []
        self.rules: list[Rule] = []

    def on(
        self,
        *pattern: str,
        returncode: int | list[int] = 0,
        stdout: str = "",
        stderr: str = "",
        missing: bool = False,
    ) -> "FakeRunner":
        codes = returncode if isinstance(returncode, list) else [returncode]
        self.rules.append(Rule(tuple(pattern), list(codes), stdout, stderr, missing))
        return self

    def _execute(self, cmd, *, capture_output, input, env):
        self.calls.append(Call(list(cmd), input, env))
        candidates = [r for r in self.rules if _matches(r.pattern, cmd)]
        if not candidates:
            return subprocess.CompletedProcess(cmd, 0, "", "")
        rule = max(candidates, key=lambda r: len(r.pattern))
        if rule.missing:
            raise FileNotFoundError(cmd[0])
        code = rule.returncodes.pop(0) if len(rule.returncodes) > 1 else rule.returncodes[0]
        return subprocess.CompletedProcess(cmd, code, rule.stdout, rule.stderr)

    def commands(self, *pattern: str) -> list[list[str]]:
        return [c.cmd for c in self.calls if _matches(pattern, c.cmd)]

    def count(self, *pattern: str) -> int:
        return len(self.commands(*pattern))


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(scope="session")
def runner_factory():
    """Factory for fresh FakeRunner instances (safe inside @given tests)."""
    return FakeRunner


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing all state at a temporary directory."""
    return Settings(
        state_dir=tmp_path / "state",
        kube_dir=tmp_path / "kube",
        settle_seconds=0,
        retry=RetryBudget(max_attempts=10, delay=15),
    )


@pytest.fixture
def sample_nodes():
    from devcluster.models.cluster import NodeStatus

    return [
        NodeStatus(
            name="zalpy-kind-control-plane", role="control-plane", status="Ready", version="v1.29.2"
        ),
        NodeStatus(name="zalpy-kind-worker", role="worker", status="Ready", version="v1.29.2"),
        NodeStatus(name="zalpy-kind-worker2", role="worker", status="Ready", version="v1.29.2"),
    ]
