"""Property-based tests for readiness polling.

If the health check first succeeds on attempt k <= max_attempts the poller
returns READY after exactly k checks and k-1 delays; if it never succeeds it
returns TIMED_OUT after exactly max_attempts checks.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from devcluster.exceptions import ToolNotFoundError
from devcluster.models.cluster import ClusterHandle
from devcluster.models.retry import RetryBudget
from devcluster.readiness import Readiness, ReadinessPoller

HANDLE = ClusterHandle(name="zalpy-kind", context="kind-zalpy-kind")


class Recorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


@st.composite
def budget_and_success_attempt(draw):
    max_attempts = draw(st.integers(min_value=1, max_value=15))
    k = draw(st.integers(min_value=1, max_value=max_attempts))
    delay = draw(st.floats(min_value=0, max_value=60, allow_nan=False))
    return RetryBudget(max_attempts=max_attempts, delay=delay), k


@given(case=budget_and_success_attempt())
def test_ready_after_k_checks_and_k_minus_one_delays(runner_factory, case):
    budget, k = case
    runner = runner_factory().on("kubectl", "cluster-info", returncode=[1] * (k - 1) + [0])
    sleep = Recorder()

    result = ReadinessPoller(runner, sleep).await_ready(HANDLE, budget)

    assert result is Readiness.READY
    assert runner.count("kubectl", "cluster-info") == k
    assert len(sleep.delays) == k - 1
    assert all(d == budget.delay for d in sleep.delays)


@given(
    max_attempts=st.integers(min_value=1, max_value=15),
    delay=st.floats(min_value=0, max_value=60, allow_nan=False),
)
def test_timed_out_after_max_attempts(runner_factory, max_attempts, delay):
    runner = runner_factory().on("kubectl", "cluster-info", returncode=1)
    sleep = Recorder()

    result = ReadinessPoller(runner, sleep).await_ready(
        HANDLE, RetryBudget(max_attempts=max_attempts, delay=delay)
    )

    assert result is Readiness.TIMED_OUT
    assert runner.count("kubectl", "cluster-info") == max_attempts
    assert len(sleep.delays) == max_attempts - 1


def test_default_budget_is_ten_attempts_fifteen_seconds(fake_runner, sleep_recorder):
    fake_runner.on("kubectl", "cluster-info", returncode=1)

    result = ReadinessPoller(fake_runner, sleep_recorder).await_ready(HANDLE, RetryBudget())

    assert result is Readiness.TIMED_OUT
    assert fake_runner.count("kubectl", "cluster-info") == 10
    assert sleep_recorder.delays == [15.0] * 9


def test_backoff_grows_delay(fake_runner, sleep_recorder):
    fake_runner.on("kubectl", "cluster-info", returncode=1)

    ReadinessPoller(fake_runner, sleep_recorder).await_ready(
        HANDLE, RetryBudget(max_attempts=4, delay=2, backoff=2)
    )

    assert sleep_recorder.delays == [2, 4, 8]


def test_probe_targets_handle_context(fake_runner, tmp_path):
    handle = ClusterHandle(
        name="demo", context="kind-demo", kubeconfig=tmp_path / "kind-demo.yaml"
    )

    assert ReadinessPoller(fake_runner).probe(handle)

    assert fake_runner.calls[0].cmd == [
        "kubectl",
        "cluster-info",
        "--kubeconfig",
        str(tmp_path / "kind-demo.yaml"),
        "--context",
        "kind-demo",
    ]


def test_missing_kubectl_is_not_retried(fake_runner, sleep_recorder):
    fake_runner.on("kubectl", missing=True)

    with pytest.raises(ToolNotFoundError):
        ReadinessPoller(fake_runner, sleep_recorder).await_ready(HANDLE, RetryBudget())

    assert len(fake_runner.calls) == 1
    assert sleep_recorder.delays == []
