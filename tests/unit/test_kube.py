"""Unit tests for kubeconfig binding and node listing."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException

from devcluster.exceptions import KubernetesError
from devcluster.kube import bind_context, kubeconfig_path, list_nodes
from devcluster.models.cluster import ClusterHandle
from devcluster.providers import KindProvider, MinikubeProvider


def _node(name, labels=None, ready="True", version="v1.29.2"):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, labels=labels or {}),
        status=SimpleNamespace(
            conditions=[
                SimpleNamespace(type="MemoryPressure", status="False"),
                SimpleNamespace(type="Ready", status=ready),
            ],
            node_info=SimpleNamespace(kubelet_version=version),
        ),
    )


def test_kubeconfig_path(tmp_path):
    assert kubeconfig_path("demo", tmp_path) == tmp_path / "kind-demo.yaml"


def test_bind_context_writes_kubeconfig(fake_runner, tmp_path):
    fake_runner.on("kind", "get", "kubeconfig", stdout="apiVersion: v1\n")

    handle = bind_context(KindProvider(fake_runner), fake_runner, "demo", tmp_path / "kube")

    path = tmp_path / "kube" / "kind-demo.yaml"
    assert path.read_text() == "apiVersion: v1\n"
    assert handle == ClusterHandle(name="demo", context="kind-demo", kubeconfig=path)
    assert fake_runner.calls[-1].cmd == [
        "kubectl",
        "config",
        "use-context",
        "kind-demo",
        "--kubeconfig",
        str(path),
    ]


def test_bind_context_without_kubeconfig(fake_runner, tmp_path):
    handle = bind_context(MinikubeProvider(fake_runner), fake_runner, "mk", tmp_path)

    assert handle.kubeconfig is None
    assert [c.cmd for c in fake_runner.calls] == [["kubectl", "config", "use-context", "mk"]]


@patch("kubernetes.client.CoreV1Api")
@patch("kubernetes.config.new_client_from_config")
def test_list_nodes(mock_new_client, mock_core_api, tmp_path):
    mock_core_api.return_value.list_node.return_value = SimpleNamespace(
        items=[
            _node("demo-worker", ready="False"),
            _node("demo-control-plane", {"node-role.kubernetes.io/control-plane": ""}),
            _node("demo-worker2"),
        ]
    )
    handle = ClusterHandle(name="demo", context="kind-demo", kubeconfig=tmp_path / "k.yaml")

    nodes = list_nodes(handle)

    mock_new_client.assert_called_once_with(
        config_file=str(tmp_path / "k.yaml"), context="kind-demo"
    )
    assert [(n.name, n.role, n.status) for n in nodes] == [
        ("demo-control-plane", "control-plane", "Ready"),
        ("demo-worker", "worker", "NotReady"),
        ("demo-worker2", "worker", "Ready"),
    ]
    assert nodes[0].version == "v1.29.2"


@patch("kubernetes.config.new_client_from_config")
def test_list_nodes_bad_kubeconfig(mock_new_client):
    mock_new_client.side_effect = Exception("Invalid kube-config file")

    with pytest.raises(KubernetesError) as exc_info:
        list_nodes(ClusterHandle(name="demo", context="kind-demo"))

    assert "kind-demo" in exc_info.value.message


@patch("kubernetes.client.CoreV1Api")
@patch("kubernetes.config.new_client_from_config", MagicMock())
def test_list_nodes_api_error(mock_core_api):
    mock_core_api.return_value.list_node.side_effect = ApiException(status=403, reason="Forbidden")

    with pytest.raises(KubernetesError) as exc_info:
        list_nodes(ClusterHandle(name="demo", context="kind-demo"))

    assert "Forbidden" in exc_info.value.message
