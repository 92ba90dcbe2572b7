"""Unit tests for the kind and minikube providers and the Docker network."""

import pytest

from devcluster.exceptions import ClusterNotFoundError
from devcluster.models.cluster import ClusterSpec
from devcluster.providers import DockerNetwork, KindProvider, MinikubeProvider, ProviderResult
from devcluster.providers.kind import NETWORK_ENV
from devcluster.topology import render


class TestKindProvider:
    def test_create_feeds_config_on_stdin(self, fake_runner):
        spec = ClusterSpec(name="demo", worker_count=1, kubernetes_version=None)
        descriptor = render(spec)

        result = KindProvider(fake_runner).create(descriptor, spec)

        call = fake_runner.calls[0]
        assert call.cmd == ["kind", "create", "cluster", "--name", "demo", "--config", "-"]
        assert call.input == descriptor.to_yaml()
        assert call.env == {NETWORK_ENV: "demo-net"}
        assert result.success

    def test_create_with_custom_image(self, fake_runner, tmp_path):
        spec = ClusterSpec(name="demo", node_image="registry.local/node:dev")
        config = tmp_path / "demo-config.yaml"

        KindProvider(fake_runner).create(render(spec), spec, config)

        assert fake_runner.calls[0].cmd[-4:] == [
            "--config",
            str(config),
            "--image",
            "registry.local/node:dev",
        ]
        assert fake_runner.calls[0].input is None

    @pytest.mark.parametrize(
        "stdout, expected",
        [
            ("zalpy-kind\n", True),
            ("other\nzalpy-kind\n", True),
            ("zalpy-kind-old\n", False),
            ("No kind clusters found.\n", False),
            ("", False),
        ],
    )
    def test_exists_matches_whole_lines(self, fake_runner, stdout, expected):
        fake_runner.on("kind", "get", "clusters", stdout=stdout)

        assert KindProvider(fake_runner).exists("zalpy-kind") is expected

    def test_export_logs(self, fake_runner, tmp_path):
        path = KindProvider(fake_runner, logs_dir=tmp_path).export_logs("demo")

        assert path == tmp_path / "demo-logs"
        assert fake_runner.calls[0].cmd == [
            "kind",
            "export",
            "logs",
            str(tmp_path / "demo-logs"),
            "--name",
            "demo",
        ]

    def test_export_logs_never_raises(self, fake_runner):
        fake_runner.on("kind", "export", "logs", returncode=1)

        assert KindProvider(fake_runner).export_logs("demo") is None

    def test_stop_without_nodes(self, fake_runner):
        with pytest.raises(ClusterNotFoundError):
            KindProvider(fake_runner).stop("demo")

    def test_context_and_kubeconfig(self, fake_runner):
        fake_runner.on("kind", "get", "kubeconfig", stdout="apiVersion: v1\n")
        provider = KindProvider(fake_runner)

        assert provider.context_for("demo") == "kind-demo"
        assert provider.kubeconfig("demo") == "apiVersion: v1\n"
        assert provider.handle_for("demo").kubectl_flags() == ["--context", "kind-demo"]


class TestMinikubeProvider:
    def test_create_counts_all_nodes(self, fake_runner):
        spec = ClusterSpec(name="mk", worker_count=2, kubernetes_version="1.28.3")

        MinikubeProvider(fake_runner, driver="podman", cpus=2).create(render(spec), spec)

        assert fake_runner.calls[0].cmd == [
            "minikube",
            "start",
            "-p",
            "mk",
            "--driver=podman",
            "--nodes",
            "3",
            "--cpus",
            "2",
            "--kubernetes-version=v1.28.3",
        ]

    @pytest.mark.parametrize(
        "returncode, stdout, expected",
        [
            (0, '{"invalid": [], "valid": [{"Name": "mk"}]}', True),
            (0, '{"invalid": [], "valid": [{"Name": "other"}]}', False),
            (0, '{"invalid": [{"Name": "mk"}], "valid": null}', False),
            (0, "not json", False),
            (85, "", False),
        ],
    )
    def test_exists(self, fake_runner, returncode, stdout, expected):
        fake_runner.on("minikube", "profile", "list", returncode=returncode, stdout=stdout)

        assert MinikubeProvider(fake_runner).exists("mk") is expected

    def test_enable_addon(self, fake_runner):
        MinikubeProvider(fake_runner).enable_addon("mk", "ingress")

        assert fake_runner.calls[0].cmd == ["minikube", "addons", "enable", "ingress", "-p", "mk"]

    def test_context_is_profile_name(self, fake_runner):
        provider = MinikubeProvider(fake_runner)

        assert provider.context_for("mk") == "mk"
        assert provider.kubeconfig("mk") is None

    def test_export_logs(self, fake_runner, tmp_path):
        path = MinikubeProvider(fake_runner, logs_dir=tmp_path).export_logs("mk")

        assert path == tmp_path / "mk-minikube.log"
        assert fake_runner.calls[0].cmd[-2:] == ["--file", str(path)]


class TestDockerNetwork:
    def test_ensure_creates_missing_network(self, fake_runner):
        fake_runner.on("docker", "network", "inspect", returncode=1)

        assert DockerNetwork(fake_runner).ensure("demo-net", "172.23.0.0/24")
        assert fake_runner.commands("docker", "network", "create") == [
            ["docker", "network", "create", "--subnet=172.23.0.0/24", "demo-net"]
        ]

    def test_ensure_keeps_existing_network(self, fake_runner):
        assert not DockerNetwork(fake_runner).ensure("demo-net", "172.23.0.0/24")
        assert fake_runner.count("docker", "network", "create") == 0

    def test_remove_missing_network(self, fake_runner):
        fake_runner.on("docker", "network", "inspect", returncode=1)

        assert not DockerNetwork(fake_runner).remove("demo-net")
        assert fake_runner.count("docker", "network", "rm") == 0


def test_provider_result_from_process(fake_runner):
    process = fake_runner.run(["kind", "version"], check=False)

    result = ProviderResult.from_process(process)

    assert result.command == ["kind", "version"]
    assert result.success
