"""Main CLI entry point for local cluster management."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer.core import TyperGroup

from devcluster.config import Settings
from devcluster.exceptions import DevClusterError
from devcluster.logging_config import get_logger, setup_logging
from devcluster.models.addon import AddonId, InstallResult
from devcluster.models.cluster import NodeStatus
from devcluster.orchestrator import build_kind_orchestrator, build_minikube_orchestrator
from devcluster.runner import CommandRunner


class DevClusterGroup(TyperGroup):
    """Command group whose usage errors exit 1 like every other failure."""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = 1
            raise

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            e.exit_code = 1
            raise


app = typer.Typer(
    name="devcluster",
    cls=DevClusterGroup,
    help="Create, configure and tear down local Kubernetes development clusters",
    add_completion=False,
)
minikube_app = typer.Typer(help="Manage a minikube cluster (install, uninstall, start, stop)")
app.add_typer(minikube_app, name="minikube")

console = Console()
logger = get_logger(__name__)

ADDON_NAMES = ", ".join(a.value for a in AddonId.ordered())


# Global callback to set up logging
@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        envvar="DEVCLUSTER_LOG_LEVEL",
        help="Lowest log level shown on stderr (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar="DEVCLUSTER_CONFIG",
        help="Path to YAML config file (default: ./devcluster.yaml if present)",
    ),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    with _errors("startup"):
        setup_logging(level=log_level, verbose=verbose, log_file=log_path)
    ctx.obj = {"config": config}
    logger.debug("Logging initialized")

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@minikube_app.callback(invoke_without_command=True)
def minikube_callback(ctx: typer.Context):
    """Manage a minikube cluster (install, uninstall, start, stop)."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def _settings(ctx: typer.Context, **overrides) -> Settings:
    obj = ctx.find_root().obj or {}
    return Settings.load(obj.get("config")).with_cluster(**overrides)


@contextmanager
def _errors(operation: str) -> Iterator[None]:
    """Turn errors into a terminal message and a non-zero exit."""
    try:
        yield
    except typer.Exit:
        raise
    except DevClusterError as e:
        logger.error(f"{operation} failed [{e.reason}]: {e.message}")
        console.print(f"[red]Error ({e.reason}):[/red] {escape(e.message)}")
        if e.details:
            console.print(f"\n{e.details}", markup=False)
        raise typer.Exit(code=e.exit_code)
    except KeyboardInterrupt:
        console.print(f"\n[yellow]{operation} interrupted by user[/yellow]")
        console.print("A partially created cluster or network may remain; run 'delete' to clean up")
        raise typer.Exit(code=130)
    except Exception as e:
        logger.error(f"Unexpected error during {operation}: {e}", exc_info=True)
        console.print(f"[red]Unexpected error:[/red] {e}")
        console.print("\nRun with --verbose --log-file debug.log for more details")
        raise typer.Exit(code=1)


def _print_nodes(nodes: list[NodeStatus]) -> None:
    if not nodes:
        console.print("[yellow]No nodes found in the cluster[/yellow]")
        return

    table = Table(title=f"Cluster Nodes ({len(nodes)})")
    table.add_column("Name", style="cyan")
    table.add_column("Role", style="magenta")
    table.add_column("Status", style="green")
    table.add_column("Version", style="blue")

    for node in nodes:
        status = "✓ Ready" if node.status == "Ready" else f"✗ {node.status}"
        table.add_row(node.name, node.role, status, node.version)
    console.print(table)


def _print_addon_results(results: list[InstallResult]) -> None:
    table = Table(title="Addons")
    table.add_column("Addon", style="cyan")
    table.add_column("Result")
    table.add_column("Message")

    for result in results:
        outcome = "[green]✓ installed[/green]" if result.success else "[red]✗ failed[/red]"
        table.add_row(result.addon, outcome, result.message)
    console.print(table)

    failed = [r.addon for r in results if not r.success]
    if failed:
        names = ", ".join(failed)
        console.print(f"[yellow]Warning:[/yellow] {len(failed)} addon(s) failed: {names}")


@app.command()
def version() -> None:
    """Show version information."""
    from devcluster import __version__

    typer.echo(f"devcluster version {__version__}")


@app.command()
def create(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", "-n", help="Cluster name"),
    workers: int | None = typer.Option(None, "--workers", "-w", help="Number of worker nodes"),
    kubernetes_version: str | None = typer.Option(
        None, "--kubernetes-version", "-k", help="Kubernetes version for the node image (v1.29.2)"
    ),
    subnet: str | None = typer.Option(None, "--subnet", help="Docker network subnet (CIDR)"),
    with_addons: bool = typer.Option(
        False, "--with-addons", help=f"Install all addons ({ADDON_NAMES}) after creation"
    ),
) -> None:
    """
    Create a kind cluster.

    Creates the Docker network, renders the kind config (one control-plane
    plus N workers), creates the cluster, waits for the API to answer,
    exports the kubeconfig and lists the nodes.
    """
    with _errors("create"):
        settings = _settings(
            ctx,
            name=name,
            worker_count=workers,
            kubernetes_version=kubernetes_version,
            subnet=subnet,
        )
        spec = settings.cluster
        console.print(
            f"[bold cyan]Creating kind cluster '{spec.name}'[/bold cyan] "
            f"with 1 control-plane and {spec.worker_count} workers..."
        )

        report = build_kind_orchestrator(settings).create(spec, install_addons=with_addons)

        console.print(f"Kubeconfig: {report.handle.kubeconfig}")
        console.print(f"Context: {report.handle.context}")
        _print_nodes(report.nodes)
        if with_addons:
            _print_addon_results(report.addons)
        console.print("\n[green]✓ Kind cluster setup completed successfully![/green]")


@app.command()
def delete(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", "-n", help="Cluster name"),
) -> None:
    """
    Delete a kind cluster and all of its resources.

    Removes the cluster, its Docker network, the exported kubeconfig and
    the generated kind config. A missing cluster is not an error.
    """
    with _errors("delete"):
        settings = _settings(ctx, name=name)
        cluster_name = settings.cluster.name
        console.print(f"Cleaning up all resources for cluster '{cluster_name}'...")

        report = build_kind_orchestrator(settings).delete(cluster_name)

        if report.cluster_deleted:
            console.print(f"[green]✓[/green] Deleted kind cluster '{cluster_name}'")
        else:
            console.print(f"[yellow]Cluster '{cluster_name}' not found, nothing to delete[/yellow]")
        if report.network_removed:
            console.print(f"[green]✓[/green] Removed Docker network '{settings.cluster.network}'")
        for path in report.files_removed:
            console.print(f"[green]✓[/green] Removed {path}")
        console.print("\n[green]Cleanup completed![/green]")


@app.command()
def addons(
    ctx: typer.Context,
    addon: str | None = typer.Argument(
        None, help=f"Addon to install ({ADDON_NAMES}); installs all when omitted"
    ),
    name: str | None = typer.Option(None, "--name", "-n", help="Cluster name"),
) -> None:
    """
    Install addons on an existing kind cluster.

    Examples:
        devcluster addons minio
        devcluster addons
    """
    with _errors("addons"):
        settings = _settings(ctx, name=name)
        if addon:
            console.print(f"Installing selected addon: {addon}")
        else:
            console.print("Installing all addons...")

        results = build_kind_orchestrator(settings).install_addons(settings.cluster.name, addon)
        _print_addon_results(results)


@app.command()
def start(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", "-n", help="Cluster name"),
) -> None:
    """Start the node containers of a stopped kind cluster."""
    with _errors("start"):
        settings = _settings(ctx, name=name)
        build_kind_orchestrator(settings).start(settings.cluster.name)
        console.print(f"[green]✓[/green] Started cluster '{settings.cluster.name}'")


@app.command()
def stop(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", "-n", help="Cluster name"),
) -> None:
    """Stop the node containers of a kind cluster without deleting it."""
    with _errors("stop"):
        settings = _settings(ctx, name=name)
        build_kind_orchestrator(settings).stop(settings.cluster.name)
        console.print(f"[green]✓[/green] Stopped cluster '{settings.cluster.name}'")


@app.command()
def status(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", "-n", help="Cluster name"),
) -> None:
    """Show the nodes of a kind cluster."""
    with _errors("status"):
        settings = _settings(ctx, name=name)
        nodes = build_kind_orchestrator(settings).status(settings.cluster.name)
        _print_nodes(nodes)

        ready = sum(1 for n in nodes if n.status == "Ready")
        if nodes and ready == len(nodes):
            console.print("\n[green]✓ All nodes are ready[/green]")
        elif nodes:
            console.print(f"\n[yellow]⚠ {len(nodes) - ready} node(s) not ready[/yellow]")


@app.command()
def render(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", "-n", help="Cluster name"),
    workers: int | None = typer.Option(None, "--workers", "-w", help="Number of worker nodes"),
) -> None:
    """Print the kind config that create would use, without creating anything."""
    from devcluster.topology import render as render_topology

    with _errors("render"):
        settings = _settings(ctx, name=name, worker_count=workers)
        typer.echo(render_topology(settings.cluster).to_yaml(), nl=False)


@minikube_app.command("install")
def minikube_install(
    ctx: typer.Context,
    kubernetes_version: str | None = typer.Option(
        None, "--kubernetes-version", "-k", help="Kubernetes version (prompted when omitted)"
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help="Number of worker nodes (prompted when omitted)"
    ),
    skip_download: bool = typer.Option(
        False, "--skip-download", help="Use the minikube binary already on PATH"
    ),
) -> None:
    """
    Install minikube, create a cluster and enable its addons.

    Downloads the minikube binary for this OS and architecture, asks for the
    Kubernetes version and worker count, starts the cluster with the docker
    driver and enables the configured minikube addons.
    """
    from devcluster import binaries

    with _errors("minikube install"):
        settings = _settings(ctx)
        runner = CommandRunner()

        if not skip_download:
            url = binaries.minikube_download_url()
            console.print(f"Downloading {url} ...")
            target = binaries.install_minikube(
                runner, settings.minikube.install_dir, settings.state_dir
            )
            console.print(f"[green]✓[/green] Installed minikube to {target}")

        if kubernetes_version is None:
            kubernetes_version = typer.prompt(
                "Enter Kubernetes version (v1.29.2, stable or latest; blank for default)",
                default="",
                show_default=False,
            )
        if workers is None:
            workers = typer.prompt("Enter number of worker nodes", type=int)

        settings = settings.with_cluster(
            name=settings.minikube.profile,
            kubernetes_version=kubernetes_version,
            worker_count=workers,
        )
        report = build_minikube_orchestrator(settings, runner).create(
            settings.cluster, install_addons=True
        )

        _print_nodes(report.nodes)
        _print_addon_results(report.addons)
        console.print("\n[green]✓ minikube cluster is ready[/green]")


@minikube_app.command("uninstall")
def minikube_uninstall(ctx: typer.Context) -> None:
    """Delete the minikube cluster."""
    with _errors("minikube uninstall"):
        settings = _settings(ctx)
        profile = settings.minikube.profile
        report = build_minikube_orchestrator(settings).delete(profile)
        if report.cluster_deleted:
            console.print(f"[green]✓[/green] Deleted minikube profile '{profile}'")
        else:
            console.print(f"[yellow]minikube profile '{profile}' not found[/yellow]")


@minikube_app.command("start")
def minikube_start(ctx: typer.Context) -> None:
    """Start the minikube cluster."""
    with _errors("minikube start"):
        settings = _settings(ctx)
        build_minikube_orchestrator(settings).start(settings.minikube.profile)
        console.print("[green]✓[/green] minikube started")


@minikube_app.command("stop")
def minikube_stop(ctx: typer.Context) -> None:
    """Stop the minikube cluster."""
    with _errors("minikube stop"):
        settings = _settings(ctx)
        build_minikube_orchestrator(settings).stop(settings.minikube.profile)
        console.print("[green]✓[/green] minikube stopped")


if __name__ == "__main__":
    app()
