"""Platform detection and minikube binary installation."""

import os
import platform
from pathlib import Path

import requests
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn

from devcluster.exceptions import DevClusterError, UnsupportedPlatformError
from devcluster.logging_config import get_logger
from devcluster.runner import CommandRunner

logger = get_logger(__name__)

MINIKUBE_RELEASE_URL = "https://storage.googleapis.com/minikube/releases/latest"

_LINUX_ARCHES = {"x86_64": "amd64", "amd64": "amd64", "aarch64": "arm64", "arm64": "arm64"}


def minikube_asset(system: str, machine: str) -> str:
    """Release asset name for an OS/architecture pair.

    Raises:
        UnsupportedPlatformError: If minikube ships no binary for the pair
    """
    if system == "Linux":
        arch = _LINUX_ARCHES.get(machine.lower())
        if arch is None:
            raise UnsupportedPlatformError(f"Unsupported architecture: {machine} on Linux")
        return f"minikube-linux-{arch}"
    if system == "Darwin":
        return "minikube-darwin-arm64" if machine == "arm64" else "minikube-darwin-amd64"
    raise UnsupportedPlatformError(
        f"Unsupported OS: {system}", "minikube can be installed automatically on Linux and macOS"
    )


def minikube_download_url(system: str | None = None, machine: str | None = None) -> str:
    system = system or platform.system()
    machine = machine or platform.machine()
    return f"{MINIKUBE_RELEASE_URL}/{minikube_asset(system, machine)}"


def download(url: str, dest: Path, show_progress: bool = True) -> Path:
    """Stream url to dest with a progress bar.

    Raises:
        DevClusterError: If the download fails
    """
    logger.info(f"Downloading {url} to {dest}")
    try:
        with requests.get(url, stream=True, timeout=30) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0)) or None
            with Progress(
                TextColumn("[cyan]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                disable=not show_progress,
            ) as progress:
                task = progress.add_task(dest.name, total=total)
                with open(dest, "wb") as f:
                    for chunk in response.iter_content(chunk_size=1 << 16):
                        f.write(chunk)
                        progress.update(task, advance=len(chunk))
    except requests.RequestException as e:
        raise DevClusterError(f"Failed to download {url}", str(e)) from e
    return dest


def install_minikube(
    runner: CommandRunner,
    install_dir: Path,
    download_dir: Path,
    system: str | None = None,
    machine: str | None = None,
    show_progress: bool = True,
) -> Path:
    """Download the minikube binary for this machine and install it.

    Uses sudo when install_dir is not writable by the current user.

    Returns:
        Path of the installed binary
    """
    url = minikube_download_url(system, machine)
    download_dir.mkdir(parents=True, exist_ok=True)
    asset = download(url, download_dir / url.rsplit("/", 1)[-1], show_progress=show_progress)

    target = Path(install_dir) / "minikube"
    cmd = ["install", str(asset), str(target)]
    if not os.access(install_dir, os.W_OK):
        cmd = ["sudo", *cmd]
    runner.run(cmd, capture_output=False)
    asset.unlink(missing_ok=True)
    logger.info(f"Installed minikube to {target}")
    return target
