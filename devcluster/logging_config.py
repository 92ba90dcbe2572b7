"""Logging configuration for devcluster.

Log records go to stderr (WARNING and above, everything with ``--verbose``)
and optionally to a file that always records DEBUG, including the output of
every kind, minikube, docker and kubectl call. Progress meant for the user is
printed with rich by the CLI, not logged.
"""

import logging
import sys
from pathlib import Path

from devcluster.exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# HTTP clients log every request at DEBUG
QUIET_LOGGERS = ("urllib3", "requests", "kubernetes")


def resolve_level(level: str, verbose: bool = False) -> int:
    """Map a level name to its logging constant; ``verbose`` forces DEBUG.

    Raises:
        ConfigurationError: If the name is not a standard level
    """
    if verbose:
        return logging.DEBUG
    name = level.strip().upper()
    if name not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log level '{level}'", f"Use one of: {', '.join(LOG_LEVELS)}"
        )
    return getattr(logging, name)


def _stderr_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(log_file: Path, formatter: logging.Formatter) -> logging.Handler | None:
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file)
    except OSError as e:
        logging.warning(f"Failed to open log file {log_file}: {e}")
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str = "WARNING", log_file: Path | None = None, verbose: bool = False
) -> None:
    """Configure the root logger for one CLI invocation.

    A log file always records DEBUG, whatever ``level`` is.

    Args:
        level: Lowest level shown on stderr (WARNING by default)
        log_file: Optional path to log file; parent directories are created
        verbose: If True, log everything to stderr as well

    Raises:
        ConfigurationError: If level is not a standard level name
    """
    console_level = resolve_level(level, verbose)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(_stderr_handler(console_level, formatter))

    root_level = console_level
    if log_file:
        file_handler = _file_handler(log_file, formatter)
        if file_handler is not None:
            root_logger.addHandler(file_handler)
            root_level = logging.DEBUG
    root_logger.setLevel(root_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_output(logger: logging.Logger, tool: str, text: str | None) -> None:
    """Log captured output of an external tool at DEBUG, one record per line."""
    if not text or not logger.isEnabledFor(logging.DEBUG):
        return
    for line in text.splitlines():
        if line.strip():
            logger.debug(f"[{tool}] {line.rstrip()}")
