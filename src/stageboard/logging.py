"""Logging configuration for stageboard."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers that get the same handlers at -vv
WIRE_LOGGERS = ("httpx",)


def _level_for(verbose: int) -> int:
    return logging.DEBUG if verbose >= 2 else logging.INFO


def setup_logging(verbose: int = 0, log_file: Path | None = None) -> None:
    """Configure the `stageboard` logger.

    Nothing is configured unless asked for: the TUI owns the terminal, so
    stderr output only appears with `-v`. A log file works without `-v` and
    is the usual way to debug the interactive app.

    Args:
        verbose: 0 = off, 1 = INFO, 2+ = DEBUG plus httpx request logs
        log_file: Optional file to append logs to
    """
    if verbose == 0 and log_file is None:
        return

    level = _level_for(verbose)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = []

    if verbose > 0:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    names = ["stageboard"]
    if verbose >= 2:
        names.extend(WIRE_LOGGERS)

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    for name in names:
        target = logging.getLogger(name)
        target.setLevel(level)
        for handler in handlers:
            target.addHandler(handler)

    logger = logging.getLogger("stageboard")
    started = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("=" * 60)
    logger.info("stageboard %s | level=%s", started, logging.getLevelName(level))
    logger.info("=" * 60)
