"""
Logging utilities with Rich integration.

This module provides console logging setup and the per-job diagnostic log
file that keeps the complete output of every external tool a job runs.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Optional

from rich.console import Console
from rich.logging import RichHandler

JOB_LOG_NAME = "encodeher.log"


def setup_logger(
    name: str = "encodeher",
    level: str = "INFO",
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Setup logger with Rich handler and optional file output.

    Args:
        name: Logger name (use "encodeher" to match package name)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        verbose: Enable verbose output with file paths
        console: Rich console to use (creates new if None)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        markup=True,
        show_time=True,
        show_path=verbose,
        omit_repeated_times=False,
        level=log_level,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(rich_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_logger(name: str = "encodeher") -> logging.Logger:
    """
    Get a logger instance.

    Modules call get_logger(__name__); names like "encodeher.inspector.analyzer"
    inherit the handlers configured on the "encodeher" logger by setup_logger().

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class JobLog:
    """
    Diagnostic trail for a single job.

    Raw tool output is appended verbatim, grouped into nested named regions:

        !BEGIN Encoding videos!
            !BEGIN Video 720p!
            ...
            !END Video 720p!
        !END Encoding videos!
        !!! LOG END, REASON: Done! !!!
    """

    def __init__(self, base_dir: Path, name: str = JOB_LOG_NAME):
        self.path = base_dir / name
        self._out: Optional[IO[str]] = open(self.path, "w", encoding="utf-8")
        self._tags: list[str] = []

    @property
    def closed(self) -> bool:
        return self._out is None

    @property
    def depth(self) -> int:
        return len(self._tags)

    def append(self, text: str) -> None:
        """Append raw text; ignored once the log is closed."""
        if self._out is None:
            return
        self._out.write(text)
        self._out.flush()

    def begin(self, tag: str = "REGION") -> None:
        padding = " " * (len(self._tags) * 4)
        self._tags.append(tag)
        self.append(f"\n{padding}!BEGIN {tag}!\n\n")

    def end(self) -> None:
        if not self._tags:
            return
        tag = self._tags.pop()
        padding = " " * (len(self._tags) * 4)
        self.append(f"\n{padding}!END {tag}!\n\n")

    @contextmanager
    def region(self, tag: str) -> Iterator["JobLog"]:
        """Wrap a block in BEGIN/END markers, closing the region on any exit path."""
        self.begin(tag)
        try:
            yield self
        finally:
            self.end()

    def close(self, reason: str = "Finished") -> None:
        """Close every open region, write the end marker and release the file."""
        if self._out is None:
            return
        while self._tags:
            self.end()
        self.append(f"!!! LOG END, REASON: {reason} !!!\n")
        self._out.close()
        self._out = None
