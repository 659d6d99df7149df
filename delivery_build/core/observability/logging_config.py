"""
Logging for the delivery-build CLI.

``configure_from_cli`` is called once by the click group. Console
verbosity comes from the flags, falling back to DELIVERY_BUILD_LOG_LEVEL
and then WARNING; DELIVERY_BUILD_LOG_FILE adds a file handler whose level
is DELIVERY_BUILD_LOG_FILE_LEVEL (default: the console level).

At WARNING the console shows only the message, so a failing build prints
the failure and nothing else; INFO adds one timestamped line per task.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

LOG_LEVEL_ENV = "DELIVERY_BUILD_LOG_LEVEL"
LOG_FILE_ENV = "DELIVERY_BUILD_LOG_FILE"
LOG_FILE_LEVEL_ENV = "DELIVERY_BUILD_LOG_FILE_LEVEL"

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

# (highest level the format applies to, format, datefmt), checked in order
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)


def parse_level(level: str | None) -> int:
    """Level name to its numeric constant; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Console level name from the CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(LOG_LEVEL_ENV, "WARNING")


def _console_formatter(level: int) -> logging.Formatter:
    for ceiling, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= ceiling:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter("%(message)s")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path of a log file, always written in full detail.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_DETAILED, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    logging.raiseExceptions = False


def configure_from_cli(debug: bool = False, verbose: bool = False, quiet: bool = False) -> None:
    """Set up logging for one CLI invocation."""
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )
