"""
Session logging for CVenom entry points.

A session gets one log file (everything from DEBUG up) and a colorized console sink.
The first lines of every log file record how the session was started, so a PDF can be
traced back to the command, interpreter and compiler that produced it.

Contexts wrap this in their own logger.py (e.g. contexts/rendering/logger.py).
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

import cvenom

load_dotenv()

CONSOLE_LOG_LEVEL = os.getenv("CVENOM_CONSOLE_LOG_LEVEL", "INFO")

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {thread.name} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"

LEVEL_COLORS = {
    "SUCCESS": "<green>",
    "WARNING": "<yellow>",
    "ERROR": "<red>",
}


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: dict = None,
    console_level: str = CONSOLE_LOG_LEVEL,
) -> Path:
    """
    Replace loguru's sinks with a session file and a console sink.

    Meant for CLI entry points only. It swaps the global sinks, so concurrent
    request handlers must not call it.

    Args:
        context_name: Session name, used for the log filename (e.g. "render")
        log_dir: Directory for this session; created if missing
        extra_provenance: Extra lines for the provenance header
        console_level: Minimum level echoed to the console

    Returns:
        Path to the session log file
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    # enqueue: compiles on the worker pool log from several threads
    logger.add(log_file, format=FILE_FORMAT, level="DEBUG", enqueue=True)
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(extra_provenance)
    return log_file


def log_provenance(extra_context: dict = None) -> None:
    """Write the session header: command line, interpreter, package version."""
    header = {
        "Command": " ".join(sys.argv),
        "Working directory": Path.cwd(),
        "Python": sys.version.split()[0],
        "cvenom": cvenom.__version__,
        **(extra_context or {}),
    }

    logger.debug("-" * 60)
    for key, value in header.items():
        logger.debug(f"{key}: {value}")
    logger.debug("-" * 60)
