"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from cvenom.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path) -> Path:
    """
    Setup logger for a rendering session.

    Args:
        log_dir: Directory for this rendering session

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"Typst compiler": os.getenv("TYPST_COMPILER", "typst")},
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_compilation_start(profile: str, main_file: Path, output_path: Path, command: list) -> None:
    """Log start of compilation with context."""
    _log_info(f"Starting compilation: {profile}")
    _log_debug(f"  Source: {main_file}")
    _log_debug(f"  Output: {output_path}")
    _log_debug(f"  Command: {' '.join(command)}")


def log_compilation_result(
    profile: str,
    result,  # CompilationResult
    verbose: bool = False,
) -> None:
    """
    Log compilation result with the compiler's output.

    Args:
        profile: Profile being compiled
        result: CompilationResult from DocumentCompiler.compile()
        verbose: Dump compiler output even on success (default: False)
    """
    if result.success:
        _log_success(
            f"{profile}: compiled {len(result.pdf_bytes)} bytes ({result.elapsed_time:.2f}s)"
        )
        _log_debug(f"  PDF: {result.pdf_path}")
    else:
        _log_error(
            f"{profile}: compilation failed with exit code {result.returncode} "
            f"({result.elapsed_time:.2f}s)"
        )

    # Raw output keeps multi-line compiler diagnostics readable
    if verbose or not result.success:
        if result.stdout:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nTYPST STDOUT:\n{'=' * 80}\n{result.stdout}\n"
            )
        if result.stderr:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nTYPST STDERR:\n{'=' * 80}\n{result.stderr}\n"
            )


def log_workspace_staged(profile: str, workspace_dir: Path, staged) -> None:
    """Log what ended up in a staged workspace."""
    _log_info(f"Staged workspace for '{profile}': {workspace_dir}")
    _log_debug(f"  Picture: {staged.picture.name if staged.picture else 'none'}")
    _log_debug(f"  Logo: {staged.logo.name if staged.logo else 'none'}")
    for warning in staged.warnings:
        _log_warning(f"  {warning.code}: {warning.message}")
