"""
Templating context logger.

Provides logging interface for templating context with automatic [template] prefix.
All templating modules should import from this module, not from loguru directly.
"""

from pathlib import Path

from loguru import logger

CONTEXT_PREFIX = "[template]"


# Wrapper functions with automatic [template] prefix


def _log_info(message: str) -> None:
    """Log info message with [template] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [template] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [template] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [template] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [template] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level templating-specific logging helpers


def log_discovery_result(templates_root: Path, template_ids: list, origin_of_default: str) -> None:
    """Log the outcome of a template discovery pass."""
    _log_info(f"Loaded {len(template_ids)} templates from {templates_root}")
    _log_debug(f"  Templates: {', '.join(sorted(template_ids))}")
    _log_debug(f"  Default template origin: {origin_of_default}")


def log_staging_result(template_id: str, workspace_dir: Path, result) -> None:
    """
    Log the template files staged into a workspace.

    Args:
        template_id: Resolved template identifier
        workspace_dir: Target workspace
        result: TemplateStagingResult from prepare_workspace()
    """
    _log_debug(f"Staged template '{template_id}' into {workspace_dir}")
    _log_debug(f"  Main file: {result.main_file.name}")
    for dependency in result.copied_dependencies:
        _log_debug(f"  Dependency: {dependency}")
    if result.missing_dependencies:
        _log_warning(
            f"Template '{template_id}' staged with {len(result.missing_dependencies)} "
            "missing dependencies; compilation may fail"
        )
