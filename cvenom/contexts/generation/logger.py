"""
Generation context logger.

Provides logging interface for the generation pipeline with automatic [generate] prefix.
All generation modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[generate]"


# Wrapper functions with automatic [generate] prefix


def _log_info(message: str) -> None:
    """Log info message with [generate] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [generate] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [generate] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [generate] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [generate] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level generation-specific logging helpers


def log_generation_start(request) -> None:
    _log_info(
        f"Generating CV: profile={request.profile} lang={request.language} "
        f"template={request.template_id}"
    )
    _log_debug(f"  Tenant data: {request.tenant_data_dir}")


def log_generation_result(request, artifact, elapsed_time: float) -> None:
    """
    Log a finished generation.

    Args:
        request: GenerationRequest that was served
        artifact: CompiledArtifact returned to the caller
        elapsed_time: Total time including staging and teardown
    """
    _log_success(
        f"Generated {artifact.filename} for '{request.profile}' "
        f"({len(artifact.pdf_bytes)} bytes, {elapsed_time:.2f}s)"
    )
    if artifact.warnings:
        _log_warning(f"{len(artifact.warnings)} warnings while generating '{request.profile}'")
        for warning in artifact.warnings:
            _log_debug(f"  {warning.code}: {warning.message}")


def log_generation_failed(request, error) -> None:
    _log_error(f"Generation failed for '{request.profile}': [{error.code}] {error.message}")
