"""
Rendering Context

Responsibilities:
- Creates and removes isolated per-request workspaces
- Stages profile files and validated images into a workspace
- Compiles a staged workspace to PDF with Typst
- Reports compiler errors with their diagnostic output

Owns: Workspaces, image validation, Typst compilation
Never: Modifies profile content or templates
"""

from cvenom.contexts.rendering.compiler import (
    CompilationResult,
    CompilerProcess,
    DocumentCompiler,
)
from cvenom.contexts.rendering.exceptions import (
    CompilationFailed,
    CompilationTimedOut,
    ImageErrorType,
    ImageValidationFailed,
    WorkspaceIOError,
)
from cvenom.contexts.rendering.image_validator import validate_image
from cvenom.contexts.rendering.workspace import StagedWorkspace, WorkspaceBuilder

__all__ = [
    "WorkspaceBuilder",
    "StagedWorkspace",
    "DocumentCompiler",
    "CompilationResult",
    "CompilerProcess",
    "validate_image",
    # Errors
    "CompilationFailed",
    "CompilationTimedOut",
    "ImageErrorType",
    "ImageValidationFailed",
    "WorkspaceIOError",
]
