"""Exceptions for the rendering context: image validation, workspaces and compilation."""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from cvenom.utils.errors import CvenomError


class ImageErrorType(str, Enum):
    """Why an image was rejected; the value is the public error code."""

    NOT_FOUND = "IMAGE_NOT_FOUND"
    CORRUPTED = "IMAGE_CORRUPTED"
    WRONG_FORMAT = "IMAGE_WRONG_FORMAT"
    EMPTY = "IMAGE_EMPTY"
    TOO_LARGE = "IMAGE_TOO_LARGE"
    UNREADABLE = "IMAGE_UNREADABLE"


class ImageValidationFailed(CvenomError):
    """
    An image that failed signature or size validation.

    Non-fatal during staging: the image is skipped and the instance is attached to the
    artifact's warnings.

    Attributes:
        path: Offending image file
        error_type: ImageErrorType (its value is also exposed as .code)
        suggestion: Single remediation hint
    """

    def __init__(self, path: Path, error_type: ImageErrorType, message: str, suggestion: str):
        self.path = path
        self.error_type = error_type
        self.suggestion = suggestion
        super().__init__(
            f"{message}: {path.name}",
            code=error_type.value,
            suggestions=[suggestion],
        )


class CompilationFailed(CvenomError):
    """
    Raised when the document compiler fails or produces no output.

    Attributes:
        returncode: Compiler exit status (None when it never ran)
        stdout: Compiler standard output
        stderr: Compiler standard error
    """

    code = "COMPILATION_FAILED"

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        code: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

        parts = [message]
        if stderr.strip():
            parts.append(f"Compiler output: {stderr.strip()}")

        super().__init__(
            "\n".join(parts),
            code=code,
            suggestions=suggestions
            or [
                "Check the profile's cv_params.toml and experiences files for syntax errors",
                "Try another template",
            ],
        )


class CompilationTimedOut(CvenomError):
    """
    Raised when compilation exceeds its deadline. The compiler process is killed.

    Attributes:
        timeout: Deadline in seconds
        stdout: Output captured before the process was killed
        stderr: Error output captured before the process was killed
    """

    code = "COMPILATION_TIMEOUT"

    def __init__(self, timeout: float, stdout: str = "", stderr: str = ""):
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"Compilation timed out after {timeout:g}s",
            suggestions=[
                "Retry the request",
                "Reduce the size of the profile image",
            ],
        )


class WorkspaceIOError(CvenomError):
    """
    Raised when staging, reading or removing workspace files fails.

    Attributes:
        path: File or directory involved (if known)
        original_error: Underlying OSError
    """

    code = "IO_ERROR"

    def __init__(
        self, message: str, path: Optional[Path] = None, original_error: Optional[Exception] = None
    ):
        self.path = path
        self.original_error = original_error

        parts = [message]
        if path is not None:
            parts.append(f"Path: {path}")
        if original_error:
            parts.append(f"Original error: {original_error}")

        super().__init__(
            "\n".join(parts),
            suggestions=["Retry the request", "Contact system administrator"],
        )
