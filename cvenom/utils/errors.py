"""Base error type shared by every context."""

from typing import Any, Dict, List, Optional


class CvenomError(Exception):
    """
    Base exception carrying a stable machine-readable code and remediation hints.

    The (error_code, suggestions) pair is the contract with the request layer, which
    serializes it with to_dict().

    Attributes:
        message: Human-readable description
        code: Stable machine-readable error code (e.g. "PROFILE_NOT_FOUND")
        suggestions: Remediation steps for the user
    """

    code = "CVENOM_ERROR"
    default_suggestions: List[str] = []

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.suggestions = list(suggestions) if suggestions is not None else list(
            self.default_suggestions
        )
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "error_code": self.code,
            "suggestions": self.suggestions,
        }
