"""Exceptions for the generation context."""

from cvenom.utils.errors import CvenomError


class GenerationCancelled(CvenomError):
    """
    Raised inside a worker when its request was cancelled.

    The compiler child has been killed by then; raising unwinds the workspace scope so
    the workspace is removed.
    """

    code = "GENERATION_CANCELLED"

    def __init__(self, profile: str):
        self.profile = profile
        super().__init__(f"Generation for '{profile}' was cancelled")
