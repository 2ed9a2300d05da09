"""
Generation Context

Responsibilities:
- Orchestrates one CV generation: resolve template, stage, compile, tear down
- Enforces the compile deadline
- Runs blocking generations on a bounded worker pool for async callers

Owns: GenerationRequest / CompiledArtifact, request lifecycle
Never: Parses profile content or invokes the compiler directly
"""

from cvenom.contexts.generation.exceptions import GenerationCancelled
from cvenom.contexts.generation.pipeline import (
    CompiledArtifact,
    GenerationPipeline,
    GenerationRequest,
)

__all__ = [
    "GenerationPipeline",
    "GenerationRequest",
    "CompiledArtifact",
    "GenerationCancelled",
]
