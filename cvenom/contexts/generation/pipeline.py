"""
Generation Pipeline

Turns a GenerationRequest into PDF bytes:

    check profile files -> create workspace -> stage (files, images, template)
    -> compile -> read PDF -> remove workspace

The workspace is removed on every path. Errors surface as CvenomError subclasses whose
to_dict() is the response contract of the request layer.
"""

import asyncio
import os
import subprocess
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from cvenom.contexts.generation.exceptions import GenerationCancelled
from cvenom.contexts.generation.logger import (
    _log_debug,
    _log_warning,
    log_generation_failed,
    log_generation_result,
    log_generation_start,
)
from cvenom.contexts.rendering.compiler import CompilerProcess, DocumentCompiler
from cvenom.contexts.rendering.exceptions import CompilationTimedOut, WorkspaceIOError
from cvenom.contexts.rendering.workspace import WorkspaceBuilder
from cvenom.contexts.templating.exceptions import InvalidProfileName
from cvenom.contexts.templating.template_registry import DEFAULT_TEMPLATE_ID, TemplateRegistry
from cvenom.utils.errors import CvenomError
from cvenom.utils.naming import (
    DEFAULT_LANGUAGE,
    normalize_language,
    normalize_profile_name,
    suggested_filename,
)

load_dotenv()

# 0 disables the deadline
COMPILE_TIMEOUT_S = float(os.getenv("CVENOM_COMPILE_TIMEOUT_S", "60"))
MAX_CONCURRENT_COMPILES = int(os.getenv("CVENOM_MAX_CONCURRENT_COMPILES", "4"))


@dataclass
class GenerationRequest:
    """
    One CV generation request. Identifiers are normalized on construction.

    Attributes:
        profile: Profile name (lowercased, non-alphanumerics collapsed to '-')
        tenant_data_dir: Tenant-scoped data root holding profile directories
        language: Language code in {en, fr, es, de}
        template_id: Requested template (unknown ids fall back to 'default')
        workspace_root: Parent directory for the workspace (None for the default)
    """

    profile: str
    tenant_data_dir: Path
    language: str = DEFAULT_LANGUAGE
    template_id: str = DEFAULT_TEMPLATE_ID
    workspace_root: Optional[Path] = None

    def __post_init__(self):
        normalized = normalize_profile_name(self.profile)
        if not normalized:
            raise InvalidProfileName(self.profile)
        self.profile = normalized
        self.tenant_data_dir = Path(self.tenant_data_dir).resolve()
        self.language = normalize_language(self.language)
        self.template_id = self.template_id or DEFAULT_TEMPLATE_ID
        if self.workspace_root is not None:
            self.workspace_root = Path(self.workspace_root).resolve()


@dataclass
class CompiledArtifact:
    """
    A generated CV.

    Attributes:
        output_path: Where the compiler wrote the PDF (already deleted with the workspace)
        pdf_bytes: PDF content
        filename: Suggested download name, <profile>_CV_<year>.pdf
        template_id: Template that was actually used
        language: Language the CV was generated in
        warnings: Non-fatal problems met while staging
    """

    output_path: Path
    pdf_bytes: bytes
    filename: str
    template_id: str
    language: str
    warnings: List[CvenomError] = field(default_factory=list)


class _GenerationHandle:
    """
    Cancellation state shared by generate_async() and the worker thread serving it.

    cancel() may be called from the event loop at any point; the worker checks it
    between steps, and a compiler already running is killed straight away.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.cancelled = False
        self.job: Optional[CompilerProcess] = None
        self.workspace_dir: Optional[Path] = None

    def attach(self, job: CompilerProcess) -> None:
        with self._lock:
            self.job = job
            if self.cancelled:
                job.kill()

    def cancel(self) -> None:
        with self._lock:
            self.cancelled = True
            if self.job is not None:
                self.job.kill()

    def raise_if_cancelled(self, profile: str) -> None:
        if self.cancelled:
            raise GenerationCancelled(profile)


class GenerationPipeline:
    """
    Orchestrates registry, workspace builder and compiler for each request.

    The registry snapshot is shared read-only; every request gets its own workspace,
    so generate() is safe to call from several threads at once. The pipeline owns the
    compiler child: it applies the deadline and kills the child on timeout or
    cancellation.
    """

    def __init__(
        self,
        registry: TemplateRegistry = None,
        compiler: DocumentCompiler = None,
        workspace_root: Path = None,
        timeout: Optional[float] = COMPILE_TIMEOUT_S,
        max_workers: int = MAX_CONCURRENT_COMPILES,
    ):
        """
        Args:
            registry: Template registry (default: discovered from CVENOM_TEMPLATES_PATH)
            compiler: Document compiler (default: TYPST_COMPILER)
            workspace_root: Default parent directory for workspaces
            timeout: Compile deadline in seconds; 0 or None disables it
            max_workers: Size of the pool used by generate_async()
        """
        self.registry = registry or TemplateRegistry()
        self.compiler = compiler or DocumentCompiler()
        self.builder = WorkspaceBuilder(self.registry, workspace_root)
        self.timeout = timeout or None
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="cvenom-compile"
        )

    def generate(self, request: GenerationRequest) -> CompiledArtifact:
        """
        Generate a CV synchronously. Blocks for the duration of the compile.

        Args:
            request: What to generate

        Returns:
            CompiledArtifact with the PDF bytes

        Raises:
            ProfileNotFound, RequiredFileMissing: Before any workspace is created
            TemplateMainFileMissing: If the resolved template is unusable
            CompilationFailed: If the compiler fails
            CompilationTimedOut: If the compile deadline passes
            WorkspaceIOError: If staging, reading or cleanup fails
        """
        return self._generate(request, _GenerationHandle())

    def _generate(self, request: GenerationRequest, handle: _GenerationHandle) -> CompiledArtifact:
        log_generation_start(request)
        start_time = time.time()

        try:
            artifact = self._run(request, handle)
        except CvenomError as e:
            log_generation_failed(request, e)
            raise

        log_generation_result(request, artifact, time.time() - start_time)
        return artifact

    def _run(self, request: GenerationRequest, handle: _GenerationHandle) -> CompiledArtifact:
        handle.raise_if_cancelled(request.profile)
        # Fail fast, before any directory is created
        self.builder.check_inputs(request)

        try:
            with self.builder.workspace_scope(
                request.profile, request.workspace_root
            ) as workspace_dir:
                handle.workspace_dir = workspace_dir
                staged = self.builder.stage(request, workspace_dir)
                handle.raise_if_cancelled(request.profile)
                _log_debug(f"Compiling with template '{staged.template_id}'")

                job = self.compiler.start(
                    workspace_dir, request.profile, staged.template_id, request.language
                )
                handle.attach(job)
                stdout, stderr = self._wait(job)
                # A killed child exits non-zero; report the cancellation instead
                handle.raise_if_cancelled(request.profile)
                result = self.compiler.finish(job, stdout, stderr)

                return CompiledArtifact(
                    output_path=result.pdf_path,
                    pdf_bytes=result.pdf_bytes,
                    filename=suggested_filename(request.profile),
                    template_id=staged.template_id,
                    language=request.language,
                    warnings=staged.warnings,
                )
        except OSError as e:
            path = Path(e.filename) if e.filename else None
            raise WorkspaceIOError("Workspace file operation failed", path, e) from e

    def _wait(self, job: CompilerProcess) -> Tuple[str, str]:
        """Wait for the compiler under the deadline, killing it when the deadline passes."""
        try:
            return job.wait(self.timeout)
        except subprocess.TimeoutExpired as e:
            job.kill()
            stdout, stderr = job.wait()
            raise CompilationTimedOut(self.timeout, stdout or "", stderr or "") from e

    async def generate_async(self, request: GenerationRequest) -> CompiledArtifact:
        """
        Generate a CV without blocking the event loop.

        The blocking generate() runs on the pipeline's bounded thread pool, so at most
        max_workers compiles run at once. If the awaiting task is cancelled, the
        compiler child is killed and the workspace removed before the cancellation
        propagates.
        """
        handle = _GenerationHandle()
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, self._generate, request, handle)

        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            _log_warning(f"Generation for '{request.profile}' cancelled")
            handle.cancel()
            try:
                await future
            except CvenomError as e:
                _log_debug(f"Cancelled generation for '{request.profile}' ended with {e.code}")
            finally:
                if handle.workspace_dir is not None:
                    self.builder.teardown(handle.workspace_dir)
            raise

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool used by generate_async()."""
        self._executor.shutdown(wait=wait)
