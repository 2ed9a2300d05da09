"""
Typst Compilation Module

Runs the Typst compiler against a staged workspace and returns the PDF bytes.
"""

import os
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from cvenom.contexts.rendering.exceptions import CompilationFailed, ImageValidationFailed
from cvenom.contexts.rendering.image_validator import validate_image
from cvenom.contexts.rendering.logger import (
    _log_warning,
    log_compilation_result,
    log_compilation_start,
)
from cvenom.contexts.rendering.workspace import (
    LOGO_FILENAME,
    PROFILE_IMAGE_EXTENSIONS,
    PROFILE_IMAGE_STEM,
)
from cvenom.contexts.templating.exceptions import TemplateMainFileMissing
from cvenom.contexts.templating.template_registry import WORKSPACE_MAIN_FILENAME
from cvenom.utils.naming import compiled_pdf_name

load_dotenv()

TYPST_COMPILER = os.getenv("TYPST_COMPILER", "typst")


@dataclass
class CompilationResult:
    """
    Result of a Typst compilation.

    Attributes:
        success: Whether compilation succeeded
        pdf_path: Path to generated PDF (inside the workspace unless overridden)
        pdf_bytes: PDF content, read fully into memory
        stdout: Standard output from typst
        stderr: Standard error from typst
        returncode: Exit status of the compiler
        elapsed_time: Wall-clock compile time in seconds
        command: Command line that was run
    """

    success: bool
    pdf_path: Optional[Path] = None
    pdf_bytes: bytes = b""
    stdout: str = ""
    stderr: str = ""
    returncode: Optional[int] = None
    elapsed_time: float = 0.0
    command: List[str] = field(default_factory=list)


def _usable_image(path: Path) -> bool:
    """True if path exists and passes validation; rejected images are logged."""
    try:
        return validate_image(path)
    except ImageValidationFailed as e:
        _log_warning(f"Not binding image: {e.message}")
        return False


class DocumentCompiler:
    """Invokes the external compiler on a staged workspace."""

    def __init__(self, compiler: str = None):
        """
        Args:
            compiler: Compiler executable. Defaults to TYPST_COMPILER from environment
        """
        self.compiler = compiler or TYPST_COMPILER

    def build_command(self, workspace_dir: Path, output_path: Path, language: str) -> List[str]:
        """
        Build the compiler command line for a workspace.

        Image inputs are only bound when the staged file is present and valid, so the
        layout can test for them with sys.inputs.
        """
        command = [
            self.compiler,
            "compile",
            str(workspace_dir / WORKSPACE_MAIN_FILENAME),
            str(output_path),
            "--input",
            f"lang={language}",
        ]

        if _usable_image(workspace_dir / LOGO_FILENAME):
            command += ["--input", f"{LOGO_FILENAME}={LOGO_FILENAME}"]

        for ext in PROFILE_IMAGE_EXTENSIONS:
            picture = workspace_dir / f"{PROFILE_IMAGE_STEM}{ext}"
            if _usable_image(picture):
                command += ["--input", f"picture={picture.name}"]
                break

        return command

    def start(
        self,
        workspace_dir: Path,
        profile: str,
        template_id: str,
        language: str,
        output_path: Optional[Path] = None,
    ) -> "CompilerProcess":
        """
        Launch the compiler on a staged workspace without waiting for it.

        The caller owns the returned handle: it decides how long to wait and kills the
        child on deadline or cancellation, then passes the output to finish().

        Args:
            workspace_dir: Workspace prepared by WorkspaceBuilder.stage()
            profile: Profile name (used in the output filename and logs)
            template_id: Template that was staged
            language: Language passed to the layout as the 'lang' input
            output_path: PDF destination (default: <workspace>/{profile}_{template}_{lang}.pdf)

        Returns:
            CompilerProcess wrapping the running child

        Raises:
            TemplateMainFileMissing: If main.typ was not staged
            CompilationFailed: If the compiler executable cannot be found
        """
        workspace_dir = Path(workspace_dir).resolve()
        main_file = workspace_dir / WORKSPACE_MAIN_FILENAME
        if not main_file.is_file():
            raise TemplateMainFileMissing(template_id, main_file)

        if output_path is None:
            output_path = workspace_dir / compiled_pdf_name(profile, template_id, language)
        output_path = Path(output_path).resolve()

        command = self.build_command(workspace_dir, output_path, language)
        log_compilation_start(profile, main_file, output_path, command)

        start_time = time.time()
        try:
            process = subprocess.Popen(
                command,
                cwd=workspace_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",  # Replace invalid UTF-8 bytes instead of crashing
            )
        except FileNotFoundError as e:
            raise CompilationFailed(
                f"Compiler not found: {self.compiler}",
                code="COMPILER_NOT_FOUND",
                suggestions=[
                    "Install Typst (https://typst.app)",
                    "Set TYPST_COMPILER to the compiler's path",
                ],
            ) from e

        return CompilerProcess(
            process=process,
            profile=profile,
            output_path=output_path,
            command=command,
            start_time=start_time,
        )

    def finish(self, job: "CompilerProcess", stdout: str, stderr: str) -> CompilationResult:
        """
        Turn an exited compiler process into a CompilationResult.

        Raises:
            CompilationFailed: If the compiler exited non-zero or wrote no PDF
            OSError: If the PDF cannot be read
        """
        returncode = job.process.returncode
        result = CompilationResult(
            success=returncode == 0 and job.output_path.is_file(),
            pdf_path=job.output_path,
            stdout=stdout or "",
            stderr=stderr or "",
            returncode=returncode,
            elapsed_time=time.time() - job.start_time,
            command=job.command,
        )

        if not result.success:
            log_compilation_result(job.profile, result)
            if returncode != 0:
                message = f"Compilation failed for '{job.profile}' (exit code {returncode})"
            else:
                message = f"Compiler exited successfully but wrote no PDF for '{job.profile}'"
            raise CompilationFailed(
                message,
                returncode=returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        result.pdf_bytes = job.output_path.read_bytes()
        log_compilation_result(job.profile, result)
        return result

    def compile(
        self,
        workspace_dir: Path,
        profile: str,
        template_id: str,
        language: str,
        output_path: Optional[Path] = None,
    ) -> CompilationResult:
        """
        Compile a staged workspace to PDF, waiting for the compiler to exit.

        No deadline is applied here; GenerationPipeline enforces one through
        start() and the process handle.
        """
        job = self.start(workspace_dir, profile, template_id, language, output_path)
        stdout, stderr = job.wait()
        return self.finish(job, stdout, stderr)


@dataclass
class CompilerProcess:
    """
    A running compiler child.

    wait() must only be called from the thread that owns the request. kill() may be
    called from any thread; the owner's wait() then returns.
    """

    process: subprocess.Popen
    profile: str
    output_path: Path
    command: List[str]
    start_time: float

    def wait(self, timeout: Optional[float] = None) -> Tuple[str, str]:
        """
        Wait for exit and collect output.

        Raises:
            subprocess.TimeoutExpired: If timeout passes; the child is still running
        """
        return self.process.communicate(timeout=timeout)

    def kill(self) -> None:
        if self.process.poll() is None:
            _log_warning(f"Killing compiler for '{self.profile}' (pid {self.process.pid})")
            self.process.kill()
