"""
Workspace Builder

Creates one isolated directory per generation request, stages the profile's files and
the template into it, and removes it afterwards.

Staged layout:
    <workspace>/cv_params.toml
    <workspace>/experiences.typ
    <workspace>/profile.<png|jpg|jpeg>     (optional)
    <workspace>/company_logo.png           (optional)
    <workspace>/main.typ + template dependencies
    <workspace>/font_config.typ            (optional)

All paths are absolute; the process working directory is never changed, so concurrent
requests cannot see each other's files.
"""

import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from dotenv import load_dotenv

from cvenom.contexts.rendering.exceptions import ImageValidationFailed, WorkspaceIOError
from cvenom.contexts.rendering.image_validator import validate_image
from cvenom.contexts.rendering.logger import (
    _log_debug,
    _log_error,
    _log_warning,
    log_workspace_staged,
)
from cvenom.contexts.templating.exceptions import ProfileNotFound, RequiredFileMissing
from cvenom.contexts.templating.profiles import CONFIG_FILENAME, markup_filename
from cvenom.contexts.templating.template_registry import TemplateRegistry
from cvenom.utils.errors import CvenomError

load_dotenv()
# Empty means the system temporary directory
WORKSPACE_PATH = os.getenv("CVENOM_WORKSPACE_PATH", "")

WORKSPACE_CONFIG_FILENAME = CONFIG_FILENAME
WORKSPACE_MARKUP_FILENAME = "experiences.typ"
LOGO_FILENAME = "company_logo.png"
PROFILE_IMAGE_STEM = "profile"
PROFILE_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg")


@dataclass
class StagedWorkspace:
    """
    A workspace ready for compilation.

    Attributes:
        directory: Absolute workspace directory
        main_file: Staged main.typ
        template_id: Template actually staged (after fallback)
        picture: Staged profile image, if a valid one was found
        logo: Staged company logo, if a valid one was found
        warnings: Non-fatal problems (rejected images, missing template dependencies)
    """

    directory: Path
    main_file: Path
    template_id: str
    picture: Optional[Path] = None
    logo: Optional[Path] = None
    warnings: List[CvenomError] = field(default_factory=list)


def workspace_root_from_env() -> Path:
    return Path(WORKSPACE_PATH or tempfile.gettempdir()).resolve()


class WorkspaceBuilder:
    """Creates, stages and tears down request workspaces."""

    def __init__(self, registry: TemplateRegistry, workspace_root: Path = None):
        """
        Args:
            registry: Template registry used to stage template files
            workspace_root: Parent directory for workspaces. Defaults to
                            CVENOM_WORKSPACE_PATH, or the system temp directory
        """
        self.registry = registry
        self.workspace_root = (
            Path(workspace_root).resolve() if workspace_root else workspace_root_from_env()
        )

    def create(self, workspace_root: Optional[Path], profile: str) -> Path:
        """
        Create a fresh, uniquely named workspace directory.

        Args:
            workspace_root: Parent directory (None for the builder's default)
            profile: Profile name, used as a readable prefix

        Returns:
            Absolute path of the new directory
        """
        root = Path(workspace_root).resolve() if workspace_root else self.workspace_root
        root.mkdir(parents=True, exist_ok=True)
        workspace_dir = Path(tempfile.mkdtemp(prefix=f"cvenom_{profile}_", dir=root)).resolve()
        _log_debug(f"Created workspace: {workspace_dir}")
        return workspace_dir

    @staticmethod
    def check_inputs(request) -> Tuple[Path, Path, Path]:
        """
        Verify a request's profile directory and required files.

        Args:
            request: GenerationRequest (profile, tenant_data_dir, language)

        Returns:
            (profile_dir, config_path, markup_path)

        Raises:
            ProfileNotFound: If the profile directory does not exist
            RequiredFileMissing: If cv_params.toml or experiences_<lang>.typ is absent
        """
        profile_dir = Path(request.tenant_data_dir).resolve() / request.profile
        if not profile_dir.is_dir():
            raise ProfileNotFound(request.profile, profile_dir)

        config_path = profile_dir / CONFIG_FILENAME
        markup_path = profile_dir / markup_filename(request.language)
        for path in (config_path, markup_path):
            if not path.is_file():
                raise RequiredFileMissing(path, request.profile)

        return profile_dir, config_path, markup_path

    def stage(self, request, workspace_dir: Path) -> StagedWorkspace:
        """
        Copy everything the compiler needs into a workspace.

        Rejected images are skipped and reported in the returned warnings, as are
        template dependencies that could not be found.

        Args:
            request: GenerationRequest to stage
            workspace_dir: Directory from create()

        Returns:
            StagedWorkspace

        Raises:
            ProfileNotFound, RequiredFileMissing: If the profile is incomplete
            TemplateMainFileMissing: If the template's main file is missing
            OSError: If copying fails
        """
        workspace_dir = Path(workspace_dir)
        profile_dir, config_path, markup_path = self.check_inputs(request)

        shutil.copyfile(config_path, workspace_dir / WORKSPACE_CONFIG_FILENAME)
        shutil.copyfile(markup_path, workspace_dir / WORKSPACE_MARKUP_FILENAME)

        warnings: List[CvenomError] = []

        picture_candidates = [
            profile_dir / f"{PROFILE_IMAGE_STEM}{ext}" for ext in PROFILE_IMAGE_EXTENSIONS
        ]
        picture_source = self._first_valid_image(picture_candidates, warnings)
        picture = None
        if picture_source is not None:
            picture = workspace_dir / f"{PROFILE_IMAGE_STEM}{picture_source.suffix.lower()}"
            shutil.copyfile(picture_source, picture)

        # Profile-level logo wins over the tenant-level default
        logo_candidates = [
            profile_dir / LOGO_FILENAME,
            Path(request.tenant_data_dir).resolve() / LOGO_FILENAME,
        ]
        logo_source = self._first_valid_image(logo_candidates, warnings)
        logo = None
        if logo_source is not None:
            logo = workspace_dir / LOGO_FILENAME
            shutil.copyfile(logo_source, logo)

        staging = self.registry.prepare_workspace(request.template_id, workspace_dir)
        warnings.extend(staging.missing_dependencies)

        staged = StagedWorkspace(
            directory=workspace_dir,
            main_file=staging.main_file,
            template_id=staging.template_id,
            picture=picture,
            logo=logo,
            warnings=warnings,
        )
        log_workspace_staged(request.profile, workspace_dir, staged)
        return staged

    @staticmethod
    def _first_valid_image(candidates: List[Path], warnings: List[CvenomError]) -> Optional[Path]:
        for candidate in candidates:
            try:
                if validate_image(candidate):
                    return candidate
            except ImageValidationFailed as e:
                _log_warning(f"Skipping image: {e.message}")
                warnings.append(e)
        return None

    def teardown(self, workspace_dir: Path, strict: bool = False) -> None:
        """
        Remove a workspace directory. A directory that is already gone is a no-op.

        Args:
            workspace_dir: Directory from create()
            strict: Raise on failure (success path). When False, failures are only
                    logged so an exception already propagating is not replaced

        Raises:
            WorkspaceIOError: If strict and the directory could not be removed
        """
        workspace_dir = Path(workspace_dir)
        if not workspace_dir.exists():
            return

        try:
            shutil.rmtree(workspace_dir)
            _log_debug(f"Removed workspace: {workspace_dir}")
        except OSError as e:
            if strict:
                raise WorkspaceIOError("Failed to remove workspace", workspace_dir, e) from e
            _log_error(f"Failed to remove workspace {workspace_dir}: {e}")

    @contextmanager
    def workspace_scope(self, profile: str, workspace_root: Path = None) -> Iterator[Path]:
        """
        Create a workspace for the duration of a with-block and always remove it.

        Example:
            with builder.workspace_scope("alice") as workspace_dir:
                staged = builder.stage(request, workspace_dir)
        """
        workspace_dir = self.create(workspace_root, profile)
        succeeded = False
        try:
            yield workspace_dir
            succeeded = True
        finally:
            self.teardown(workspace_dir, strict=succeeded)
