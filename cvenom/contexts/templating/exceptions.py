"""Exceptions for the templating context: template lookup, staging and CV data parsing."""

from pathlib import Path
from typing import List, Optional

from cvenom.utils.errors import CvenomError


class TemplateNotFound(CvenomError):
    """
    Raised by strict template lookup when no template matches.

    Resolution through TemplateRegistry.resolve() never raises this; it falls back to
    the default template instead.

    Attributes:
        template_id: The requested identifier
        available: Identifiers known to the registry
    """

    code = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: str, available: Optional[List[str]] = None):
        self.template_id = template_id
        self.available = sorted(available or [])
        super().__init__(
            f"Template '{template_id}' not found. Available templates: {self.available}",
            suggestions=[
                "Use one of the available templates",
                "Omit the template to use 'default'",
            ],
        )


class TemplateMainFileMissing(CvenomError):
    """
    Raised when a template's main file cannot be found during staging.

    Attributes:
        template_id: Template being staged
        main_file: Expected location of the main file
    """

    code = "TEMPLATE_MAIN_FILE_MISSING"

    def __init__(self, template_id: str, main_file: Path):
        self.template_id = template_id
        self.main_file = main_file
        super().__init__(
            f"Template main file not found for '{template_id}': {main_file}",
            suggestions=[
                "Check the main_file entry in the template manifest",
                "Contact system administrator",
            ],
        )


class TemplateDependencyMissing(CvenomError):
    """
    A declared template dependency that could not be copied into the workspace.

    Non-fatal: instances are collected in TemplateStagingResult.missing_dependencies
    and logged, never raised by the registry.

    Attributes:
        template_id: Template being staged
        dependency: Relative dependency path as declared in the manifest
        source: Resolved source path that was looked up
        reason: Why the dependency was skipped
    """

    code = "TEMPLATE_DEPENDENCY_MISSING"

    def __init__(self, template_id: str, dependency: str, source: Path, reason: str = "not found"):
        self.template_id = template_id
        self.dependency = dependency
        self.source = source
        self.reason = reason
        super().__init__(
            f"Dependency '{dependency}' of template '{template_id}' {reason}: {source}",
            suggestions=[
                "Check the dependencies list in the template manifest",
                "Compilation may fail if the template imports this file",
            ],
        )


class ManifestError(CvenomError):
    """Raised when a template manifest cannot be read or parsed."""

    code = "TEMPLATE_MANIFEST_INVALID"

    def __init__(self, manifest_path: Path, original_error: Optional[Exception] = None):
        self.manifest_path = manifest_path
        self.original_error = original_error

        parts = [f"Invalid template manifest: {manifest_path}"]
        if original_error:
            parts.append(f"Original error: {original_error}")

        super().__init__("\n".join(parts))


class RequiredFileMissing(CvenomError):
    """
    Raised when a profile's configuration or markup file is absent.

    Attributes:
        path: The missing file
        profile: Profile the file belongs to (if known)
    """

    code = "REQUIRED_FILE_MISSING"

    def __init__(self, path: Path, profile: Optional[str] = None):
        self.path = path
        self.profile = profile
        owner = f" for profile '{profile}'" if profile else ""
        super().__init__(
            f"Required file not found{owner}: {path.name}",
            suggestions=[
                f"Create {path.name} in the profile directory",
                "Recreate the profile from the bootstrap templates",
            ],
        )


class ConfigurationParseError(CvenomError):
    """Raised when cv_params.toml is not valid TOML."""

    code = "CONFIG_PARSE_ERROR"

    def __init__(self, path: Path, original_error: Optional[Exception] = None):
        self.path = path
        self.original_error = original_error

        parts = [f"Failed to parse configuration file: {path}"]
        if original_error:
            parts.append(f"Original error: {original_error}")

        super().__init__(
            "\n".join(parts),
            suggestions=["Fix the TOML syntax in cv_params.toml"],
        )


class InvalidCvDataError(CvenomError, ValueError):
    """Raised when CV data is missing required content or has the wrong shape."""

    code = "INVALID_CV_DATA"


class ProfileNotFound(CvenomError):
    """
    Raised when a profile directory does not exist in the tenant data root.

    Attributes:
        profile: Normalized profile name
        profile_dir: Directory that was looked up
    """

    code = "PROFILE_NOT_FOUND"

    def __init__(self, profile: str, profile_dir: Path):
        self.profile = profile
        self.profile_dir = profile_dir
        super().__init__(
            f"Profile '{profile}' not found",
            suggestions=[
                "Check the profile name spelling",
                "Create the profile before generating a CV",
            ],
        )


class InvalidProfileName(CvenomError):
    """Raised when a profile name has no letters or digits left after normalization."""

    code = "INVALID_PROFILE_NAME"

    def __init__(self, profile: str):
        self.profile = profile
        super().__init__(
            f"Invalid profile name: {profile!r}",
            suggestions=["Use a profile name containing letters or digits"],
        )
