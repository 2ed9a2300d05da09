"""
Template Registry

Discovers installed Typst templates and their manifests, resolves requested template
ids with a guaranteed 'default' fallback, and stages template files into a workspace.

Layout:
    <templates_root>/<template_id>/manifest.toml   (optional)
    <templates_root>/<template_id>/<main_file>
    <templates_root>/<template_id>/<dependencies...>
    <templates_root>/font_config.typ                (optional, shared by all templates)
    <templates_root>/cv.typ                         (optional legacy default main file)
"""

import os
import shutil
import tomllib
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from cvenom.contexts.templating.exceptions import (
    ManifestError,
    TemplateDependencyMissing,
    TemplateMainFileMissing,
    TemplateNotFound,
)
from cvenom.contexts.templating.logger import (
    _log_debug,
    _log_info,
    _log_warning,
    log_discovery_result,
    log_staging_result,
)

load_dotenv()
TEMPLATES_PATH = Path(os.getenv("CVENOM_TEMPLATES_PATH", "templates"))

# Templates shipped inside the package, used when nothing usable is installed
BUILTIN_TEMPLATE_PATH = Path(__file__).parent / "builtin"

DEFAULT_TEMPLATE_ID = "default"
MANIFEST_FILENAME = "manifest.toml"
LEGACY_MAIN_FILENAME = "cv.typ"
FONT_CONFIG_FILENAME = "font_config.typ"
# Canonical name of the main file inside a workspace
WORKSPACE_MAIN_FILENAME = "main.typ"


class TemplateOrigin(str, Enum):
    """Where a registered template came from."""

    DISCOVERED = "discovered"  # on-disk directory under templates_root
    LEGACY = "legacy"  # default synthesized over a root-level cv.typ
    SYNTHESIZED = "synthesized"  # default served from the package's builtin files


@dataclass(frozen=True)
class TemplateManifest:
    """
    Template metadata loaded from manifest.toml.

    Every field is optional in the file; absent fields take the defaults below.
    """

    name: str = DEFAULT_TEMPLATE_ID
    description: str = "Standard CV layout"
    main_file: str = WORKSPACE_MAIN_FILENAME
    dependencies: Tuple[str, ...] = ("template.typ",)
    features: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ("en", "fr")
    version: str = "1.0.0"

    @classmethod
    def for_directory(cls, template_id: str) -> "TemplateManifest":
        """Synthesize a manifest for a template directory that ships none."""
        return cls(name=template_id, description=describe_template(template_id))

    @classmethod
    def from_file(cls, manifest_path: Path, template_id: str) -> "TemplateManifest":
        """
        Load a manifest, filling missing fields with defaults.

        Args:
            manifest_path: Path to manifest.toml
            template_id: Directory name, used for name/description defaults

        Raises:
            ManifestError: If the file is unreadable, not valid TOML, or has wrong types
        """
        try:
            with open(manifest_path, "rb") as f:
                raw = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ManifestError(manifest_path, e) from e

        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in raw.items() if key in known}

        for list_field in ("dependencies", "features", "languages"):
            if list_field in values:
                items = values[list_field]
                if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
                    raise ManifestError(
                        manifest_path, TypeError(f"'{list_field}' must be a list of strings")
                    )
                values[list_field] = tuple(items)

        for str_field in ("name", "description", "main_file", "version"):
            if str_field in values and not isinstance(values[str_field], str):
                raise ManifestError(manifest_path, TypeError(f"'{str_field}' must be a string"))

        values.setdefault("name", template_id)
        values.setdefault("description", describe_template(template_id))
        return cls(**values)


def describe_template(template_id: str) -> str:
    """Default description for a template based on its directory name."""
    lowered = template_id.lower()
    if lowered == DEFAULT_TEMPLATE_ID:
        return "Standard CV layout"
    if "modern" in lowered:
        return "Modern CV template"
    if "minimal" in lowered:
        return "Minimal CV template"
    return f"{template_id} CV template"


@dataclass(frozen=True)
class Template:
    """
    A registered template: identifier, manifest and root directory.

    Attributes:
        id: Template identifier (directory name for discovered templates)
        manifest: Template metadata
        path: Root directory the main file and dependencies are relative to
        origin: Whether the template was discovered on disk or synthesized
    """

    id: str
    manifest: TemplateManifest
    path: Path
    origin: TemplateOrigin = TemplateOrigin.DISCOVERED

    @classmethod
    def load_from_dir(cls, template_dir: Path) -> "Template":
        template_id = template_dir.name
        manifest_path = template_dir / MANIFEST_FILENAME

        if manifest_path.exists():
            manifest = TemplateManifest.from_file(manifest_path, template_id)
        else:
            manifest = TemplateManifest.for_directory(template_id)

        return cls(id=template_id, manifest=manifest, path=template_dir.resolve())

    @property
    def main_template_file(self) -> Path:
        return self.path / self.manifest.main_file

    @property
    def is_synthesized(self) -> bool:
        return self.origin is not TemplateOrigin.DISCOVERED


@dataclass(frozen=True)
class TemplateInfo:
    """Public summary of a template for listing endpoints."""

    name: str
    description: str


@dataclass
class TemplateStagingResult:
    """
    Result of copying a template's files into a workspace.

    Attributes:
        template_id: Identifier of the staged template
        main_file: Absolute path of the canonical main file in the workspace
        copied_dependencies: Relative dependency paths that were copied
        missing_dependencies: Dependencies that were skipped (non-fatal)
        font_config: Path of the staged shared font configuration, if any
    """

    template_id: str
    main_file: Path
    copied_dependencies: List[str] = field(default_factory=list)
    missing_dependencies: List[TemplateDependencyMissing] = field(default_factory=list)
    font_config: Optional[Path] = None


class TemplateRegistry:
    """
    Registry of templates discovered under a templates root.

    The set of templates is built once at construction (or on refresh()) and exposed
    as a read-only mapping, so it can be shared by concurrent requests without locks.
    A 'default' template is always present.
    """

    def __init__(self, templates_root: Path = None):
        """
        Initialize the registry and discover templates.

        Args:
            templates_root: Directory holding template subdirectories. Defaults to
                            CVENOM_TEMPLATES_PATH from environment
        """
        if templates_root is None:
            templates_root = TEMPLATES_PATH

        self.templates_root = Path(templates_root).resolve()
        self._templates: Mapping[str, Template] = MappingProxyType({})
        self.refresh()

    def refresh(self) -> None:
        """Rediscover templates and atomically replace the current snapshot."""
        self._templates = MappingProxyType(self.discover())

    def discover(self) -> Dict[str, Template]:
        """
        Scan templates_root for template directories.

        Directories with an invalid manifest or without their main file are skipped
        with a warning, so every discovered template can be compiled. If no usable
        'default' directory exists, a default is synthesized over a legacy root-level
        cv.typ when present, or over the package's builtin template otherwise.

        Returns:
            Mapping of template id to Template
        """
        _log_info(f"Discovering templates in: {self.templates_root}")
        templates: Dict[str, Template] = {}

        if not self.templates_root.is_dir():
            _log_warning(f"Templates directory does not exist: {self.templates_root}")
        else:
            for path in sorted(self.templates_root.iterdir()):
                if not path.is_dir() or path.name.startswith((".", "__")):
                    continue
                try:
                    template = Template.load_from_dir(path)
                except ManifestError as e:
                    _log_warning(f"Failed to load template from {path}: {e}")
                    continue

                if not template.main_template_file.is_file():
                    _log_warning(
                        f"Skipping template '{template.id}': main file "
                        f"{template.manifest.main_file} not found in {path}"
                    )
                    continue

                _log_debug(f"Discovered template: {template.id} at {path}")
                templates[template.id] = template

        if DEFAULT_TEMPLATE_ID not in templates:
            templates[DEFAULT_TEMPLATE_ID] = self._synthesize_default()

        log_discovery_result(
            self.templates_root, list(templates), templates[DEFAULT_TEMPLATE_ID].origin.value
        )
        return templates

    def _synthesize_default(self) -> Template:
        legacy_main = self.templates_root / LEGACY_MAIN_FILENAME
        if legacy_main.is_file():
            _log_info(f"Using legacy {LEGACY_MAIN_FILENAME} as the default template")
            return Template(
                id=DEFAULT_TEMPLATE_ID,
                manifest=TemplateManifest(main_file=LEGACY_MAIN_FILENAME),
                path=self.templates_root,
                origin=TemplateOrigin.LEGACY,
            )

        _log_info("No default template installed; using the builtin fallback")
        return Template(
            id=DEFAULT_TEMPLATE_ID,
            manifest=TemplateManifest(),
            path=BUILTIN_TEMPLATE_PATH.resolve(),
            origin=TemplateOrigin.SYNTHESIZED,
        )

    # Lookup

    def resolve(self, requested_id: Optional[str]) -> Template:
        """
        Resolve a requested template id, falling back to 'default'.

        Matching is case-insensitive and exact. Never raises.

        Args:
            requested_id: Template id from the request (may be None or empty)

        Returns:
            Matching Template, or the default template
        """
        templates = self._templates
        if requested_id:
            requested = requested_id.strip().lower()
            for template_id, template in templates.items():
                if template_id.lower() == requested:
                    return template
            _log_debug(f"Template '{requested_id}' not found, falling back to default")

        return templates[DEFAULT_TEMPLATE_ID]

    def get_template(self, template_id: str) -> Template:
        """
        Strict, case-insensitive lookup.

        Raises:
            TemplateNotFound: If no template matches
        """
        requested = template_id.strip().lower()
        for candidate_id, template in self._templates.items():
            if candidate_id.lower() == requested:
                return template
        raise TemplateNotFound(template_id, list(self._templates))

    def template_exists(self, template_id: str) -> bool:
        requested = template_id.strip().lower()
        return any(candidate.lower() == requested for candidate in self._templates)

    def template_ids(self) -> List[str]:
        return sorted(self._templates)

    def list_templates(self) -> List[TemplateInfo]:
        """Templates available to requests, sorted by id."""
        return [
            TemplateInfo(name=template.id, description=template.manifest.description)
            for _, template in sorted(self._templates.items())
        ]

    # Workspace staging

    def prepare_workspace(self, template_id: str, workspace_dir: Path) -> TemplateStagingResult:
        """
        Copy a template's files into a workspace directory.

        The main file is copied to the canonical main.typ, dependencies keep their
        relative paths, and the shared font configuration is copied when present.
        Missing dependencies are logged and reported, not fatal.

        Args:
            template_id: Requested template id (resolved with fallback)
            workspace_dir: Absolute workspace directory (must exist)

        Returns:
            TemplateStagingResult describing what was staged

        Raises:
            TemplateMainFileMissing: If the template's main file does not exist
            OSError: If copying fails
        """
        template = self.resolve(template_id)
        workspace_dir = Path(workspace_dir)

        main_source = template.main_template_file
        if not main_source.is_file():
            raise TemplateMainFileMissing(template.id, main_source)

        main_dest = workspace_dir / WORKSPACE_MAIN_FILENAME
        shutil.copyfile(main_source, main_dest)
        result = TemplateStagingResult(template_id=template.id, main_file=main_dest)

        template_root = template.path.resolve()
        for dependency in template.manifest.dependencies:
            source = (template_root / dependency).resolve()

            if not source.is_relative_to(template_root):
                missing = TemplateDependencyMissing(
                    template.id, dependency, source, reason="escapes the template directory"
                )
            elif not source.exists():
                missing = TemplateDependencyMissing(template.id, dependency, source)
            else:
                missing = None

            if missing is not None:
                _log_warning(str(missing))
                result.missing_dependencies.append(missing)
                continue

            dest = workspace_dir / dependency
            dest.parent.mkdir(parents=True, exist_ok=True)
            if source.is_dir():
                shutil.copytree(source, dest, dirs_exist_ok=True)
            else:
                shutil.copyfile(source, dest)
            result.copied_dependencies.append(dependency)

        font_config = self.templates_root / FONT_CONFIG_FILENAME
        if font_config.is_file():
            result.font_config = workspace_dir / FONT_CONFIG_FILENAME
            shutil.copyfile(font_config, result.font_config)

        log_staging_result(template.id, workspace_dir, result)
        return result
