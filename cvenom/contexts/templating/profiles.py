"""
Profile Files

Creates, saves, loads and lists profile directories inside a tenant data root:

    <tenant_data_dir>/<profile>/
        cv_params.toml
        experiences_<lang>.typ
        README.md
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional

from dotenv import load_dotenv

from cvenom.contexts.templating.converter import get_converter, toml_str
from cvenom.contexts.templating.cv_data_structure import CvDocument
from cvenom.contexts.templating.exceptions import (
    InvalidCvDataError,
    InvalidProfileName,
    ProfileNotFound,
    RequiredFileMissing,
)
from cvenom.contexts.templating.logger import _log_info, _log_success, _log_warning
from cvenom.contexts.templating.template_registry import BUILTIN_TEMPLATE_PATH
from cvenom.utils.naming import DEFAULT_LANGUAGE, normalize_language, normalize_profile_name

load_dotenv()
TENANT_DATA_PATH = Path(os.getenv("CVENOM_TENANT_DATA_PATH", "data"))

CONFIG_FILENAME = "cv_params.toml"
README_FILENAME = "README.md"
README_FORMAT = "README.md.jinja"

# Bootstrap files looked up in the templates root
PERSON_TEMPLATE_FILENAME = "person_template.toml"
EXPERIENCES_TEMPLATE_FILENAME = "experiences_template.typ"
NAME_PLACEHOLDERS = ("{{name}}", "${name}")

# Languages every new profile starts with
BOOTSTRAP_LANGUAGES = ("en", "fr")
LANGUAGE_LABELS = {
    "en": "English",
    "fr": "French",
    "es": "Spanish",
    "de": "German",
}


def markup_filename(language: str) -> str:
    """experiences_<lang>.typ for a (normalized) language."""
    return f"experiences_{normalize_language(language)}.typ"


def profile_directory(tenant_data_dir: Path, profile: str) -> Path:
    """
    Directory of a profile inside a tenant data root.

    Raises:
        InvalidProfileName: If the name normalizes to nothing (it would name the root)
    """
    normalized = normalize_profile_name(profile)
    if not normalized:
        raise InvalidProfileName(profile)
    return Path(tenant_data_dir) / normalized


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _write_readme(profile_dir: Path, display_name: str, languages: Iterable[str]) -> None:
    content = get_converter().render_format(
        README_FORMAT,
        display_name=display_name,
        languages=[(code, LANGUAGE_LABELS.get(code, code)) for code in languages],
    )
    _write_text(profile_dir / README_FILENAME, content)


def _bootstrap_experiences(templates_root: Path, language: str) -> str:
    """
    Starter experiences markup for a language.

    English comes from experiences_template.typ when the templates root has one; a
    language-specific experiences_template_<lang>.typ wins for other languages. The
    package's builtin starter files are the fallback.
    """
    candidates = [templates_root / f"experiences_template_{language}.typ"]
    if language == DEFAULT_LANGUAGE:
        candidates.append(templates_root / EXPERIENCES_TEMPLATE_FILENAME)

    for candidate in candidates:
        if candidate.is_file():
            return candidate.read_text(encoding="utf-8")

    builtin = BUILTIN_TEMPLATE_PATH / f"experiences_{language}.typ"
    if not builtin.is_file():
        builtin = BUILTIN_TEMPLATE_PATH / f"experiences_{DEFAULT_LANGUAGE}.typ"
    return builtin.read_text(encoding="utf-8")


def create_profile_from_templates(
    profile: str,
    tenant_data_dir: Path,
    templates_root: Path,
    display_name: Optional[str] = None,
) -> Path:
    """
    Bootstrap a new profile from the templates root's starter files.

    Writes cv_params.toml from person_template.toml (with the name placeholders
    filled in), experiences_en.typ and experiences_fr.typ, and a README.md. Builtin
    starter files are used for anything the templates root lacks.

    Args:
        profile: Profile name (normalized before use)
        tenant_data_dir: Tenant data root
        templates_root: Directory holding the bootstrap files
        display_name: Name written into the CV (defaults to the profile argument)

    Returns:
        The profile directory
    """
    templates_root = Path(templates_root)
    profile_dir = profile_directory(tenant_data_dir, profile)
    display_name = display_name or profile
    _log_info(f"Creating profile '{profile_dir.name}' from templates in {templates_root}")

    person_template = templates_root / PERSON_TEMPLATE_FILENAME
    if not person_template.is_file():
        _log_warning(f"{PERSON_TEMPLATE_FILENAME} not found, using the builtin starter")
        person_template = BUILTIN_TEMPLATE_PATH / PERSON_TEMPLATE_FILENAME

    config = person_template.read_text(encoding="utf-8")
    # Placeholders sit inside TOML strings
    escaped_name = toml_str(display_name)[1:-1]
    for placeholder in NAME_PLACEHOLDERS:
        config = config.replace(placeholder, escaped_name)
    _write_text(profile_dir / CONFIG_FILENAME, config)

    for language in BOOTSTRAP_LANGUAGES:
        _write_text(
            profile_dir / markup_filename(language),
            _bootstrap_experiences(templates_root, language),
        )

    _write_readme(profile_dir, display_name, BOOTSTRAP_LANGUAGES)
    _log_success(f"Created profile '{profile_dir.name}' at {profile_dir}")
    return profile_dir


def save_profile_cv_data(
    profile: str,
    tenant_data_dir: Path,
    doc: CvDocument,
    language: Optional[str] = None,
) -> Path:
    """
    Write a document's configuration and markup into a profile directory.

    Args:
        profile: Profile name
        tenant_data_dir: Tenant data root
        doc: Document to write
        language: Markup language (defaults to the document's metadata language)

    Returns:
        The profile directory
    """
    converter = get_converter()
    language = normalize_language(language or doc.metadata.language)
    profile_dir = profile_directory(tenant_data_dir, profile)

    _write_text(profile_dir / CONFIG_FILENAME, converter.to_configuration_text(doc))
    _write_text(profile_dir / markup_filename(language), converter.to_markup_text(doc, language))
    _log_info(f"Saved CV data for '{profile_dir.name}' ({language})")
    return profile_dir


def create_profile_from_cv_data(
    profile: str,
    tenant_data_dir: Path,
    doc: CvDocument,
    languages: Iterable[str] = BOOTSTRAP_LANGUAGES,
) -> Path:
    """
    Create a profile from imported CV data.

    The document is validated first; nothing is written when it is rejected.

    Raises:
        InvalidCvDataError: If the document has no name or no work experience
    """
    validate_cv_data(doc)

    converter = get_converter()
    profile_dir = profile_directory(tenant_data_dir, profile)
    languages = [normalize_language(lang) for lang in languages]

    _write_text(profile_dir / CONFIG_FILENAME, converter.to_configuration_text(doc))
    for language in languages:
        markup = converter.to_markup_text(doc, language)
        _write_text(profile_dir / markup_filename(language), markup)
    _write_readme(profile_dir, doc.personal_info.name, languages)

    _log_success(
        f"Created profile '{profile_dir.name}' from CV data "
        f"({len(doc.work_experience)} experiences)"
    )
    return profile_dir


def load_profile_cv_data(
    profile: str,
    tenant_data_dir: Path,
    language: str = DEFAULT_LANGUAGE,
) -> CvDocument:
    """
    Read a profile back into a (partial) CvDocument.

    Raises:
        ProfileNotFound: If the profile directory does not exist
        RequiredFileMissing: If cv_params.toml or the markup file is absent
    """
    profile_dir = profile_directory(tenant_data_dir, profile)
    if not profile_dir.is_dir():
        raise ProfileNotFound(profile_dir.name, profile_dir)

    config_path = profile_dir / CONFIG_FILENAME
    markup_path = profile_dir / markup_filename(language)
    for path in (config_path, markup_path):
        if not path.is_file():
            raise RequiredFileMissing(path, profile_dir.name)

    return get_converter().from_files(config_path, markup_path)


def list_profiles(tenant_data_dir: Path = TENANT_DATA_PATH) -> List[str]:
    """Sorted names of profile directories that hold a cv_params.toml."""
    tenant_data_dir = Path(tenant_data_dir)
    if not tenant_data_dir.is_dir():
        return []
    return sorted(
        entry.name
        for entry in tenant_data_dir.iterdir()
        if entry.is_dir() and (entry / CONFIG_FILENAME).is_file()
    )


def validate_cv_data(doc: CvDocument) -> None:
    if not doc.personal_info.name.strip():
        raise InvalidCvDataError(
            "CV data has no name",
            suggestions=["Make sure the CV contains the person's name"],
        )
    if not doc.work_experience:
        raise InvalidCvDataError(
            "CV data has no work experience",
            suggestions=["Make sure the CV contains at least one work experience entry"],
        )
