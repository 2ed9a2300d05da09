"""Normalization of user-supplied identifiers (profile names, language codes)."""

import re
from typing import Optional

from cvenom.utils.timestamp import current_year

DEFAULT_LANGUAGE = "en"

# Accepted spellings for each supported language code
LANGUAGE_ALIASES = {
    "en": ("en", "english", "anglais"),
    "fr": ("fr", "french", "français", "francais"),
    "es": ("es", "spanish", "español", "espanol"),
    "de": ("de", "german", "deutsch"),
}
SUPPORTED_LANGUAGES = tuple(LANGUAGE_ALIASES)


def normalize_language(lang: Optional[str]) -> str:
    """
    Map a language name or code onto the supported set.

    Unknown or missing values fall back to English.

    Examples:
        >>> normalize_language("French")
        'fr'
        >>> normalize_language(None)
        'en'
    """
    if not lang:
        return DEFAULT_LANGUAGE

    requested = lang.strip().lower()
    for code, aliases in LANGUAGE_ALIASES.items():
        if requested in aliases:
            return code
    return DEFAULT_LANGUAGE


def normalize_profile_name(name: str) -> str:
    """
    Turn a display name into a filesystem-safe profile identifier.

    Lowercases, replaces separators and any other non-alphanumeric character
    with '-', and collapses repeated dashes.

    Examples:
        >>> normalize_profile_name("Jean Paul.Dupont")
        'jean-paul-dupont'
        >>> normalize_profile_name("  Marie@Company  ")
        'marie-company'
    """
    lowered = name.strip().lower()
    dashed = "".join(c if c.isalnum() else "-" for c in lowered)
    return re.sub(r"-+", "-", dashed).strip("-")


def compiled_pdf_name(profile: str, template_id: str, language: str) -> str:
    """Deterministic compiler output filename: {profile}_{template}_{lang}.pdf"""
    return f"{profile}_{template_id}_{language}.pdf"


def suggested_filename(profile: str, year: Optional[int] = None) -> str:
    """Download filename offered to the caller: <profile>_CV_<year>.pdf"""
    return f"{profile}_CV_{year or current_year()}.pdf"
