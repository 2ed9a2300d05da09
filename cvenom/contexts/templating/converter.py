"""
CV Data Converter

Converts between the structured CvDocument and the flat profile files:
- CvDocument -> cv_params.toml text (to_configuration_text)
- CvDocument -> experiences_<lang>.typ text (to_markup_text)
- cv_params.toml + experiences_<lang>.typ -> CvDocument (from_files)

The mapping is lossy by construction. Reading a profile back recovers identity,
contact fields, skills and languages, but not work experience (which only exists as
Typst markup) nor the institution/degree split of education entries (which are
flattened into a single title).
"""

import json
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from cvenom.contexts.templating.cv_data_structure import (
    LANGUAGE_LEVELS,
    SKILL_CATEGORIES,
    CvDocument,
    CvMetadata,
    Education,
    Languages,
    PersonalInfo,
    Skills,
)
from cvenom.contexts.templating.exceptions import ConfigurationParseError, RequiredFileMissing
from cvenom.contexts.templating.logger import _log_debug, _log_warning
from cvenom.utils.naming import DEFAULT_LANGUAGE, normalize_language

FORMATS_PATH = Path(__file__).parent / "formats"
CONFIG_FORMAT = "cv_params.toml.jinja"
MARKUP_FORMAT = "experiences.typ.jinja"

# Personal keys in emission order: (toml key, PersonalInfo attribute)
PERSONAL_FIELDS = (
    ("name", "name"),
    ("title", "title"),
    ("email", "email"),
    ("phonenumber", "phone"),
    ("address", "address"),
    ("summary", "summary"),
    ("linkedin", "linkedin"),
    ("website", "website"),
)
# Older profiles nest personal fields in one of these tables
LEGACY_PERSONAL_SECTIONS = ("personal", "personal_info")

DEFAULT_STYLING = {
    "primary_color": "#14A4E6",
    "secondary_color": "#757575",
}

SECTION_TITLES = {
    "en": "Work Experience",
    "fr": "Expérience Professionnelle",
    "es": "Experiencia Profesional",
    "de": "Berufserfahrung",
}
PRESENT_WORDS = {
    "en": "Present",
    "fr": "Présent",
    "es": "Presente",
    "de": "Heute",
}

DATE_SEPARATOR = " - "
MARKUP_FILENAME_PATTERN = re.compile(r"experiences_([A-Za-z]+)\.typ")
BARE_TOML_KEY = re.compile(r"[A-Za-z0-9_-]+")


# Escaping filters


def toml_str(value: Any) -> str:
    """
    Render a value as a TOML basic string.

    JSON string escapes are a subset of TOML's; DEL is the one control character JSON
    leaves raw that TOML rejects.
    """
    return json.dumps(str(value), ensure_ascii=False).replace("\x7f", "\\u007F")


def toml_key(value: str) -> str:
    """Bare key when possible, quoted key otherwise."""
    return value if BARE_TOML_KEY.fullmatch(value) else toml_str(value)


def toml_array(values: List[str]) -> str:
    return "[" + ", ".join(toml_str(v) for v in values) + "]"


def typst_str(value: Any) -> str:
    """Render a value as a Typst string literal."""
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def present_word(language: str) -> str:
    return PRESENT_WORDS.get(normalize_language(language), PRESENT_WORDS[DEFAULT_LANGUAGE])


def format_date_range(start: str, end: Optional[str], language: str) -> str:
    """
    Format a start/end pair as "<start> - <end>", with an open end shown as the
    localized word for "Present".

    Examples:
        >>> format_date_range("2020", None, "fr")
        '2020 - Présent'
    """
    return f"{start}{DATE_SEPARATOR}{end or present_word(language)}"


def split_date_range(date: str) -> tuple:
    """
    Inverse of format_date_range(): returns (start, end), with end None when open.

    Any localized "Present" word counts as open-ended, independently of the
    document language.
    """
    start, separator, end = date.partition(DATE_SEPARATOR)
    if not separator:
        return date.strip(), None

    end = end.strip()
    open_words = {word.lower() for word in PRESENT_WORDS.values()}
    if not end or end.lower() in open_words:
        return start.strip(), None
    return start.strip(), end


class CvDataConverter:
    """Renders CvDocuments into profile files and parses them back."""

    def __init__(self, formats_path: Path = FORMATS_PATH):
        self.formats_path = formats_path

        # Same delimiters as the layout templates so Typst/TOML braces never clash
        self.env = Environment(
            loader=FileSystemLoader(str(formats_path)),
            undefined=StrictUndefined,
            variable_start_string="<<<",
            variable_end_string=">>>",
            block_start_string="<%%",
            block_end_string="%%>",
            comment_start_string="<#",
            comment_end_string="#>",
            # Block tags sit on their own lines in the format files
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["toml_str"] = toml_str
        self.env.filters["toml_key"] = toml_key
        self.env.filters["toml_array"] = toml_array
        self.env.filters["typst_str"] = typst_str

    def render_format(self, format_name: str, **context: Any) -> str:
        """Render any format file under formats_path with the given context."""
        return self.env.get_template(format_name).render(**context)

    def to_configuration_text(self, doc: CvDocument) -> str:
        """
        Render the cv_params.toml text for a document.

        Personal fields are emitted as top-level keys (name is always present), then
        [links], [skills], one [[education]] block per entry, [languages] and the
        fixed [styling] block.

        Args:
            doc: Document to render

        Returns:
            TOML text
        """
        info = doc.personal_info
        language = doc.metadata.language if doc.metadata else DEFAULT_LANGUAGE

        personal = []
        for key, attribute in PERSONAL_FIELDS:
            value = getattr(info, attribute)
            if attribute == "name" or value is not None:
                personal.append((key, value if value is not None else ""))

        education = [
            {
                "title": f"{entry.degree}{DATE_SEPARATOR}{entry.institution}",
                "date": format_date_range(entry.start_date, entry.end_date, language),
                "location": entry.location,
            }
            for entry in doc.education
        ]

        template = self.env.get_template(CONFIG_FORMAT)
        return template.render(
            personal=personal,
            links=info.links or {},
            skills=doc.skills.categories(),
            education=education,
            languages=doc.languages.levels(),
            styling=DEFAULT_STYLING,
        )

    def to_markup_text(self, doc: CvDocument, language: str) -> str:
        """
        Render experiences_<lang>.typ defining get_work_experience() for the layout.

        Each experience becomes a "== company" heading followed by a dated_experience()
        call whose content lists the responsibilities, then the achievements.

        Args:
            doc: Document to render
            language: Language of the section header and "Present" word

        Returns:
            Typst markup text
        """
        language = normalize_language(language)
        experiences = [
            {
                "company": exp.company,
                "title": exp.title,
                "date_range": format_date_range(exp.start_date, exp.end_date, language),
                "description": exp.description,
                "details": list(exp.responsibilities or []) + list(exp.achievements or []),
            }
            for exp in doc.work_experience
        ]

        template = self.env.get_template(MARKUP_FORMAT)
        return template.render(
            section_title=SECTION_TITLES[language],
            experiences=experiences,
        )

    def from_files(self, config_path: Path, markup_path: Path) -> CvDocument:
        """
        Rebuild a CvDocument from a profile's configuration and markup files.

        Work experience is not recovered and comes back empty. Education entries only
        recover their combined title (as degree) and date range.

        Args:
            config_path: cv_params.toml
            markup_path: experiences_<lang>.typ (only its name is used, for the language)

        Returns:
            Partially populated CvDocument

        Raises:
            RequiredFileMissing: If either file is absent
            ConfigurationParseError: If the configuration is not valid TOML
        """
        config_path = Path(config_path)
        markup_path = Path(markup_path)
        for path in (config_path, markup_path):
            if not path.is_file():
                raise RequiredFileMissing(path)

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationParseError(config_path, e) from e

        personal_sections = [
            section
            for name in LEGACY_PERSONAL_SECTIONS
            if isinstance(section := _find_key(data, name), dict)
        ]

        def lookup(*keys: str) -> Optional[str]:
            for table in [data, *personal_sections]:
                for key in keys:
                    value = table.get(key)
                    if isinstance(value, str):
                        return value
            return None

        personal_info = PersonalInfo(
            name=lookup("name") or "Unknown",
            title=lookup("title") or "",
            email=lookup("email") or "",
            phone=lookup("phonenumber", "phone") or "",
            address=lookup("address") or "",
            linkedin=lookup("linkedin") or "",
            website=lookup("website") or "",
            summary=lookup("summary") or "",
            links=_read_links(data, personal_sections),
        )

        language = _language_from_markup_name(markup_path)
        doc = CvDocument(
            personal_info=personal_info,
            work_experience=[],
            education=_read_education(data),
            skills=_read_skills(data),
            languages=_read_languages(data),
            metadata=CvMetadata(language=language, template="default"),
        )
        _log_debug(f"Loaded CV data for '{personal_info.name}' from {config_path.parent}")
        return doc


def _find_key(table: Dict[str, Any], name: str) -> Any:
    """Exact key first, then a case-insensitive match."""
    if name in table:
        return table[name]
    for key, value in table.items():
        if key.lower() == name.lower():
            return value
    return None


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _read_links(
    data: Dict[str, Any], personal_sections: List[Dict[str, Any]]
) -> Optional[Dict[str, str]]:
    for table in [data, *personal_sections]:
        links = _find_key(table, "links")
        if isinstance(links, dict):
            return {key: value for key, value in links.items() if isinstance(value, str)}
    return None


def _read_skills(data: Dict[str, Any]) -> Skills:
    section = _find_key(data, "skills")
    skills = Skills()
    if not isinstance(section, dict):
        return skills

    other = {}
    for key, value in section.items():
        items = _string_list(value)
        if items is None:
            continue
        if key in SKILL_CATEGORIES:
            setattr(skills, key, items)
        else:
            other[key] = items
    skills.other = other or None
    return skills


def _read_languages(data: Dict[str, Any]) -> Languages:
    section = _find_key(data, "languages")
    languages = Languages()
    if not isinstance(section, dict):
        return languages

    for key, value in section.items():
        items = _string_list(value)
        if items is not None and key in LANGUAGE_LEVELS:
            setattr(languages, key, items)
    return languages


def _read_education(data: Dict[str, Any]) -> List[Education]:
    entries = _find_key(data, "education")
    if not isinstance(entries, list):
        return []

    education = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("title"), str):
            _log_warning(f"Skipping education entry without a title: {entry!r}")
            continue
        date = entry.get("date")
        start, end = split_date_range(date) if isinstance(date, str) else ("", None)
        location = entry.get("location")
        education.append(
            Education(
                institution="",
                degree=entry["title"],
                start_date=start,
                end_date=end,
                location=location if isinstance(location, str) else None,
            )
        )
    return education


def _language_from_markup_name(markup_path: Path) -> str:
    match = MARKUP_FILENAME_PATTERN.fullmatch(markup_path.name)
    if match is None:
        return DEFAULT_LANGUAGE
    return normalize_language(match.group(1))


# Convenience functions over a shared converter

_default_converter: Optional[CvDataConverter] = None


def get_converter() -> CvDataConverter:
    """Shared converter instance (format files are parsed once)."""
    global _default_converter
    if _default_converter is None:
        _default_converter = CvDataConverter()
    return _default_converter


def to_configuration_text(doc: CvDocument) -> str:
    """Render cv_params.toml text for a document."""
    return get_converter().to_configuration_text(doc)


def to_markup_text(doc: CvDocument, language: str) -> str:
    """Render experiences_<lang>.typ text for a document."""
    return get_converter().to_markup_text(doc, language)


def from_files(config_path: Path, markup_path: Path) -> CvDocument:
    """Rebuild a (partial) CvDocument from a profile's files."""
    return get_converter().from_files(config_path, markup_path)
