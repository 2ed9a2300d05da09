"""
CV Document Structure

Defines the structured in-memory representation of a CV. This is the exchange format
with external conversion, translation and optimization services. The flat files in a
profile directory (cv_params.toml + experiences_<lang>.typ) remain the durable source
of truth; see converter.py for the (lossy) mapping between the two.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from omegaconf import OmegaConf

from cvenom.contexts.templating.exceptions import InvalidCvDataError

# Skill categories with a dedicated field; anything else lands in Skills.other
SKILL_CATEGORIES = ("technical", "programming_languages", "frameworks", "tools", "soft_skills")
LANGUAGE_LEVELS = ("native", "fluent", "intermediate", "basic")


@dataclass
class PersonalInfo:
    name: str
    title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    linkedin: Optional[str] = None
    website: Optional[str] = None
    summary: Optional[str] = None
    links: Optional[Dict[str, str]] = None


@dataclass
class Experience:
    """
    One work-experience entry.

    Attributes:
        end_date: None means the position is current ("Present")
    """

    company: str
    title: str
    start_date: str
    end_date: Optional[str] = None
    description: Optional[str] = None
    responsibilities: List[str] = field(default_factory=list)
    achievements: Optional[List[str]] = None
    technologies: Optional[List[str]] = None
    location: Optional[str] = None


@dataclass
class Education:
    institution: str
    degree: str
    start_date: str
    end_date: Optional[str] = None
    field: Optional[str] = None
    gpa: Optional[str] = None
    honors: Optional[List[str]] = None
    location: Optional[str] = None


@dataclass
class Skills:
    technical: Optional[List[str]] = None
    programming_languages: Optional[List[str]] = None
    frameworks: Optional[List[str]] = None
    tools: Optional[List[str]] = None
    soft_skills: Optional[List[str]] = None
    other: Optional[Dict[str, List[str]]] = None

    def categories(self) -> Dict[str, List[str]]:
        """All populated categories in emission order (known ones first, then other)."""
        result = {
            name: getattr(self, name)
            for name in SKILL_CATEGORIES
            if getattr(self, name) is not None
        }
        for name, items in (self.other or {}).items():
            result[name] = items
        return result


@dataclass
class Languages:
    native: Optional[List[str]] = None
    fluent: Optional[List[str]] = None
    intermediate: Optional[List[str]] = None
    basic: Optional[List[str]] = None

    def levels(self) -> Dict[str, List[str]]:
        return {
            level: getattr(self, level)
            for level in LANGUAGE_LEVELS
            if getattr(self, level) is not None
        }


@dataclass
class Project:
    name: str
    description: str
    technologies: Optional[List[str]] = None
    url: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass
class Certification:
    name: str
    issuer: str
    date: str
    expiry: Optional[str] = None
    credential_id: Optional[str] = None
    url: Optional[str] = None


@dataclass
class CvMetadata:
    language: str = "en"
    template: Optional[str] = None
    last_updated: Optional[str] = None
    version: Optional[str] = None


@dataclass
class CvDocument:
    """
    Structured CV exchanged with external services.

    Attributes:
        personal_info: Identity and contact details
        work_experience: Ordered work history (most recent first by convention)
        education: Ordered education entries
        skills: Categorized skill lists
        languages: Spoken languages bucketed by proficiency
        projects: Optional side projects
        certifications: Optional certifications
        metadata: Language, template and version information
    """

    personal_info: PersonalInfo
    work_experience: List[Experience] = field(default_factory=list)
    education: List[Education] = field(default_factory=list)
    skills: Skills = field(default_factory=Skills)
    languages: Languages = field(default_factory=Languages)
    projects: Optional[List[Project]] = None
    certifications: Optional[List[Certification]] = None
    metadata: CvMetadata = field(default_factory=CvMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CvDocument":
        """
        Build a CvDocument from the JSON shape used by the external services.

        Raises:
            InvalidCvDataError: If required keys are missing or have the wrong type
        """
        if not isinstance(data, dict):
            raise InvalidCvDataError(f"CV data must be a mapping, got {type(data).__name__}")
        if not isinstance(data.get("personal_info"), dict):
            raise InvalidCvDataError("CV data must contain a 'personal_info' mapping")

        try:
            return cls(
                personal_info=PersonalInfo(**data["personal_info"]),
                work_experience=[Experience(**e) for e in data.get("work_experience") or []],
                education=[Education(**e) for e in data.get("education") or []],
                skills=Skills(**(data.get("skills") or {})),
                languages=Languages(**(data.get("languages") or {})),
                projects=_optional_list(Project, data.get("projects")),
                certifications=_optional_list(Certification, data.get("certifications")),
                metadata=CvMetadata(**(data.get("metadata") or {})),
            )
        except TypeError as e:
            # Unknown or missing dataclass fields
            raise InvalidCvDataError(f"Malformed CV data: {e}") from e


def _optional_list(item_cls, items: Optional[List[Dict[str, Any]]]) -> Optional[list]:
    if items is None:
        return None
    return [item_cls(**item) for item in items]


def load_cv_document(path: Path) -> CvDocument:
    """
    Load a CvDocument from a YAML or JSON file.

    Args:
        path: Path to .yaml/.yml/.json file

    Returns:
        Parsed CvDocument
    """
    data = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
    return CvDocument.from_dict(data)


def save_cv_document(doc: CvDocument, path: Path) -> None:
    """
    Write a CvDocument to YAML, or to JSON when the suffix is .json.

    Args:
        doc: Document to serialize
        path: Destination file
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".json":
        content = json.dumps(doc.to_dict(), indent=2, ensure_ascii=False)
        path.write_text(content + "\n", encoding="utf-8")
        return

    OmegaConf.save(OmegaConf.create(doc.to_dict()), path)
