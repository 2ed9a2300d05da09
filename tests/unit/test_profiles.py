"""Unit tests for profile directory creation, loading and listing."""

import tomllib
from pathlib import Path

import pytest

from cvenom.contexts.templating.cv_data_structure import (
    CvDocument,
    Experience,
    PersonalInfo,
    Skills,
    load_cv_document,
    save_cv_document,
)
from cvenom.contexts.templating.exceptions import (
    InvalidCvDataError,
    InvalidProfileName,
    ProfileNotFound,
    RequiredFileMissing,
)
from cvenom.contexts.templating.profiles import (
    create_profile_from_cv_data,
    create_profile_from_templates,
    list_profiles,
    load_profile_cv_data,
    profile_directory,
    save_profile_cv_data,
    validate_cv_data,
)


@pytest.fixture
def document():
    return CvDocument(
        personal_info=PersonalInfo(name="Carol Smith", email="carol@example.com"),
        work_experience=[Experience(company="Globex", title="Analyst", start_date="2021")],
        skills=Skills(technical=["SQL"]),
    )


@pytest.mark.unit
def test_create_from_templates_fills_name(tmp_path):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "person_template.toml").write_text('name = "{{name}}"\nsummary = "${name} CV"\n')
    (templates / "experiences_template.typ").write_text("= Custom English\n")

    profile_dir = create_profile_from_templates(
        "Jean Dupont", tmp_path / "data", templates, display_name='Jean "JD" Dupont'
    )

    assert profile_dir.name == "jean-dupont"
    config = tomllib.loads((profile_dir / "cv_params.toml").read_text())
    assert config == {"name": 'Jean "JD" Dupont', "summary": 'Jean "JD" Dupont CV'}
    assert (profile_dir / "experiences_en.typ").read_text() == "= Custom English\n"
    assert "Expérience Professionnelle" in (profile_dir / "experiences_fr.typ").read_text()

    readme = (profile_dir / "README.md").read_text()
    assert readme.startswith('# Jean "JD" Dupont CV Data')
    assert "- English: experiences_en.typ" in readme
    assert "- French: experiences_fr.typ" in readme


@pytest.mark.unit
def test_create_from_templates_uses_builtin_fallbacks(tmp_path):
    profile_dir = create_profile_from_templates("alice", tmp_path / "data", tmp_path / "none")

    config = tomllib.loads((profile_dir / "cv_params.toml").read_text())
    assert config["name"] == "alice"
    assert "styling" in config
    assert "= Work Experience" in (profile_dir / "experiences_en.typ").read_text()


@pytest.mark.unit
def test_create_from_repository_templates(tmp_path):
    """Test that the shipped bootstrap templates produce valid profiles."""
    repo_templates = Path(__file__).resolve().parents[2] / "templates"

    profile_dir = create_profile_from_templates(
        "dana", tmp_path, repo_templates, display_name="Dana Scully"
    )

    config = tomllib.loads((profile_dir / "cv_params.toml").read_text())
    assert config["name"] == "Dana Scully"
    assert config["styling"]["primary_color"] == "#14A4E6"


@pytest.mark.unit
def test_save_and_load_profile(tmp_path, document):
    save_profile_cv_data("carol", tmp_path, document, language="fr")

    loaded = load_profile_cv_data("carol", tmp_path, language="fr")

    assert loaded.personal_info.name == "Carol Smith"
    assert loaded.personal_info.email == "carol@example.com"
    assert loaded.skills.technical == ["SQL"]
    assert loaded.metadata.language == "fr"
    assert loaded.work_experience == []


@pytest.mark.unit
def test_create_from_cv_data_writes_all_languages(tmp_path, document):
    profile_dir = create_profile_from_cv_data("Carol", tmp_path, document)

    assert sorted(p.name for p in profile_dir.iterdir()) == [
        "README.md",
        "cv_params.toml",
        "experiences_en.typ",
        "experiences_fr.typ",
    ]
    assert "Expérience Professionnelle" in (profile_dir / "experiences_fr.typ").read_text()


@pytest.mark.unit
def test_create_from_cv_data_rejects_invalid_document(tmp_path):
    doc = CvDocument(personal_info=PersonalInfo(name="Nobody"))

    with pytest.raises(InvalidCvDataError) as exc_info:
        create_profile_from_cv_data("nobody", tmp_path, doc)

    assert exc_info.value.code == "INVALID_CV_DATA"
    assert not (tmp_path / "nobody").exists()


@pytest.mark.unit
def test_validate_cv_data_requires_name(document):
    document.personal_info.name = "   "
    with pytest.raises(InvalidCvDataError, match="no name"):
        validate_cv_data(document)


@pytest.mark.unit
def test_load_missing_profile_and_files(tmp_path):
    with pytest.raises(ProfileNotFound):
        load_profile_cv_data("ghost", tmp_path)

    (tmp_path / "half").mkdir()
    (tmp_path / "half" / "cv_params.toml").write_text('name = "Half"\n')
    with pytest.raises(RequiredFileMissing) as exc_info:
        load_profile_cv_data("half", tmp_path)
    assert exc_info.value.path.name == "experiences_en.typ"


@pytest.mark.unit
def test_list_profiles(tenant_dir):
    (tenant_dir / "empty").mkdir()
    (tenant_dir / "stray.toml").write_text("")

    assert list_profiles(tenant_dir) == ["alice", "bob"]
    assert list_profiles(tenant_dir / "missing") == []


@pytest.mark.unit
@pytest.mark.parametrize("suffix", [".yaml", ".json"])
def test_cv_document_file_round_trip(tmp_path, document, suffix):
    path = tmp_path / f"cv{suffix}"
    save_cv_document(document, path)
    assert load_cv_document(path) == document


@pytest.mark.unit
def test_cv_document_from_dict_rejects_bad_shape():
    with pytest.raises(InvalidCvDataError):
        CvDocument.from_dict({"personal_info": {"name": "X", "shoe_size": 42}})
    with pytest.raises(InvalidCvDataError):
        CvDocument.from_dict({"work_experience": []})


@pytest.mark.unit
def test_profile_directory_rejects_names_that_normalize_to_nothing(tmp_path):
    assert profile_directory(tmp_path, "Jean Dupont") == tmp_path / "jean-dupont"

    with pytest.raises(InvalidProfileName):
        profile_directory(tmp_path, "...")
    with pytest.raises(InvalidProfileName):
        create_profile_from_templates("--", tmp_path, tmp_path / "none")
    assert list(tmp_path.iterdir()) == []
