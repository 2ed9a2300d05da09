"""Unit tests for TemplateRegistry class."""

import pytest

from cvenom.contexts.templating.exceptions import (
    ManifestError,
    TemplateMainFileMissing,
    TemplateNotFound,
)
from cvenom.contexts.templating.template_registry import (
    BUILTIN_TEMPLATE_PATH,
    DEFAULT_TEMPLATE_ID,
    Template,
    TemplateManifest,
    TemplateOrigin,
    TemplateRegistry,
)


@pytest.mark.unit
def test_discovers_template_directories(registry):
    """Test that each template directory becomes a template and default is added."""
    assert registry.template_ids() == ["broken", "default", "minimal"]
    assert registry.resolve("minimal").origin is TemplateOrigin.DISCOVERED


@pytest.mark.unit
def test_unknown_id_resolves_to_default(registry):
    """Test fallback for unknown, empty and missing ids."""
    for requested in ("does-not-exist", "", None):
        assert registry.resolve(requested).id == DEFAULT_TEMPLATE_ID


@pytest.mark.unit
def test_resolution_is_case_insensitive(registry):
    assert registry.resolve("MINIMAL").id == "minimal"
    assert registry.get_template(" Minimal ").id == "minimal"


@pytest.mark.unit
def test_strict_lookup_raises_with_available_ids(registry):
    with pytest.raises(TemplateNotFound) as exc_info:
        registry.get_template("fancy")

    assert exc_info.value.code == "TEMPLATE_NOT_FOUND"
    assert exc_info.value.available == ["broken", "default", "minimal"]


@pytest.mark.unit
def test_default_synthesized_from_builtin(tmp_path):
    """Test that an empty templates root still yields a usable default."""
    registry = TemplateRegistry(tmp_path)
    default = registry.resolve("anything")

    assert default.origin is TemplateOrigin.SYNTHESIZED
    assert default.path == BUILTIN_TEMPLATE_PATH.resolve()
    assert default.main_template_file.is_file()


@pytest.mark.unit
def test_missing_templates_root_still_has_default(tmp_path):
    registry = TemplateRegistry(tmp_path / "nowhere")
    assert registry.template_ids() == [DEFAULT_TEMPLATE_ID]


@pytest.mark.unit
def test_legacy_cv_typ_becomes_default(tmp_path):
    (tmp_path / "cv.typ").write_text("= Legacy\n")
    registry = TemplateRegistry(tmp_path)
    default = registry.resolve(DEFAULT_TEMPLATE_ID)

    assert default.origin is TemplateOrigin.LEGACY
    assert default.manifest.main_file == "cv.typ"
    assert default.is_synthesized


@pytest.mark.unit
def test_default_directory_wins_over_synthesis(tmp_path):
    default_dir = tmp_path / "default"
    default_dir.mkdir()
    (default_dir / "main.typ").write_text("= Default\n")
    (tmp_path / "cv.typ").write_text("= Legacy\n")

    registry = TemplateRegistry(tmp_path)
    assert registry.resolve(None).origin is TemplateOrigin.DISCOVERED


@pytest.mark.unit
def test_template_without_main_file_is_not_resolvable(tmp_path):
    """Test that a directory missing its main file falls back to default."""
    (tmp_path / "modern").mkdir()
    (tmp_path / "modern" / "template.typ").write_text("#let cv(body) = body\n")

    registry = TemplateRegistry(tmp_path)
    resolved = registry.resolve("modern")

    assert not registry.template_exists("modern")
    assert resolved.id == DEFAULT_TEMPLATE_ID
    assert resolved.main_template_file.is_file()


@pytest.mark.unit
def test_default_directory_without_main_file_is_synthesized(tmp_path):
    (tmp_path / "default").mkdir()

    registry = TemplateRegistry(tmp_path)
    default = registry.resolve(DEFAULT_TEMPLATE_ID)

    assert default.origin is TemplateOrigin.SYNTHESIZED
    assert default.main_template_file.is_file()


@pytest.mark.unit
def test_every_resolved_template_has_its_main_file(templates_root):
    (templates_root / "half-built").mkdir()
    (templates_root / "default").mkdir()
    registry = TemplateRegistry(templates_root)

    for template_id in registry.template_ids() + ["half-built", "unknown"]:
        assert registry.resolve(template_id).main_template_file.is_file()


@pytest.mark.unit
def test_hidden_and_dunder_directories_skipped(tmp_path):
    (tmp_path / ".git").mkdir()
    (tmp_path / "__pycache__").mkdir()
    (tmp_path / "modern").mkdir()
    (tmp_path / "modern" / "main.typ").write_text("= Modern\n")

    registry = TemplateRegistry(tmp_path)
    assert registry.template_ids() == ["default", "modern"]


@pytest.mark.unit
def test_manifest_defaults_without_file(tmp_path):
    template_dir = tmp_path / "modern"
    template_dir.mkdir()

    template = Template.load_from_dir(template_dir)

    assert template.manifest.main_file == "main.typ"
    assert template.manifest.dependencies == ("template.typ",)
    assert template.manifest.languages == ("en", "fr")
    assert template.manifest.version == "1.0.0"
    assert template.manifest.description == "Modern CV template"


@pytest.mark.unit
def test_invalid_manifest_is_skipped(tmp_path):
    bad = tmp_path / "bad"
    bad.mkdir()
    (bad / "manifest.toml").write_text("dependencies = 'not-a-list'\n")

    with pytest.raises(ManifestError):
        TemplateManifest.from_file(bad / "manifest.toml", "bad")

    registry = TemplateRegistry(tmp_path)
    assert not registry.template_exists("bad")


@pytest.mark.unit
def test_refresh_swaps_snapshot(templates_root):
    registry = TemplateRegistry(templates_root)
    before = registry._templates
    (templates_root / "modern").mkdir()
    (templates_root / "modern" / "main.typ").write_text("= Modern\n")

    registry.refresh()

    assert registry.template_exists("modern")
    assert "modern" not in before


@pytest.mark.unit
def test_snapshot_is_read_only(registry):
    with pytest.raises(TypeError):
        registry._templates["new"] = registry.resolve(None)


@pytest.mark.unit
def test_list_templates_sorted(registry):
    infos = registry.list_templates()
    assert [info.name for info in infos] == ["broken", "default", "minimal"]
    assert infos[2].description == "Minimal single-column layout"


@pytest.mark.unit
def test_prepare_workspace_copies_main_and_dependencies(registry, tmp_path):
    workspace = tmp_path / "ws"
    workspace.mkdir()

    result = registry.prepare_workspace("minimal", workspace)

    assert result.template_id == "minimal"
    assert result.main_file == workspace / "main.typ"
    assert (workspace / "main.typ").is_file()
    assert (workspace / "template.typ").is_file()
    assert result.copied_dependencies == ["template.typ"]
    assert result.missing_dependencies == []
    assert result.font_config == workspace / "font_config.typ"
    assert (workspace / "font_config.typ").is_file()


@pytest.mark.unit
def test_prepare_workspace_reports_missing_dependencies(registry, tmp_path):
    """Test that missing and escaping dependencies are reported, not raised."""
    workspace = tmp_path / "ws"
    workspace.mkdir()

    result = registry.prepare_workspace("broken", workspace)

    assert result.copied_dependencies == ["template.typ"]
    missing = {m.dependency: m for m in result.missing_dependencies}
    assert set(missing) == {"missing.typ", "../outside.typ"}
    assert missing["../outside.typ"].reason == "escapes the template directory"
    assert all(m.code == "TEMPLATE_DEPENDENCY_MISSING" for m in missing.values())
    assert not (tmp_path / "outside.typ").exists()


@pytest.mark.unit
def test_prepare_workspace_unknown_id_stages_default(registry, tmp_path):
    workspace = tmp_path / "ws"
    workspace.mkdir()

    result = registry.prepare_workspace("nope", workspace)

    assert result.template_id == DEFAULT_TEMPLATE_ID
    assert (workspace / "main.typ").read_text() == (BUILTIN_TEMPLATE_PATH / "main.typ").read_text()


@pytest.mark.unit
def test_prepare_workspace_main_file_removed_after_discovery(templates_root, tmp_path):
    registry = TemplateRegistry(templates_root)
    (templates_root / "minimal" / "main.typ").unlink()
    workspace = tmp_path / "ws"
    workspace.mkdir()

    with pytest.raises(TemplateMainFileMissing) as exc_info:
        registry.prepare_workspace("minimal", workspace)
    assert exc_info.value.code == "TEMPLATE_MAIN_FILE_MISSING"
