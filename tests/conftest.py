"""Shared fixtures: tenant data, templates and stand-in compilers."""

import os
import stat
from pathlib import Path

import pytest
from loguru import logger

from cvenom.contexts.rendering.compiler import DocumentCompiler
from cvenom.contexts.generation.pipeline import GenerationPipeline
from cvenom.contexts.templating.template_registry import TemplateRegistry

PNG_BYTES = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A]) + b"\x00" * 32
JPEG_BYTES = bytes([0xFF, 0xD8, 0xFF, 0xE0]) + b"\x00" * 32

REPO_TEMPLATES_PATH = Path(__file__).resolve().parent.parent / "templates"

# Stand-ins for typst. Invoked as: <script> compile <main.typ> <output.pdf> --input ...
FAKE_TYPST = """#!/bin/sh
dir=$(dirname "$2")
{ printf '%%PDF-1.7\\n'; cat "$dir/cv_params.toml"; printf 'ARGS: %s\\n' "$*"; } > "$3"
"""
FAILING_TYPST = """#!/bin/sh
echo "compiling $2"
echo "error: unknown variable: get_work_experience" >&2
exit 1
"""
SLOW_TYPST = """#!/bin/sh
exec sleep 30
"""
SILENT_TYPST = """#!/bin/sh
exit 0
"""


def write_script(path: Path, content: str) -> Path:
    path.write_text(content)
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def make_profile(tenant_dir: Path, profile: str, display_name: str, languages=("en",)) -> Path:
    """Create a minimal hand-written profile directory."""
    profile_dir = tenant_dir / profile
    profile_dir.mkdir(parents=True, exist_ok=True)
    (profile_dir / "cv_params.toml").write_text(
        f'name = "{display_name}"\n'
        'title = "Software Engineer"\n'
        f'email = "{profile}@example.com"\n'
        "\n[skills]\n"
        'technical = ["Python", "Typst"]\n'
        "\n[languages]\n"
        'native = ["English"]\n',
        encoding="utf-8",
    )
    for lang in languages:
        (profile_dir / f"experiences_{lang}.typ").write_text(
            '#import "template.typ": *\n\n#let get_work_experience() = [\n  = Work Experience\n]\n',
            encoding="utf-8",
        )
    return profile_dir


@pytest.fixture(autouse=True)
def reset_logger():
    """Keep CLI tests from leaving loguru sinks on closed streams."""
    yield
    logger.remove()


@pytest.fixture
def image_bytes():
    return {"png": PNG_BYTES, "jpeg": JPEG_BYTES}


@pytest.fixture
def profile_factory():
    return make_profile


@pytest.fixture
def tenant_dir(tmp_path):
    tenant = tmp_path / "tenants" / "acme"
    make_profile(tenant, "alice", "Alice Martin", languages=("en", "fr"))
    make_profile(tenant, "bob", "Bob Stone")
    return tenant


@pytest.fixture
def templates_root(tmp_path):
    """Templates root with a 'minimal' template and one with a missing dependency."""
    root = tmp_path / "templates"

    minimal = root / "minimal"
    minimal.mkdir(parents=True)
    (minimal / "manifest.toml").write_text(
        'name = "minimal"\n'
        'description = "Minimal single-column layout"\n'
        'main_file = "main.typ"\n'
        'dependencies = ["template.typ"]\n'
        'languages = ["en", "fr"]\n'
    )
    (minimal / "main.typ").write_text('#import "template.typ": *\n')
    (minimal / "template.typ").write_text("#let cv(body) = body\n")

    broken = root / "broken"
    broken.mkdir()
    (broken / "manifest.toml").write_text(
        'name = "broken"\n'
        'main_file = "main.typ"\n'
        'dependencies = ["template.typ", "missing.typ", "../outside.typ"]\n'
    )
    (broken / "main.typ").write_text('#import "template.typ": *\n')
    (broken / "template.typ").write_text("#let cv(body) = body\n")

    (root / "font_config.typ").write_text('#let font = "Inter"\n')
    return root


@pytest.fixture
def workspace_root(tmp_path):
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def fake_typst(tmp_path):
    return write_script(tmp_path / "fake_typst.sh", FAKE_TYPST)


@pytest.fixture
def failing_typst(tmp_path):
    return write_script(tmp_path / "failing_typst.sh", FAILING_TYPST)


@pytest.fixture
def slow_typst(tmp_path):
    return write_script(tmp_path / "slow_typst.sh", SLOW_TYPST)


@pytest.fixture
def silent_typst(tmp_path):
    return write_script(tmp_path / "silent_typst.sh", SILENT_TYPST)


@pytest.fixture
def registry(templates_root):
    return TemplateRegistry(templates_root)


@pytest.fixture
def make_pipeline(registry, workspace_root):
    """Factory for pipelines using a given compiler script; pools are shut down after."""
    pipelines = []

    def _make(compiler_path: Path, timeout: float = 20, max_workers: int = 4):
        pipeline = GenerationPipeline(
            registry=registry,
            compiler=DocumentCompiler(str(compiler_path)),
            workspace_root=workspace_root,
            timeout=timeout,
            max_workers=max_workers,
        )
        pipelines.append(pipeline)
        return pipeline

    yield _make
    for pipeline in pipelines:
        pipeline.shutdown()
