#!/usr/bin/env python3
"""
CVenom command-line interface

Generates CV PDFs from profile directories and manages profile data.

Commands:
    generate  - Compile a profile's CV to PDF
    templates - List available templates
    create    - Bootstrap a new profile from the starter templates
    export    - Write a profile as structured CV data (YAML or JSON)
    import    - Create a profile from structured CV data (YAML or JSON)

Examples:\n

    cvenom_cli.py generate alice                         # English CV, default template

    cvenom_cli.py generate alice --lang fr -t minimal    # French CV, minimal template

    cvenom_cli.py create "Jean Dupont"                   # New profile 'jean-dupont'

    cvenom_cli.py export alice alice.yaml                # Profile -> YAML

    cvenom_cli.py import alice.json bob                  # JSON -> new profile 'bob'
"""

import os
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from cvenom.contexts.generation import GenerationPipeline, GenerationRequest
from cvenom.contexts.rendering.logger import setup_rendering_logger
from cvenom.contexts.templating import (
    TemplateRegistry,
    create_profile_from_cv_data,
    create_profile_from_templates,
    load_cv_document,
    load_profile_cv_data,
    save_cv_document,
)
from cvenom.contexts.templating.profiles import BOOTSTRAP_LANGUAGES, profile_directory
from cvenom.utils.errors import CvenomError
from cvenom.utils.timestamp import now

load_dotenv()
TENANT_DATA_PATH = Path(os.getenv("CVENOM_TENANT_DATA_PATH", "data"))
OUTPUT_PATH = Path(os.getenv("CVENOM_OUTPUT_PATH", "output"))
TEMPLATES_PATH = Path(os.getenv("CVENOM_TEMPLATES_PATH", "templates"))
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))


app = typer.Typer(
    help="Generate CV PDFs with Typst and manage profile data",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def report_error(error: CvenomError) -> None:
    """Print an error and its suggestions, then exit with status 1."""
    typer.secho(f"✗ [{error.code}] {error.message}", fg=typer.colors.RED, bold=True, err=True)
    for suggestion in error.suggestions:
        typer.echo(f"  - {suggestion}", err=True)
    raise typer.Exit(code=1)


@app.command("generate")
def generate_command(
    profile: Annotated[str, typer.Argument(help="Profile name")],
    language: Annotated[
        str, typer.Option("--lang", "-l", help="CV language (en, fr, es, de)")
    ] = "en",
    template: Annotated[
        str, typer.Option("--template", "-t", help="Template id (unknown ids use 'default')")
    ] = "default",
    tenant_dir: Annotated[
        Path, typer.Option("--tenant-dir", help="Tenant data directory holding profiles")
    ] = TENANT_DATA_PATH,
    templates_dir: Annotated[
        Path, typer.Option("--templates-dir", help="Templates directory")
    ] = TEMPLATES_PATH,
    output_dir: Annotated[
        Path, typer.Option("--output-dir", "-o", help="Directory for the generated PDF")
    ] = OUTPUT_PATH,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", help="Compile deadline in seconds (0 disables)", min=0),
    ] = None,
):
    """
    Compile a profile's CV to PDF.

    Examples:\n

        $ cvenom_cli.py generate alice

        $ cvenom_cli.py generate alice --lang fr --template minimal -o out/
    """
    setup_rendering_logger(LOGS_PATH / f"generate_{now()}")

    typer.secho(f"\nGenerating: {profile}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"Language: {language}")
    typer.echo(f"Template: {template}")
    typer.echo("")

    registry = TemplateRegistry(templates_dir)
    pipeline_kwargs = {} if timeout is None else {"timeout": timeout}
    pipeline = GenerationPipeline(registry=registry, **pipeline_kwargs)
    try:
        request = GenerationRequest(
            profile=profile,
            tenant_data_dir=tenant_dir,
            language=language,
            template_id=template,
        )
        artifact = pipeline.generate(request)
    except CvenomError as e:
        report_error(e)
    finally:
        pipeline.shutdown()

    output_dir.mkdir(parents=True, exist_ok=True)
    pdf_path = output_dir / artifact.filename
    pdf_path.write_bytes(artifact.pdf_bytes)

    typer.secho("✓ CV generated", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Template: {artifact.template_id}")
    typer.echo(f"  PDF: {pdf_path}")
    for warning in artifact.warnings:
        typer.secho(f"  ! {warning.code}: {warning.message}", fg=typer.colors.YELLOW)
    typer.echo("")


@app.command("templates")
def templates_command(
    templates_dir: Annotated[
        Path, typer.Option("--templates-dir", help="Templates directory")
    ] = TEMPLATES_PATH,
):
    """List the templates available for generation."""
    registry = TemplateRegistry(templates_dir)

    typer.secho(f"\nTemplates in {templates_dir}:", fg=typer.colors.BLUE, bold=True)
    for info in registry.list_templates():
        typer.echo(f"  {info.name:<16} {info.description}")
    typer.echo("")


@app.command("create")
def create_command(
    profile: Annotated[str, typer.Argument(help="Profile name (normalized to a safe id)")],
    display_name: Annotated[
        Optional[str],
        typer.Option("--display-name", "-n", help="Name written into the CV"),
    ] = None,
    tenant_dir: Annotated[
        Path, typer.Option("--tenant-dir", help="Tenant data directory holding profiles")
    ] = TENANT_DATA_PATH,
    templates_dir: Annotated[
        Path, typer.Option("--templates-dir", help="Directory with the starter templates")
    ] = TEMPLATES_PATH,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing profile's files")
    ] = False,
):
    """
    Bootstrap a new profile from the starter templates.

    Examples:\n

        $ cvenom_cli.py create "Jean Dupont"

        $ cvenom_cli.py create alice --display-name "Alice Martin"
    """
    try:
        target = profile_directory(tenant_dir, profile)
    except CvenomError as e:
        report_error(e)

    if target.exists() and not force:
        typer.secho(
            f"Profile already exists: {target} (use --force to overwrite)",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    profile_dir = create_profile_from_templates(
        profile, tenant_dir, templates_dir, display_name=display_name or profile
    )
    typer.secho(f"✓ Created profile '{profile_dir.name}'", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Directory: {profile_dir}")


@app.command("export")
def export_command(
    profile: Annotated[str, typer.Argument(help="Profile name")],
    output_file: Annotated[Path, typer.Argument(help="Destination .yaml/.yml/.json file")],
    language: Annotated[
        str, typer.Option("--lang", "-l", help="Which experiences file to read")
    ] = "en",
    tenant_dir: Annotated[
        Path, typer.Option("--tenant-dir", help="Tenant data directory holding profiles")
    ] = TENANT_DATA_PATH,
):
    """
    Write a profile as structured CV data.

    Work experience lives in Typst markup and is not exported.
    """
    try:
        doc = load_profile_cv_data(profile, tenant_dir, language)
    except CvenomError as e:
        report_error(e)

    save_cv_document(doc, output_file)
    typer.secho(f"✓ Exported '{profile}' to {output_file}", fg=typer.colors.GREEN, bold=True)


@app.command("import")
def import_command(
    input_file: Annotated[
        Path, typer.Argument(help="Structured CV data (.yaml/.yml/.json)", exists=True)
    ],
    profile: Annotated[str, typer.Argument(help="Profile to create")],
    languages: Annotated[
        Optional[List[str]],
        typer.Option("--lang", "-l", help="Languages to write experiences for (repeatable)"),
    ] = None,
    tenant_dir: Annotated[
        Path, typer.Option("--tenant-dir", help="Tenant data directory holding profiles")
    ] = TENANT_DATA_PATH,
):
    """
    Create a profile from structured CV data.

    Examples:\n

        $ cvenom_cli.py import alice.json alice

        $ cvenom_cli.py import cv.yaml bob --lang en --lang de
    """
    try:
        doc = load_cv_document(input_file)
        profile_dir = create_profile_from_cv_data(
            profile, tenant_dir, doc, languages=languages or BOOTSTRAP_LANGUAGES
        )
    except CvenomError as e:
        report_error(e)

    typer.secho(
        f"✓ Imported {input_file} as '{profile_dir.name}'", fg=typer.colors.GREEN, bold=True
    )
    typer.echo(f"  Directory: {profile_dir}")


if __name__ == "__main__":
    app()
