"""
Theme commands for Sassy CLI.

- build: Compile a theme source into <name>.color-theme.json
- lint: Report precedence and variable problems
- resolve: Show how one key resolves, step by step
- proof: Print the composed source after imports are applied
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
import yaml
from rich.table import Table
from rich.text import Text

from sassy.cli.utils import console, err_console, print_error, print_findings, swatch
from sassy.core.compiler import CompileSettings, compile_theme, lint, proof, resolve_trace
from sassy.core.emitter import emit_json
from sassy.core.errors import SassyError
from sassy.core.ir import LintFinding, Severity, ThemeDocument
from sassy.core.lint import LintSettings
from sassy.core.loader import load_chain
from sassy.core.manifest import ProjectManifest, find_manifest, load_manifest

OUTPUT_SUFFIX = ".color-theme.json"


# =============================================================================
# Helper Functions
# =============================================================================


def _load_project(source: Path, manifest: Path | None) -> ProjectManifest:
    if not source.exists():
        print_error(f"Theme source not found: {source}")
        raise typer.Exit(code=1)
    try:
        if manifest is not None:
            return load_manifest(manifest, required=True)
        return load_manifest(find_manifest(source))
    except SassyError as e:
        print_error(str(e))
        raise typer.Exit(code=1)


def _load(source: Path, mf: ProjectManifest) -> list[ThemeDocument]:
    try:
        return load_chain(source, workers=mf.build.fetch_workers)
    except SassyError as e:
        print_error(str(e))
        raise typer.Exit(code=1)


def _lint_settings(mf: ProjectManifest) -> LintSettings:
    return LintSettings(disabled=mf.lint.disabled_kinds)


def _output_dir(out: Path | None, mf: ProjectManifest) -> Path:
    if out is not None:
        return out
    base = mf.path.parent if mf.path is not None else Path.cwd()
    return base / mf.build.output_dir


def _write_if_changed(target: Path, content: str) -> str:
    """Write ``content`` unless the file already holds it; return the outcome."""
    if target.exists() and target.read_text(encoding="utf-8") == content:
        return "unchanged"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return "written"


def _exit_code(findings: list[LintFinding], strict: bool) -> int:
    if any(f.severity == Severity.ERROR for f in findings):
        return 2
    if strict and any(f.severity == Severity.WARNING for f in findings):
        return 1
    return 0


# =============================================================================
# Commands
# =============================================================================


def build_command(
    source: Path = typer.Argument(..., help="Theme source file (YAML or JSON)"),
    out: Path | None = typer.Option(
        None, "--out", "-o", help="Output directory (default: [build].output_dir)"
    ),
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Path to sassy.toml"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print the compiled theme instead of writing it"
    ),
) -> None:
    """
    Compile a theme source and its imports into an editor color theme.
    """
    mf = _load_project(source, manifest)
    chain = _load(source, mf)

    try:
        result = compile_theme(
            chain,
            settings=CompileSettings(workers=mf.build.workers, lint=_lint_settings(mf)),
        )
    except SassyError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    content = emit_json(result.artifact)
    if dry_run:
        typer.echo(content, nl=False)
    else:
        target = _output_dir(out, mf) / f"{source.stem}{OUTPUT_SUFFIX}"
        state = _write_if_changed(target, content)
        console.print(f"[green]✓[/green] {target} <{state}>", highlight=False)

    if result.findings:
        warnings = sum(1 for f in result.findings if f.severity != Severity.INFO)
        if warnings:
            err_console.print(
                f"[yellow]{warnings} lint issue(s); run 'sassy lint {source}' for details[/yellow]"
            )


def lint_command(
    source: Path = typer.Argument(..., help="Theme source file (YAML or JSON)"),
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Path to sassy.toml"),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors"),
    format: str = typer.Option(
        "human", "--format", "-f", help="Output format: 'human' or 'json'"
    ),
) -> None:
    """
    Check rule precedence, semantic selectors and variable usage.

    Exit status: 0 clean, 1 warnings with --strict (or fatal errors), 2 lint errors.
    """
    mf = _load_project(source, manifest)
    chain = _load(source, mf)

    try:
        findings = lint(chain, settings=_lint_settings(mf))
    except SassyError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    if format == "json":
        typer.echo(json.dumps([f.model_dump(mode="json") for f in findings], indent=2))
    else:
        print_findings(findings, source)

    code = _exit_code(findings, strict or mf.lint.strict)
    if code:
        raise typer.Exit(code=code)


def resolve_command(
    source: Path = typer.Argument(..., help="Theme source file (YAML or JSON)"),
    token: str = typer.Option(
        ..., "--token", "-t", help="Key to trace, e.g. colors.editor.background or vars.std.fg"
    ),
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Path to sassy.toml"),
) -> None:
    """
    Show the resolution trail of one key: every reference it follows and its value.
    """
    mf = _load_project(source, manifest)
    chain = _load(source, mf)

    try:
        steps = resolve_trace(chain, token, settings=CompileSettings(workers=mf.build.workers))
    except SassyError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    table = Table(title=Text(token), show_header=True)
    table.add_column("#", justify="right", style="bright_black")
    table.add_column("Name", style="cyan")
    table.add_column("Expression")
    table.add_column("Value")
    for i, step in enumerate(steps, start=1):
        table.add_row(str(i), Text(step.name), Text(step.expression), swatch(step.value))
    console.print(table)


def proof_command(
    source: Path = typer.Argument(..., help="Theme source file (YAML or JSON)"),
    manifest: Path | None = typer.Option(None, "--manifest", "-m", help="Path to sassy.toml"),
) -> None:
    """
    Print the composed source (imports applied, nothing resolved) as YAML.
    """
    mf = _load_project(source, manifest)
    chain = _load(source, mf)

    try:
        composed = proof(chain)
    except SassyError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    typer.echo(yaml.safe_dump(composed, sort_keys=False, allow_unicode=True), nl=False)
