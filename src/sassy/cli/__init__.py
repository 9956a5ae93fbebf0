"""
Sassy CLI Package.

- theme.py: build, lint, resolve and proof commands
- utils.py: Shared utilities (version, logging, output)
"""

import typer

from sassy.cli.theme import build_command, lint_command, proof_command, resolve_command
from sassy.cli.utils import configure_logging, version_callback

app = typer.Typer(
    help="""Sassy – compile variable- and palette-driven themes into editor color themes

Commands:
  • build: compile a source and its imports into <name>.color-theme.json
  • lint: report unreachable rules, duplicate scopes and variable problems
  • resolve: trace how one key resolves
  • proof: print the composed source after imports are applied
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Sassy CLI main callback for global options."""
    configure_logging(verbose)


app.command(name="build")(build_command)
app.command(name="lint")(lint_command)
app.command(name="resolve")(resolve_command)
app.command(name="proof")(proof_command)


def main() -> None:
    app()


__all__ = ["app", "main"]
