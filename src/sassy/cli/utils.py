"""
Sassy CLI Utilities.

Shared helpers used across CLI modules.
"""

import logging
import platform
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from sassy._version import get_version
from sassy.core.ir import ColorValue, LintFinding, Severity

console = Console()
err_console = Console(stderr=True)

SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        python_version = platform.python_version()
        python_impl = platform.python_implementation()

        typer.echo(f"Sassy {get_version()}")
        typer.echo(f"Python {python_version} ({python_impl})")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def swatch(color: ColorValue | None) -> Text:
    """Color sample followed by the hex value."""
    if color is None:
        return Text("-", style="bright_black")
    text = Text("██ ", style=color.hex[:7])
    text.append(color.hex)
    return text


def print_findings(findings: list[LintFinding], source: Path) -> None:
    """Print lint findings as a table, or an OK line when there are none."""
    if not findings:
        console.print(f"[green]✓[/green] {escape(str(source))}: no issues found")
        return

    table = Table(title=escape(str(source)), show_lines=False)
    table.add_column("Severity")
    table.add_column("Check", style="bright_black", no_wrap=True)
    table.add_column("Rule", justify="right")
    table.add_column("Message")

    for finding in findings:
        rule = "" if finding.rule_index is None else str(finding.rule_index + 1)
        table.add_row(
            Text(finding.severity.value, style=SEVERITY_STYLES[finding.severity]),
            finding.kind.value,
            rule,
            Text(finding.message),
        )
    console.print(table)


def print_error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
