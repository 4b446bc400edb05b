"""snakesniff CLI - snake_case naming checks for PHP variables and parameters."""
import difflib
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from .analyzer.checker import FileReport, SnakeCaseChecker
from .analyzer.classifier import Mode, RoleClassifier
from .analyzer.parser import PhpTokenizer
from .analyzer.rules import resolve_rules
from .config import __version__, get_config
from .reaper.token_fixer import TokenFixer
from .report import print_full_report, print_summary_report, render_json
from .utils.safe_console import SafeConsole

app = typer.Typer(
    name="snakesniff",
    help="Check and fix snake_case naming of PHP variables and parameters",
    add_completion=False
)
console = SafeConsole()

EXIT_FINDINGS = 1
EXIT_USAGE = 2


class ReportFormat(str, Enum):
    full = "full"
    summary = "summary"
    json = "json"


class ExplainMode(str, Enum):
    body = "body"
    declaration = "declaration"


def _build_checker(rules: Optional[List[str]], extensions: Optional[str]) -> SnakeCaseChecker:
    """Create a checker from CLI options, falling back to configuration.

    Raises:
        typer.Exit: With EXIT_USAGE if a rule name or the configuration is invalid
    """
    try:
        config = get_config()
        policies = resolve_rules(rules) if rules else config.rules
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(EXIT_USAGE)

    if not policies:
        console.print("[bold red]Error:[/bold red] No rules enabled", soft_wrap=True)
        raise typer.Exit(EXIT_USAGE)

    exts = [e.strip() for e in extensions.split(',') if e.strip()] if extensions else config.extensions
    return SnakeCaseChecker(
        policies,
        extensions=exts,
        exclude_dirs=config.exclude_dirs,
        standard=config.standard,
    )


def _run(checker: SnakeCaseChecker, paths: List[Path]) -> List[FileReport]:
    try:
        files = checker.discover(paths)
    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(EXIT_USAGE)

    if not files:
        console.print("[yellow]No PHP files found.[/yellow]")
    return [checker.check_file(file_path) for file_path in files]


@app.command()
def check(
    paths: List[Path] = typer.Argument(..., help="Files or directories to check"),
    rule: Optional[List[str]] = typer.Option(None, "--rule", "-r", help="Rule name or alias (local, variable, parameter); repeatable"),
    report: ReportFormat = typer.Option(ReportFormat.full, "--report", help="Report format"),
    extensions: Optional[str] = typer.Option(None, "--extensions", help="Comma-separated file extensions (e.g. php,inc)"),
):
    """Report variables and parameters that are not in snake_case."""
    checker = _build_checker(rule, extensions)
    reports = _run(checker, paths)

    if report is ReportFormat.json:
        typer.echo(render_json(reports))
        for file_report in reports:
            if file_report.error:
                typer.echo(f"Error: {file_report.path}: {file_report.error}", err=True)
    elif report is ReportFormat.summary:
        print_summary_report(reports, console)
    else:
        print_full_report(reports, console)

    if any(file_report.findings for file_report in reports):
        raise typer.Exit(EXIT_FINDINGS)


@app.command()
def fix(
    paths: List[Path] = typer.Argument(..., help="Files or directories to fix"),
    rule: Optional[List[str]] = typer.Option(None, "--rule", "-r", help="Rule name or alias (local, variable, parameter); repeatable"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show a diff instead of writing files"),
    extensions: Optional[str] = typer.Option(None, "--extensions", help="Comma-separated file extensions (e.g. php,inc)"),
):
    """Rename offending variables to their snake_case suggestion."""
    checker = _build_checker(rule, extensions)
    reports = _run(checker, paths)

    total = 0
    for file_report in reports:
        if file_report.error:
            console.print(f"[bold red]Error:[/bold red] {escape(file_report.path)}: {escape(file_report.error)}", soft_wrap=True)
            continue
        if not file_report.findings:
            continue

        if dry_run:
            fixer = TokenFixer(file_report.stream)
            count = fixer.apply(file_report.findings)
            original = file_report.stream.render()
            diff = ''.join(difflib.unified_diff(
                original.splitlines(keepends=True),
                fixer.render().splitlines(keepends=True),
                fromfile=f"a/{file_report.path}",
                tofile=f"b/{file_report.path}",
            ))
            if diff:
                console.print(Syntax(diff, "diff", theme="ansi_dark", word_wrap=True))
            total += count
            continue

        try:
            count = TokenFixer.fix_file(file_report.path, file_report.stream, file_report.findings)
        except OSError as e:
            console.print(f"[bold red]Error:[/bold red] Could not write {escape(file_report.path)}: {escape(str(e))}", soft_wrap=True)
            continue
        if count:
            console.print(f"[green]✓ Fixed {count} name(s) in {escape(file_report.path)}[/green]")
        total += count

    verb = "Would fix" if dry_run else "Fixed"
    console.print(f"\n[bold]{verb} {total} name(s) in {len(reports)} file(s)[/bold]")


@app.command()
def explain(
    file: Path = typer.Argument(..., help="PHP file to inspect"),
    mode: ExplainMode = typer.Option(ExplainMode.body, "--mode", "-m", help="Classify body usages of parameters (body) or declarations only"),
):
    """Show the role assigned to every variable in a file."""
    if not file.is_file():
        console.print(f"[bold red]Error:[/bold red] File does not exist: {escape(str(file))}", soft_wrap=True)
        raise typer.Exit(EXIT_USAGE)

    stream = PhpTokenizer().tokenize_file(file)
    if stream is None:
        console.print(f"[bold red]Error:[/bold red] Could not read {escape(str(file))} as UTF-8 text", soft_wrap=True)
        raise typer.Exit(EXIT_USAGE)

    classifier = RoleClassifier(Mode(mode.value))
    table = Table(title=f"Variable roles: {file}", show_header=True, header_style="bold cyan")
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Col", justify="right", style="cyan")
    table.add_column("Variable", style="yellow")
    table.add_column("Role", style="green")

    for pos, role in classifier.classify_all(stream):
        token = stream[pos]
        table.add_row(str(token.line), str(token.column), escape(token.text), role.value)

    console.print(table)


def _version_callback(value: bool):
    if value:
        typer.echo(f"snakesniff {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(None, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"),
):
    """snakesniff - snake_case naming checks for PHP."""
    pass


if __name__ == "__main__":
    app()
