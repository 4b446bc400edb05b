"""Report rendering for check results."""
import json
from typing import Dict, List

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .analyzer.checker import FileReport

SEVERITY = 5


def build_json_report(reports: List[FileReport]) -> Dict:
    """Build a PHP_CodeSniffer-compatible JSON report structure.

    Files that failed to load are listed with no messages; their error is
    reported separately by the caller.

    Args:
        reports: Per-file results

    Returns:
        Dict with 'totals' and 'files' keys
    """
    files = {}
    totals = {"errors": 0, "warnings": 0, "fixable": 0}

    for report in reports:
        messages = [
            {
                "message": finding.message,
                "source": finding.source,
                "severity": SEVERITY,
                "fixable": finding.fixable,
                "type": "ERROR",
                "line": finding.line,
                "column": finding.column,
            }
            for finding in report.findings
        ]
        files[report.path] = {
            "errors": report.error_count,
            "warnings": 0,
            "messages": messages,
        }
        totals["errors"] += report.error_count
        totals["fixable"] += report.fixable_count

    return {"totals": totals, "files": files}


def render_json(reports: List[FileReport]) -> str:
    return json.dumps(build_json_report(reports), indent=2, ensure_ascii=False)


def print_full_report(reports: List[FileReport], console: Console):
    """Print one table of findings per file that has any."""
    for report in reports:
        if report.error:
            console.print(f"[bold red]Error:[/bold red] {escape(report.path)}: {escape(report.error)}", soft_wrap=True)
            continue
        if not report.findings:
            continue

        table = Table(title=f"FILE: {report.path}", title_justify="left", show_lines=False)
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("Col", justify="right", style="cyan")
        table.add_column("Source", style="magenta")
        table.add_column("Message", style="yellow")

        for finding in report.findings:
            table.add_row(
                str(finding.line),
                str(finding.column),
                finding.source,
                escape(finding.message),
            )

        console.print(table)
        console.print(
            f"[bold]{report.error_count} error(s)[/bold], "
            f"[green]{report.fixable_count} fixable[/green] with 'snakesniff fix'\n"
        )

    print_totals(reports, console)


def print_summary_report(reports: List[FileReport], console: Console):
    """Print per-file error counts followed by totals."""
    table = Table(title="Summary", show_header=True, header_style="bold cyan")
    table.add_column("File", style="magenta")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("Fixable", justify="right", style="green")

    for report in reports:
        if report.error:
            table.add_row(escape(report.path), "[bold red]unreadable[/bold red]", "-")
        elif report.findings:
            table.add_row(escape(report.path), str(report.error_count), str(report.fixable_count))

    if table.row_count:
        console.print(table)
    print_totals(reports, console)


def print_totals(reports: List[FileReport], console: Console):
    errors = sum(r.error_count for r in reports)
    affected = sum(1 for r in reports if r.findings)
    if errors == 0:
        console.print(f"[bold green]✓ No naming violations in {len(reports)} file(s)[/bold green]")
    else:
        console.print(
            f"[bold red]✗ {errors} violation(s)[/bold red] in {affected} of {len(reports)} file(s)"
        )
