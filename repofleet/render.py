"""
Rendering of batch runs for repofleet commands.

The services only yield progress strings and build an OperationReport;
everything users see is produced here:
- simple: status lines and a summary on stderr
- json:   JSONL on stdout (progress, one line per outcome, summary)
- pretty: rich spinner plus summary tables
"""

import json
import sys
from typing import Callable, Generator, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .domain.operation import OperationReport, OperationStatus

# Runs a service generator to completion and returns its report
Runner = Generator[str, None, OperationReport]


def _drain(progress_iter: Runner, on_message: Callable[[str], None]) -> OperationReport:
    """Feed every progress message to ``on_message`` and return the report."""
    while True:
        try:
            message = next(progress_iter)
        except StopIteration as stop:
            return stop.value
        on_message(message)


def output_simple(progress_iter: Runner, title: str,
                  success_label: str = "Successful") -> OperationReport:
    """Plain status lines on stderr, then a summary block."""
    report = _drain(progress_iter, lambda m: print(m, file=sys.stderr, flush=True))

    summary = report.summary
    print(f"\n=== {title} ===", file=sys.stderr)
    print(f"  Total: {summary.total}", file=sys.stderr)
    print(f"  {success_label}: {summary.succeeded}", file=sys.stderr)
    if summary.skipped > 0:
        print(f"  Skipped: {summary.skipped}", file=sys.stderr)
    print(f"  Failed: {summary.failed}", file=sys.stderr)
    for error in report.errors:
        print(f"    - {error}", file=sys.stderr)
    if summary.total and summary.succeeded == summary.total:
        print("All repositories processed successfully!", file=sys.stderr)
    return report


def output_json(progress_iter: Runner) -> OperationReport:
    """JSONL on stdout: progress lines, one object per outcome, then the summary."""
    report = _drain(progress_iter, lambda m: print(json.dumps({'progress': m}), flush=True))

    for outcome in report.outcomes:
        print(json.dumps(outcome.to_dict()), flush=True)
    print(json.dumps(report.to_dict()), flush=True)
    return report


def output_pretty(progress_iter: Runner, title: str, extra_headers=None,
                  success_label: str = "Successful",
                  console: Optional[Console] = None) -> OperationReport:
    """Rich formatted output with a per-repository table and a summary table.

    Args:
        progress_iter: Service generator yielding progress messages
        title: Display title (e.g. "Sparse Fetch")
        extra_headers: List of (label, value) tuples for header section
        success_label: Label for the success metric row
        console: Console to print to (a new one if None)
    """
    console = console or Console()

    console.print(f"\n[bold]{title}[/bold]")
    for label, value in extra_headers or []:
        console.print(f"[bold]{label}:[/bold] {value}")
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Processing...", total=None)
        report = _drain(progress_iter, lambda m: progress.update(task, description=m))

    styles = {
        OperationStatus.SUCCESS: "green",
        OperationStatus.SKIPPED: "yellow",
        OperationStatus.FAILED: "red",
    }
    if report.outcomes:
        detail_table = Table(show_header=True, box=None)
        detail_table.add_column("Repository", style="cyan")
        detail_table.add_column("Status")
        detail_table.add_column("Reason")
        for outcome in report.outcomes:
            style = styles[outcome.status]
            detail_table.add_row(
                outcome.name,
                f"[{style}]{outcome.status.value}[/{style}]",
                outcome.reason or "",
            )
        console.print(detail_table)
        console.print()

    summary = report.summary
    table = Table(title=f"{title} Summary", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total", str(summary.total))
    table.add_row(success_label, f"[green]{summary.succeeded}[/green]")
    if summary.skipped > 0:
        table.add_row("Skipped", f"[yellow]{summary.skipped}[/yellow]")
    if summary.failed > 0:
        table.add_row("Failed", f"[red]{summary.failed}[/red]")
    console.print(table)

    if report.errors:
        console.print(f"\n[red]Errors ({len(report.errors)}):[/red]")
        for error in report.errors:
            console.print(f"  [red]•[/red] {error}")
    elif summary.total and summary.succeeded == summary.total:
        console.print("\n[bold green]✓[/bold green] All repositories processed successfully!")
    return report


def render(progress_iter: Runner, title: str, output_json_mode: bool = False,
           pretty: bool = False, **kwargs) -> OperationReport:
    """Dispatch to the selected output mode."""
    if output_json_mode:
        return output_json(progress_iter)
    if pretty:
        return output_pretty(progress_iter, title, **kwargs)
    return output_simple(progress_iter, title,
                         success_label=kwargs.get('success_label', "Successful"))
