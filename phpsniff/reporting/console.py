# Rich console output: format findings and inferences for terminal display.

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from phpsniff.extensions.factory_method import Inference
from phpsniff.findings.models import Finding

# Remediation hints per rule (shown with --verbose)
RULE_REMEDIATIONS: dict[str, str] = {
    "strict-declaration": (
        "Put `declare(strict_types=1);` alone on the line right after `<?php`, "
        "with no spaces inside the parentheses."
    ),
    "function-comment": (
        "Add a /** */ doc comment directly above the function with a @return tag "
        "that matches what the body returns; only use {@inheritdoc} on overrides."
    ),
    "yoda-condition": "Write comparisons as `$value === null`, not `null === $value`.",
    "forbidden-array-trailing-comma": "Remove the comma after the last array element.",
}

SEVERITY_STYLE = {
    "error": "bold red",
    "warning": "bold yellow",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: str) -> str:
    return SEVERITY_STYLE.get(severity.lower(), DEFAULT_SEVERITY_STYLE)


def format_plain(finding: Finding) -> str:
    """Grep-like single line: path:line:col: SEVERITY [rule.Code] message."""
    loc = finding.location
    return (
        f"{loc.path}:{loc.line}:{loc.column}: {finding.severity.upper()} "
        f"[{finding.qualified_code}] {finding.message}"
    )


def print_findings(
    findings: Sequence[Finding],
    analyzed_files: Sequence[Path] | None = None,
    verbose: bool = False,
    console: Optional[Console] = None,
) -> None:
    """
    Print findings grouped by file, colored by severity.
    If verbose, shows remediation hints. If analyzed_files is provided, shows
    a per-file summary table (clean vs failing).
    """
    console = console or Console()

    if not findings and not analyzed_files:
        console.print(
            Panel(
                "[green]No violations found.[/green]",
                title="phpsniff",
                border_style="green",
                box=box.ROUNDED,
            )
        )
        return

    if not findings and analyzed_files:
        _print_file_summary_table([], analyzed_files, console)
        return

    by_file: dict[str, list[Finding]] = {}
    for f in findings:
        by_file.setdefault(str(f.location.path), []).append(f)

    for path in sorted(by_file):
        file_findings = sorted(by_file[path], key=lambda x: (x.location.line, x.location.column))

        console.print()
        console.print(
            Panel(
                f"[bold cyan]{_shorten_path(path)}[/bold cyan]",
                box=box.SIMPLE_HEAD,
                border_style="blue",
                padding=(0, 1),
            )
        )

        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.SIMPLE,
            padding=(0, 1),
            expand=False,
        )
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Col", justify="right", style="dim", width=4)
        table.add_column("Severity", width=8)
        table.add_column("Code", width=36)
        table.add_column("Message", style="white")

        for f in file_findings:
            loc = f.location
            table.add_row(
                str(loc.line),
                str(loc.column),
                Text(f.severity.upper(), style=_severity_style(f.severity)),
                Text(f.qualified_code, style="dim"),
                f.message,
            )

        console.print(table)

        if verbose:
            seen_rules: set[str] = set()
            for f in file_findings:
                if f.rule_id in seen_rules:
                    continue
                seen_rules.add(f.rule_id)
                hint = RULE_REMEDIATIONS.get(f.rule_id)
                if hint:
                    console.print(f"  [dim][Fix][/dim] [{f.rule_id}] {hint}")
            console.print()

    if analyzed_files:
        _print_file_summary_table(findings, analyzed_files, console)

    _print_summary(findings, console)


def print_inferences(inferences: Sequence[Inference], console: Optional[Console] = None) -> None:
    """Print inferred factory-method return types as one table."""
    console = console or Console()
    if not inferences:
        console.print("[dim]No supported factory calls found.[/dim]")
        return

    table = Table(title="Factory return types", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("Location", style="dim")
    table.add_column("Method")
    table.add_column("Type", style="bold green")
    for inference in inferences:
        loc = inference.location
        table.add_row(
            f"{_shorten_path(loc.path)}:{loc.line}:{loc.column}",
            inference.method,
            inference.type.describe(),
        )
    console.print(table)


def _shorten_path(path: str | Path) -> str:
    """Return the path relative to the working directory when possible."""
    try:
        return str(Path(path).resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


def _print_file_summary_table(
    findings: Sequence[Finding],
    analyzed_files: Sequence[Path],
    console: Console,
) -> None:
    by_path: dict[str, int] = {}
    for f in findings:
        key = str(f.location.path)
        by_path[key] = by_path.get(key, 0) + 1

    table = Table(
        title="Files Summary",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("File", style="white")
    table.add_column("Status", width=8)
    table.add_column("Findings", justify="right", width=8)

    failing = sorted((p for p in analyzed_files if str(p) in by_path), key=str)
    clean = sorted((p for p in analyzed_files if str(p) not in by_path), key=str)
    for p in failing:
        table.add_row(_shorten_path(p), Text("FAIL", style="bold red"), str(by_path[str(p)]))
    for p in clean:
        table.add_row(_shorten_path(p), Text("OK", style="bold green"), "0")

    console.print()
    console.print(Panel(table, border_style="cyan", box=box.ROUNDED))


def _print_summary(findings: Sequence[Finding], console: Console) -> None:
    by_severity: dict[str, int] = {}
    for f in findings:
        s = f.severity.lower()
        by_severity[s] = by_severity.get(s, 0) + 1

    total = len(findings)
    parts = [f"[bold]{total} violation{'s' if total != 1 else ''}[/bold]"]
    for sev in ("error", "warning"):
        if sev in by_severity:
            parts.append(f"[{_severity_style(sev)}]{by_severity[sev]} {sev}[/]")

    console.print()
    console.print(
        Panel(
            " | ".join(parts),
            title="Summary",
            border_style="yellow" if total > 0 else "green",
            box=box.ROUNDED,
        )
    )
