"""Rich terminal reporter — colour, icons, severity pills."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from vulnaudit.findings.aggregator import SEVERITY_LEVELS, AuditReport

_SEVERITY_STYLE = {
    "critical": "bold white on red",
    "high": "bold white on dark_orange",
    "medium": "bold black on yellow",
    "low": "bold black on bright_cyan",
    "informational": "bold black on white",
}

_SEVERITY_ICON = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🔵",
    "informational": "⚪",
}

_PRIORITY_LABEL = {
    "immediate": "[bold red]IMMEDIATE[/bold red]",
    "short_term": "[bold yellow]SHORT TERM[/bold yellow]",
    "long_term": "[bold cyan]LONG TERM[/bold cyan]",
}


def _severity_pill(severity: str) -> Text:
    style = _SEVERITY_STYLE.get(severity, "")
    icon = _SEVERITY_ICON.get(severity, "")
    return Text(f" {icon} {severity.upper()} ", style=style)


def _risk_style(score: float) -> str:
    if score >= 7.0:
        return "bold red"
    if score >= 4.0:
        return "bold yellow"
    return "bold green"


def render(
    report: AuditReport,
    *,
    fail_on: str = "high",
    show_summary: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print the audit report to the terminal using Rich."""
    console = console or Console(stderr=True)

    console.print()
    console.print(Text(report.executive_summary, style="bold"))

    if not report.findings:
        console.print()
        console.print("[bold green]✅ No findings at or above the severity threshold.[/bold green]")
    else:
        console.print()
        table = Table(
            title="Security Audit Findings",
            show_lines=True,
            title_style="bold",
            border_style="dim",
        )
        table.add_column("Severity", justify="center", width=18)
        table.add_column("CVSS", justify="right")
        table.add_column("Rule", style="cyan", min_width=20)
        table.add_column("Location", style="magenta")
        table.add_column("Evidence", min_width=15)

        for finding in report.findings:
            line = f":{finding.line}" if finding.line > 0 else ""
            table.add_row(
                _severity_pill(finding.severity),
                f"{finding.cvss.score:.1f}" if finding.cvss else "-",
                finding.rule_id,
                Text(f"{finding.file}{line}"),
                Text(finding.evidence),
            )
        console.print(table)

    if report.recommendations:
        console.print()
        console.print("[bold]Recommendations[/bold]")
        for rec in report.recommendations:
            console.print(f"  {_PRIORITY_LABEL.get(rec.priority, rec.priority)}  {escape(rec.title)}")

    if report.warnings:
        console.print()
        console.print(f"[yellow]⚠[/yellow]  {len(report.warnings)} warning(s):")
        for w in report.warnings:
            console.print(f"  [dim]{w.kind}[/dim] {escape(w.target)}: {escape(w.message)}")

    if show_summary:
        _print_summary(console, report)

    console.print()
    blocking = report.findings_at_or_above(fail_on)
    if blocking:
        console.print(
            f"[bold red]❌ FAILED — {len(blocking)} finding(s) at or above "
            f"'{fail_on}'.[/bold red]"
        )
    elif report.incomplete:
        console.print("[bold yellow]⚠️  Scan incomplete — timed out before all targets were scanned.[/bold yellow]")
    else:
        console.print(f"[bold green]✓ No findings at or above '{fail_on}'.[/bold green]")


def _print_summary(console: Console, report: AuditReport) -> None:
    counts = "  ".join(
        f"{level}={report.severity_counts.get(level, 0)}" for level in SEVERITY_LEVELS
    )
    console.print()
    console.print(
        f"[dim]Risk score:[/dim]    [{_risk_style(report.risk_score)}]"
        f"{report.risk_score:.1f}/10[/{_risk_style(report.risk_score)}]"
    )
    console.print(f"[dim]Files scanned:[/dim] {report.scanned_files}")
    console.print(f"[dim]Policies:[/dim]      {report.scanned_policies}")
    console.print(f"[dim]Findings:[/dim]      {report.total_findings} (raw {report.raw_finding_count})")
    console.print(f"[dim]By severity:[/dim]   {counts}")
    console.print(f"[dim]Suppressed:[/dim]    {len(report.suppressed)}")
    console.print(f"[dim]Skipped:[/dim]       {len(report.skipped_files)}")
    console.print(f"[dim]Duration:[/dim]      {report.duration_ms:.0f}ms")
