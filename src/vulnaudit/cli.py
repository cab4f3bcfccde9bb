"""vulnaudit CLI — Typer application with scan, rules, and init commands."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from vulnaudit import __version__

app = typer.Typer(
    name="vulnaudit",
    help="Static security audit for source trees and IAM policies.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

logger = logging.getLogger("vulnaudit")

# Never descended into while collecting files.
_SKIP_DIRS = frozenset({
    ".git", ".hg", ".svn", "__pycache__", ".venv", "venv", ".tox",
    ".mypy_cache", ".pytest_cache",
})


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=debug, rich_tracebacks=debug)],
        force=True,
    )


def _root_for(path: Path) -> Path:
    return path if path.is_dir() else path.parent


def collect_files(path: Path) -> Tuple[List[Tuple[str, bytes]], List[Any]]:
    """Read every file under *path*; unreadable files become warnings.

    Paths are reported relative to *path* (or as the file name when *path*
    is a single file), using forward slashes.
    """
    from vulnaudit.findings.models import ScanWarning

    files: List[Tuple[str, bytes]] = []
    warnings: List[ScanWarning] = []

    if path.is_file():
        candidates = [(path.name, path)]
    else:
        candidates = []
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
            for name in sorted(filenames):
                full = Path(dirpath) / name
                candidates.append((full.relative_to(path).as_posix(), full))

    for rel, full in candidates:
        try:
            files.append((rel, full.read_bytes()))
        except OSError as exc:
            logger.warning("Cannot read %s: %s", rel, exc.strerror or exc)
            warnings.append(ScanWarning("io", rel, f"unreadable: {exc.strerror or exc}"))
    return files, warnings


def load_policies(paths: List[Path]) -> Tuple[List[Dict[str, Any]], List[Any]]:
    """Load IAM policy documents from JSON files or directories of JSON files.

    A file may hold one policy object or a list of them. Documents without
    a name are named after their file.
    """
    from vulnaudit.findings.models import ScanWarning

    docs: List[Dict[str, Any]] = []
    warnings: List[ScanWarning] = []

    files: List[Path] = []
    for p in paths:
        if p.is_dir():
            files.extend(sorted(p.glob("*.json")))
        else:
            files.append(p)

    for f in files:
        try:
            data = json.loads(f.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            warnings.append(ScanWarning("policy", str(f), f"cannot load policy file: {exc}"))
            continue
        entries = data if isinstance(data, list) else [data]
        for i, entry in enumerate(entries):
            if isinstance(entry, dict) and not (
                entry.get("name") or entry.get("PolicyName") or entry.get("Id")
            ):
                entry = {**entry, "name": f.stem if len(entries) == 1 else f"{f.stem}[{i}]"}
            docs.append(entry)
    return docs, warnings


# ── scan ──────────────────────────────────────────────────────────────────────


@app.command()
def scan(
    path: Path = typer.Argument(Path("."), help="File or directory to audit"),
    policy: Optional[List[Path]] = typer.Option(None, "--policy", "-p", help="IAM policy JSON file or directory (repeatable)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .vulnaudit.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    severity: Optional[str] = typer.Option(None, "--severity", "-s", help="Report findings at or above: low | medium | high | critical"),
    fail_on: Optional[str] = typer.Option(None, "--fail-on", help="Exit 1 on findings at or above: low | medium | high | critical"),
    scan_type: Optional[List[str]] = typer.Option(None, "--scan-type", "-t", help="owasp | secrets | iam | all (repeatable)"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Glob to exclude (repeatable)"),
    max_findings: Optional[int] = typer.Option(None, "--max-findings", help="Stop scanning further files after this many findings"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Scan timeout in seconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output with timing"),
) -> None:
    """Audit source files (and optional IAM policies) for vulnerabilities."""
    from vulnaudit.config.loader import ConfigError, load_config, validate_config
    from vulnaudit.output import json_report, terminal
    from vulnaudit.rules.registry import build_catalog
    from vulnaudit.scanner.engine import AuditEngine, ScanError

    _configure_logging(verbose, debug)

    if not path.exists():
        console.print(f"[bold red]Error:[/bold red] path not found: {path}")
        raise typer.Exit(code=2)
    root = _root_for(path)

    # --- Load config ---
    try:
        cfg = load_config(root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    # --- CLI overrides ---
    if format:
        cfg.output.format = format  # type: ignore[assignment]
    if severity:
        cfg.scan.severity_threshold = severity.lower()  # type: ignore[assignment]
    if fail_on:
        cfg.scan.fail_on = fail_on.lower()  # type: ignore[assignment]
    if scan_type:
        cfg.scan.scan_types = [t.lower() for t in scan_type]
    if exclude:
        cfg.scan.exclusions.extend(exclude)
    if max_findings is not None:
        cfg.scan.max_findings = max_findings
    if timeout is not None:
        cfg.scan.timeout = timeout

    try:
        validate_config(cfg)
        catalog = build_catalog(cfg, root)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if verbose or debug:
        console.print(f"[dim]Rules loaded: {len(catalog.rules)}[/dim]")
        console.print(f"[dim]Secret patterns: {len(catalog.secret_patterns)}[/dim]")
        console.print(f"[dim]Scan types: {', '.join(cfg.scan.scan_types)}[/dim]")

    # --- Collect targets ---
    files, warnings = collect_files(path)
    policies, policy_warnings = load_policies(list(policy or []))
    warnings.extend(policy_warnings)

    # --- Run scan ---
    engine = AuditEngine(cfg, catalog)
    try:
        report = engine.run(files, policies, scope=str(path), extra_warnings=warnings)
    except ScanError as exc:
        console.print(f"[bold red]Scanner error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if debug:
        console.print(f"[dim]Scan duration: {report.duration_ms:.0f}ms[/dim]")

    # --- Output ---
    fail_level = cfg.scan.fail_on
    report_text: Optional[str] = None
    if cfg.output.format == "terminal":
        terminal.render(report, fail_on=fail_level, show_summary=cfg.output.show_summary)
    else:
        report_text = json_report.render(report, fail_on=fail_level)
        print(report_text)

    if output:
        report_text = report_text or json_report.render(report, fail_on=fail_level)
        Path(output).write_text(report_text, encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")

    # --- Exit code ---
    if json_report.is_blocking(report, fail_level):
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


# ── rules ─────────────────────────────────────────────────────────────────────


@app.command()
def rules(
    path: Path = typer.Argument(Path("."), help="Project root (for custom rules and config)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .vulnaudit.toml"),
) -> None:
    """List the rules and secret patterns that a scan would use."""
    from vulnaudit.config.loader import ConfigError, load_config
    from vulnaudit.rules.registry import build_catalog
    from vulnaudit.scoring.cvss import calculate_score

    root = _root_for(path)
    try:
        cfg = load_config(root, config)
        catalog = build_catalog(cfg, root)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    out = Console()
    table = Table(title=f"Rules ({len(catalog.rules)})", title_style="bold", border_style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Category")
    table.add_column("CVSS", justify="right")
    table.add_column("Severity")
    table.add_column("CWE", style="dim")
    for rule in catalog.rules:
        score = calculate_score(rule.metrics)
        table.add_row(rule.id, rule.category, f"{score.score:.1f}", score.severity, rule.cwe)
    out.print(table)

    secrets = Table(
        title=f"Secret patterns ({len(catalog.secret_patterns)})",
        title_style="bold",
        border_style="dim",
    )
    secrets.add_column("ID", style="cyan")
    secrets.add_column("Severity")
    secrets.add_column("Min entropy", justify="right")
    for pattern in catalog.secret_patterns:
        secrets.add_row(pattern.id, pattern.severity, f"{pattern.entropy_threshold:.1f}")
    out.print(secrets)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    path: Path = typer.Argument(Path("."), help="Directory to create the config in"),
) -> None:
    """Generate a starter .vulnaudit.toml."""
    from vulnaudit.config.defaults import DEFAULT_TOML
    from vulnaudit.config.loader import CONFIG_FILENAME

    config_path = path / CONFIG_FILENAME
    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"vulnaudit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """vulnaudit — static security audit for source trees and IAM policies."""
