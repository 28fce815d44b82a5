"""chainscan CLI - trace side-effecting calls in Java projects to their entry points."""

import dataclasses
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from chainscan import __version__
from chainscan.analyzer import SourceAnalyzer
from chainscan.config import (
    UNLIMITED_DEPTH,
    ScanSettings,
    get_scan_settings,
    load_config,
)
from chainscan.errors import ChainscanError
from chainscan.output.json_writer import load_report, write_report
from chainscan.output.tree import build_report_tree, build_summary_table, display_tree
from chainscan.paths import ensure_chainscan_dir, get_config_path, get_report_path

app = typer.Typer(
    name="chainscan",
    help="Trace function, service and event publish calls in Java projects to their entry points",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"chainscan version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Trace side-effecting calls in Java projects to their entry points."""


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def _load_settings(path: Path, config: Optional[Path]) -> ScanSettings:
    """Settings from --config, else .chainscan/config.json if present, else defaults."""
    if config is None:
        default = get_config_path(path)
        if not default.exists():
            return ScanSettings()
        config = default
    elif not config.exists():
        console.print(f"[red]Config file not found:[/] {config}")
        raise typer.Exit(1)

    try:
        return get_scan_settings(load_config(config))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid config file {config}:[/] {e}")
        raise typer.Exit(1)


@app.command()
def scan(
    path: Path = typer.Argument(
        Path("."),
        help="Path to the Maven module to analyze",
    ),
    max_depth: Optional[int] = typer.Option(
        None,
        "--max-depth",
        "-d",
        help=f"Maximum call chain depth ({UNLIMITED_DEPTH} for unlimited)",
    ),
    unlimited: bool = typer.Option(
        False,
        "--unlimited",
        help="Do not limit call chain depth",
    ),
    time_budget_ms: Optional[int] = typer.Option(
        None,
        "--time-budget-ms",
        help="Truncate a single call chain trace after this many milliseconds",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: .chainscan/config.json)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path for report JSON output (default: .chainscan/report.json)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging and full usage tree",
    ),
    show_chains: bool = typer.Option(
        False,
        "--show-chains",
        help="Show call chains under each usage",
    ),
) -> None:
    """Scan a Maven module and write the usage report."""
    _configure_logging(verbose)
    console.print(Panel.fit("[bold blue]chainscan - Call Chain Analysis[/]"))

    path = path.resolve()

    try:
        settings = _load_settings(path, config)
        analysis = settings.analysis
        if unlimited:
            analysis = dataclasses.replace(analysis, max_depth=UNLIMITED_DEPTH)
        elif max_depth is not None:
            analysis = dataclasses.replace(analysis, max_depth=max_depth)
        if time_budget_ms is not None:
            analysis = dataclasses.replace(analysis, time_budget_ms=time_budget_ms)
        settings.analysis = analysis

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Analyzing sources...", total=None)
            report = SourceAnalyzer(settings).get_report(path)
            progress.update(task, completed=True)
    except ChainscanError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    if output is None:
        ensure_chainscan_dir(path)
        output = get_report_path(path)
    write_report(report, output)

    data = report.to_dict()
    console.print(build_summary_table(data))
    if verbose or show_chains:
        display_tree(build_report_tree(data, show_chains=show_chains))

    for warning in report.metadata.warnings:
        if warning.startswith("CRITICAL"):
            console.print(f"[red]{warning}[/]")

    console.print(f"\n[green]Report saved to:[/] {output}")
    if report.metadata.had_errors:
        raise typer.Exit(1)


@app.command()
def show(
    report_path: Optional[Path] = typer.Argument(
        None,
        help="Path to report file (default: .chainscan/report.json)",
    ),
    chains: bool = typer.Option(
        False,
        "--chains",
        help="Show call chains under each usage",
    ),
) -> None:
    """Display a report from a previous scan."""
    if report_path is None:
        report_path = get_report_path(Path.cwd())

    if not report_path.exists():
        console.print(f"[red]Report file not found:[/] {report_path}")
        raise typer.Exit(1)

    data = load_report(report_path)
    console.print(build_summary_table(data))
    display_tree(build_report_tree(data, show_chains=chains))


if __name__ == "__main__":
    app()
