"""Command-line interface for API Test Generator.

This module provides a Click-based CLI for generating pytest API tests
from tagged endpoint classes.
"""

import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from apitest_gen import __version__
from apitest_gen.config import GeneratorConfig, load_config
from apitest_gen.core.diagnostics import Diagnostics
from apitest_gen.core.pipeline import ApiTestGenerator, GenerationReport
from apitest_gen.exceptions import ApiTestGenException

console = Console()

LOG_FORMAT = "%(message)s"

_LEVEL_STYLES = {"error": "red", "warning": "yellow", "note": "blue"}


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich.

    Diagnostics are printed in a table at the end, so only debug output
    (with --verbose) and unexpected warnings reach the handler.
    """
    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.DEBUG if verbose else logging.ERROR,
        handlers=[RichHandler(console=console, show_path=False, show_time=verbose)],
        force=True,
    )


def _load(config_path: Optional[str], path: str, workers: Optional[int] = None) -> GeneratorConfig:
    config = load_config(config_path, project_path=path)
    if workers is not None:
        config.workers = workers
        config.validate()
    return config


def _display_diagnostics(diagnostics: Diagnostics) -> None:
    """Print collected diagnostics in a rich table."""
    items = diagnostics.items
    if not items:
        return

    table = Table(title="Diagnostics", show_header=True)
    table.add_column("Level", width=8)
    table.add_column("Location", style="dim")
    table.add_column("Message")

    for item in items:
        style = _LEVEL_STYLES.get(item.level, "white")
        table.add_row(f"[{style}]{item.level.upper()}[/{style}]", item.location or "", item.message)

    console.print()
    console.print(table)


def _display_summary(report: GenerationReport, dry_run: bool) -> None:
    table = Table(title="Generated Test Modules", show_header=True)
    table.add_column("Class", style="cyan")
    table.add_column("File", style="green")
    table.add_column("Methods", justify="right")

    for module in report.modules:
        table.add_row(module.class_name, module.relative_path, str(len(module.method_names)))

    console.print()
    console.print(table)

    action = "Would write" if dry_run else "Wrote"
    count = len(report.modules) if dry_run else len(report.written_files)
    status = "[bold green]✓[/bold green]" if report.success else "[bold red]✗[/bold red]"
    console.print(
        Panel(
            f"{status} {action} {count} module(s) with {report.methods_count} test method(s)\n"
            f"Errors: {report.diagnostics.errors_count}  "
            f"Warnings: {report.diagnostics.warnings_count}",
            title="apitest-gen",
        )
    )


@click.group()
@click.version_option(version=__version__, prog_name="apitest-gen")
def cli():
    """API Test Generator - Generate pytest API tests from tagged endpoint classes.

    This tool scans your project for classes marked with @generate_api_test,
    reads their test case tags, and writes one pytest module per class.
    """
    pass


@cli.command()
@click.option(
    "--path",
    default=".",
    help="Project path to analyze (default: current directory)",
    type=click.Path(exists=True),
)
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def analyze(path: str, config_path: Optional[str], verbose: bool):
    """Analyze project for tagged endpoint classes.

    Example:
        apitest-gen analyze
        apitest-gen analyze --path /path/to/project
    """
    _configure_logging(verbose)
    try:
        config = _load(config_path, path)
        generator = ApiTestGenerator(config)

        console.print(f"\n[bold]Analyzing project:[/bold] {path}")
        tested_types = generator.scan(path)

        if not tested_types:
            console.print("\n[yellow]No classes tagged with @generate_api_test found.[/yellow]")
        else:
            table = Table(title=f"Found {len(tested_types)} Tagged Classes", show_header=True)
            table.add_column("Class", style="cyan")
            table.add_column("Generated", style="green")
            table.add_column("Base Path")
            table.add_column("Endpoints", justify="right")
            table.add_column("Cases", justify="right")
            table.add_column("Auth")

            for tested_type in tested_types:
                endpoints = sum(1 for g in tested_type.groups.values() if g.http_method)
                table.add_row(
                    f"{tested_type.module}.{tested_type.source_name}",
                    tested_type.name,
                    tested_type.base_path or "-",
                    str(endpoints),
                    str(tested_type.case_count),
                    "yes" if tested_type.auth else "no",
                )

            console.print()
            console.print(table)

        _display_diagnostics(generator.diagnostics)
        console.print("\n[dim]Next step:[/dim] apitest-gen generate")

        if generator.diagnostics.has_errors:
            sys.exit(1)

    except ApiTestGenException as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@cli.command()
@click.option(
    "--path",
    default=".",
    help="Project path to scan (default: current directory)",
    type=click.Path(exists=True),
)
@click.option("--output", "-o", type=click.Path(), help="Output directory (default: from config)")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--workers", type=int, help="Parallel scanning threads")
@click.option("--dry-run", is_flag=True, help="Generate without writing files")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def generate(
    path: str,
    output: Optional[str],
    config_path: Optional[str],
    workers: Optional[int],
    dry_run: bool,
    verbose: bool,
):
    """Generate pytest modules for tagged endpoint classes.

    Example:
        apitest-gen generate
        apitest-gen generate --path ./service --output tests/api
        apitest-gen generate --dry-run
    """
    _configure_logging(verbose)
    try:
        config = _load(config_path, path, workers)
        output_dir = output or config.output_dir

        console.print(f"\n[bold]Scanning project:[/bold] {path}")
        report = ApiTestGenerator(config).run(path, output_dir=output_dir, dry_run=dry_run)

        if not report.tested_types:
            console.print("\n[yellow]No classes tagged with @generate_api_test found.[/yellow]")
        else:
            _display_summary(report, dry_run)

        _display_diagnostics(report.diagnostics)

        if not report.success:
            sys.exit(1)

    except ApiTestGenException as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        sys.exit(1)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
