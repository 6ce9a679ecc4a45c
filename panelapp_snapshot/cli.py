"""
Command-line interface for the panelapp-snapshot tool.

This module provides the main CLI commands using Typer.
"""

import logging
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core.config_manager import ConfigManager
from .core.exceptions import PanelSnapshotError
from .core.utils import check_dependencies, flatten_config

app = typer.Typer(
    name="panelapp-snapshot",
    help="Snapshot the PanelApp Australia gene panel database into flat TSV files.",
    add_completion=False,
)

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        typer.echo(f"ERROR: Invalid log level: {log_level}", err=True)
        raise typer.Exit(2)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def load_config(config_file: Optional[str] = None) -> ConfigManager:  # noqa: UP007
    """
    Load configuration from the packaged defaults and optional overrides.

    A given config file overrides the defaults; otherwise a config.local.yml
    in the working directory is used when present. The PANELAPP_API_BASE
    environment variable is applied last.
    """
    try:
        config_manager = ConfigManager.from_files(
            override_path=Path(config_file) if config_file else None,
            local_path=Path("config.local.yml"),
        )
    except Exception as e:
        typer.echo(f"ERROR: Error loading configuration: {e}", err=True)
        raise typer.Exit(1) from e

    config_manager.apply_environment()
    return config_manager


def fail(error: PanelSnapshotError) -> NoReturn:
    """Report a pipeline error on stderr and exit with its exit code."""
    typer.echo(f"ERROR: {error}", err=True)
    raise typer.Exit(error.exit_code) from error


@app.command()
def run(
    output_dir: str = typer.Argument(
        ..., help="Output directory to create (must not exist)"
    ),
    config_file: Optional[str] = typer.Option(  # noqa: UP007
        None, "--config-file", "-c", help="Configuration file path"
    ),
    limit: Optional[int] = typer.Option(  # noqa: UP007
        None,
        "--limit",
        "-n",
        min=0,
        help="Download at most this many panels (0 = no limit)",
    ),
    log_level: str = typer.Option(
        "INFO", "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"
    ),
) -> None:
    """
    Run the complete snapshot pipeline: manifest, downloads, concatenation.
    """
    setup_logging(log_level)
    config_manager = load_config(config_file)
    config_manager.override_with_cli_args(count_limit=limit, log_level=log_level)

    try:
        check_dependencies()
        from .engine.pipeline import Pipeline

        console.print("[bold green]Starting panelapp-snapshot pipeline[/bold green]")
        console.print(f"Output directory: {escape(output_dir)}")

        pipeline = Pipeline(config_manager.to_dict(), output_dir)
        summary = pipeline.run()
    except PanelSnapshotError as e:
        fail(e)

    display_summary(summary)
    console.print("[bold green]Done.[/bold green]")


@app.command()
def concat(
    output_dir: str = typer.Argument(
        ..., help="Existing output directory holding the panels directory"
    ),
    config_file: Optional[str] = typer.Option(  # noqa: UP007
        None, "--config-file", "-c", help="Configuration file path"
    ),
    log_level: str = typer.Option(
        "INFO", "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"
    ),
) -> None:
    """
    Re-run only the concatenation stage on an existing output directory.
    """
    setup_logging(log_level)
    config_manager = load_config(config_file)

    try:
        check_dependencies()
        from .engine.concatenator import concatenate

        rows = concatenate(
            output_dir,
            panels_dirname=config_manager.get_panels_dirname(),
            combined_filename=config_manager.get_combined_filename(),
            index_filename=config_manager.get_index_filename(),
        )
    except PanelSnapshotError as e:
        fail(e)

    combined = Path(output_dir) / config_manager.get_combined_filename()
    console.print(
        f"[bold green]Wrote {rows} rows to {escape(str(combined))}[/bold green]"
    )


@app.command()
def config_check(
    config_file: Optional[str] = typer.Option(  # noqa: UP007
        None, "--config-file", "-c", help="Configuration file path"
    ),
) -> None:
    """
    Validate and display the effective configuration.
    """
    config_manager = load_config(config_file)

    table = Table(title="Effective Configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    for key, value in flatten_config(config_manager.to_dict()).items():
        table.add_row(key, escape(str(value)))
    console.print(table)

    try:
        versions = check_dependencies()
    except PanelSnapshotError as e:
        fail(e)

    for name, version in versions.items():
        console.print(f"[blue]{name}[/blue] {version}")


def display_summary(summary: dict[str, Any]) -> None:
    """Display a summary table of a completed run."""
    table = Table(title="Snapshot Summary")
    table.add_column("Item", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Manifest", escape(summary["manifest"]))
    table.add_row("Panels dir", escape(summary["panels_dir"]))
    table.add_row("Combined TSV", escape(summary["combined"]))
    table.add_row("Panels in manifest", str(summary["manifest_records"]))
    table.add_row("Panels downloaded", str(summary["downloaded"]))
    table.add_row("Combined rows", str(summary["combined_rows"]))

    console.print(table)


if __name__ == "__main__":
    app()
