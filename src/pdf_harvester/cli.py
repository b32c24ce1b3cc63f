"""Command-line interface for pdf-harvester."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from pdf_harvester import __version__
from pdf_harvester.config import AppConfig
from pdf_harvester.interactive import InteractiveHarvester
from pdf_harvester.orchestrator import Orchestrator

app = typer.Typer(
    name="pdf-harvester",
    help="Find PDFs linked from a site's pages, preview them and bundle them into a ZIP.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"pdf-harvester version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=verbose, show_path=verbose)],
        force=True,
    )
    # Request-level chatter from the HTTP stack is only useful when debugging it
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def load_config(config_file: Optional[Path]) -> AppConfig:
    if config_file is None:
        return AppConfig()
    if not config_file.exists():
        console.print(f"[red]Config file not found: {config_file}[/red]")
        raise typer.Exit(1)
    return AppConfig.from_toml(config_file)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """PDF discovery and download tool."""
    pass


@app.command()
def harvest(
    url: str = typer.Argument("", help="Page whose links are scanned for PDFs"),
    interactive: bool = typer.Option(
        True,
        "--interactive/--no-interactive",
        "-I/-N",
        help="Choose pages and documents interactively (default) or take everything",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path of the ZIP archive to write",
    ),
    previews_dir: Optional[Path] = typer.Option(
        None,
        "--previews-dir",
        help="Also write first-page previews as JPEG files to this directory",
    ),
    js: Optional[bool] = typer.Option(
        None,
        "--js/--no-js",
        help="Render pages with a headless browser",
    ),
    max_concurrent: Optional[int] = typer.Option(
        None,
        "--max-concurrent",
        help="Maximum simultaneous downloads (0 = unlimited)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
):
    """
    Discover links on a page, scan them for PDFs and bundle the PDFs into a ZIP.

    Examples:

        pdf-harvester harvest https://example.com/reports

        pdf-harvester harvest https://example.com/reports -N -o reports.zip

        pdf-harvester harvest https://example.com/reports --previews-dir ./previews
    """
    config = load_config(config_file)
    verbose = verbose or config.verbose
    setup_logging(verbose)

    if output is not None:
        config.output = config.output.model_copy(update={"archive_path": output})
    if previews_dir is not None:
        config.output = config.output.model_copy(update={"previews_dir": previews_dir})
    if js is not None:
        config.fetcher = config.fetcher.model_copy(update={"use_js": js})
    if max_concurrent is not None:
        if max_concurrent < 0:
            console.print("[red]--max-concurrent must be 0 or more.[/red]")
            raise typer.Exit(1)
        config.download = config.download.model_copy(update={"max_concurrent": max_concurrent})

    if not interactive and not url.strip():
        console.print("[red]A URL is required with --no-interactive.[/red]")
        raise typer.Exit(1)

    try:
        if interactive:
            path = asyncio.run(InteractiveHarvester(config, console).run(url.strip() or None))
        else:
            path = asyncio.run(Orchestrator(config, console).run(url.strip()))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        raise typer.Exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    if path is None:
        console.print("[yellow]No archive written.[/yellow]")
        raise typer.Exit(0 if interactive else 1)


@app.command("show-config")
def show_config(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
    ),
):
    """Print the effective configuration as TOML."""
    console.print(load_config(config_file).to_toml(), markup=False, highlight=False)


if __name__ == "__main__":
    app()
