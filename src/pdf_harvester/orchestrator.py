"""Unattended harvesting: select everything and write the archive."""

import logging
import time
from collections import Counter
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from pdf_harvester.config import AppConfig
from pdf_harvester.errors import HarvestError
from pdf_harvester.events import Event, PageScanned, RecordTransitioned
from pdf_harvester.fetcher import create_fetcher
from pdf_harvester.models import DocumentStatus
from pdf_harvester.output.archive import write_archive, write_previews
from pdf_harvester.session import Phase, SessionController
from pdf_harvester.utils.url_utils import truncate_url

logger = logging.getLogger(__name__)


class Orchestrator:
    """Run a whole session without operator input."""

    def __init__(self, config: AppConfig, console: Console | None = None):
        self.config = config
        self.console = console or Console()

    async def run(self, url: str) -> Path | None:
        """Harvest every PDF reachable one hop from the pages linked on ``url``.

        Returns the archive path, or None when nothing could be archived.
        """
        start = time.monotonic()
        async with create_fetcher(self.config.fetcher, self.config.download) as fetcher:
            controller = SessionController(fetcher, config=self.config)

            self.console.print(f"[blue]Discovering links on {url}...[/blue]")
            await controller.submit_seed(url)
            session = controller.session
            if session.phase != Phase.DISCOVERED:
                style = "red" if session.phase == Phase.ERROR else "yellow"
                self.console.print(f"[{style}]{session.status}[/{style}]")
                return None
            self.console.print(f"[green]{session.status}[/green]")

            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                TimeElapsedColumn(),
                console=self.console,
            )
            scan_task = progress.add_task("Scanning pages...", total=len(session.selected_pages))
            fetch_task = progress.add_task("Downloading PDFs...", total=None, visible=False)

            def on_event(event: Event) -> None:
                if isinstance(event, PageScanned):
                    progress.update(scan_task, completed=event.index - 1)
                elif isinstance(event, RecordTransitioned):
                    records = controller.session.records
                    done = sum(1 for r in records.values() if r.is_terminal)
                    progress.update(fetch_task, total=len(records), completed=done, visible=True)

            unsubscribe = controller.subscribe(on_event)
            try:
                with progress:
                    await controller.confirm_selection()
                    progress.update(scan_task, completed=len(session.selected_pages))
            finally:
                unsubscribe()

            self._print_summary(controller)
            if session.phase != Phase.COMPLETED or not session.selected_records:
                return None

            try:
                archive = await controller.build_archive()
            except HarvestError as e:
                self.console.print(f"[red]{e}[/red]")
                return None

        path = await write_archive(archive, self.config.output.archive_path)
        logger.info("Archive written to %s", path)
        self.console.print(f"[green]{session.status}[/green]")
        self.console.print(
            f"[green]Written to {path} ({_format_size(len(archive))})[/green]"
            f" [dim]in {time.monotonic() - start:.1f}s[/dim]"
        )
        if self.config.output.previews_dir:
            previews = await write_previews(list(session.records.values()), self.config.output.previews_dir)
            self.console.print(f"[dim]{len(previews)} preview(s) in {self.config.output.previews_dir}[/dim]")
        return path

    def _print_summary(self, controller: SessionController) -> None:
        session = controller.session
        self.console.print()
        self.console.print(f"[bold]{session.status}[/bold]")

        counts = Counter(r.status for r in session.records.values())
        if session.records:
            self.console.print(f"  Completed: [green]{counts[DocumentStatus.COMPLETED]}[/green]")
            if counts[DocumentStatus.ERROR]:
                self.console.print(f"  Errors:    [red]{counts[DocumentStatus.ERROR]}[/red]")

        if session.page_failures:
            self.console.print(f"  Pages that could not be scanned: [yellow]{len(session.page_failures)}[/yellow]")
            for failure in session.page_failures[:10]:
                self.console.print(f"    [yellow]{truncate_url(failure.url, 60)}[/yellow]: {failure.error}")

        failed = [r for r in session.records.values() if r.status == DocumentStatus.ERROR]
        for record in failed[:10]:
            self.console.print(f"  [red]{record.filename}[/red]: {record.error}")
        if len(failed) > 10:
            self.console.print(f"  [dim]... and {len(failed) - 10} more errors[/dim]")


def _format_size(size_bytes: int) -> str:
    """Format a byte size as a human-readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
