"""Interactive mode: the operator picks pages and documents."""

from pathlib import Path

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from pdf_harvester.config import AppConfig
from pdf_harvester.errors import HarvestError
from pdf_harvester.events import Event, RecordTransitioned, StatusChanged
from pdf_harvester.fetcher import create_fetcher
from pdf_harvester.models import DocumentRecord, DocumentStatus
from pdf_harvester.output.archive import write_archive, write_previews
from pdf_harvester.session import Phase, SessionController
from pdf_harvester.utils.url_utils import truncate_url

_STATUS_STYLES = {
    DocumentStatus.PENDING: "dim",
    DocumentStatus.DOWNLOADING: "cyan",
    DocumentStatus.COMPLETED: "green",
    DocumentStatus.ERROR: "red",
}


def parse_selection(text: str, count: int) -> set[int]:
    """Parse a selection like ``1-3,7`` into zero-based indices.

    ``all`` selects everything and ``none`` (or blank) nothing. Numbers
    outside ``1..count`` raise ValueError.
    """
    text = text.strip().lower()
    if text == "all":
        return set(range(count))
    if text in ("", "none"):
        return set()

    indices: set[int] = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            first, _, last = part.partition("-")
            start, end = int(first), int(last)
        else:
            start = end = int(part)
        if start < 1 or end > count or start > end:
            raise ValueError(f"Selection out of range: {part}")
        indices.update(range(start - 1, end))
    return indices


class InteractiveHarvester:
    """Guide the operator through one harvesting session at a time."""

    def __init__(self, config: AppConfig, console: Console | None = None):
        self.config = config
        self.console = console or Console()

    async def run(self, url: str | None = None) -> Path | None:
        """Run sessions until an archive is written or the operator quits."""
        self.console.print()
        self.console.print(Panel.fit(
            "[bold blue]PDF Harvester[/bold blue]\n"
            "Find the PDFs linked from a site's pages, preview them and download a ZIP.",
            border_style="blue",
        ))

        async with create_fetcher(self.config.fetcher, self.config.download) as fetcher:
            controller = SessionController(fetcher, config=self.config)
            while True:
                if not url:
                    url = Prompt.ask("\nPage URL to start from (blank to quit)", default="")
                    if not url.strip():
                        return None

                path = await self._run_session(controller, url)
                if path is not None:
                    return path

                url = None
                if not Confirm.ask("Start over with another URL?", default=True):
                    return None
                controller.restart()

    async def _run_session(self, controller: SessionController, url: str) -> Path | None:
        self.console.print()
        self.console.print("[bold]Step 1:[/bold] Discovering links...")
        with self.console.status(f"Finding all links on {url}..."):
            await controller.submit_seed(url)

        session = controller.session
        if session.phase != Phase.DISCOVERED:
            style = "red" if session.phase == Phase.ERROR else "yellow"
            self.console.print(f"[{style}]{session.status}[/{style}]")
            return None
        self.console.print(f"[green]{session.status}[/green]")

        while session.phase == Phase.DISCOVERED:
            if not self._choose_pages(controller):
                return None
            self.console.print()
            self.console.print("[bold]Step 2:[/bold] Scanning pages and fetching PDFs...")
            await self._scan_with_live_display(controller)
            if session.phase == Phase.DISCOVERED:
                self.console.print(f"[yellow]{session.status}[/yellow]")

        if session.phase != Phase.COMPLETED:
            self.console.print(f"[red]{session.status}[/red]")
            return None

        self.console.print(f"[green]{session.status}[/green]")
        self._show_records(list(session.records.values()))
        if session.page_failures:
            self.console.print(
                f"[dim]{len(session.page_failures)} page(s) could not be scanned.[/dim]"
            )

        while True:
            if not self._choose_documents(controller):
                return None
            try:
                archive = await controller.build_archive()
                break
            except HarvestError:
                self.console.print(f"[yellow]{session.status}[/yellow]")

        path = await write_archive(archive, self.config.output.archive_path)
        self.console.print(f"[green]{session.status}[/green] Saved to {path}")
        if self.config.output.previews_dir:
            await write_previews(session.selected_records, self.config.output.previews_dir)
        return path

    def _choose_pages(self, controller: SessionController) -> bool:
        links = controller.session.candidate_links
        table = Table(show_header=True, header_style="dim")
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Page", style="cyan", overflow="ellipsis", no_wrap=True)
        for i, link in enumerate(links, 1):
            table.add_row(str(i), truncate_url(link, 100))
        self.console.print(table)

        while True:
            answer = Prompt.ask(
                "Pages to scan for PDFs (e.g. 1-5,8 / all / none to quit)", default="all"
            )
            try:
                chosen = parse_selection(answer, len(links))
            except ValueError as e:
                self.console.print(f"[red]Invalid selection: {e}[/red]")
                continue
            if not chosen:
                return False
            controller.select_all_links(False)
            for index in sorted(chosen):
                controller.toggle_link(links[index])
            return True

    async def _scan_with_live_display(self, controller: SessionController) -> None:
        status = Text(controller.session.status)

        def render() -> Group:
            records = list(controller.session.records.values())
            return Group(status, self._records_table(records, limit=15))

        with Live(render(), console=self.console, refresh_per_second=4) as live:
            def on_event(event: Event) -> None:
                if isinstance(event, StatusChanged):
                    status.plain = event.message
                if isinstance(event, (StatusChanged, RecordTransitioned)):
                    live.update(render())

            unsubscribe = controller.subscribe(on_event)
            try:
                await controller.confirm_selection()
            finally:
                unsubscribe()
            live.update(render())

    def _choose_documents(self, controller: SessionController) -> bool:
        records = [r for r in controller.session.records.values() if r.status == DocumentStatus.COMPLETED]
        if not records:
            self.console.print("[yellow]No documents can be archived.[/yellow]")
            return False
        while True:
            answer = Prompt.ask(
                "Documents to include in the ZIP (e.g. 1-3 / all / none to quit)", default="all"
            )
            try:
                chosen = parse_selection(answer, len(records))
            except ValueError as e:
                self.console.print(f"[red]Invalid selection: {e}[/red]")
                continue
            if not chosen:
                return False
            for index, record in enumerate(records):
                if record.selected != (index in chosen):
                    controller.toggle_document(record.url)
            return True

    def _show_records(self, records: list[DocumentRecord]) -> None:
        self.console.print(self._records_table(records, completed_only=True))

    @staticmethod
    def _records_table(
        records: list[DocumentRecord], limit: int | None = None, completed_only: bool = False
    ) -> Table:
        """Tabulate records. With ``completed_only`` only completed ones get a number."""
        table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Status", width=12)
        table.add_column("File", min_width=20, overflow="ellipsis", no_wrap=True)
        table.add_column("Preview / error", overflow="ellipsis", no_wrap=True)

        shown = records if limit is None else records[:limit]
        number = 0
        for record in shown:
            if completed_only and record.status != DocumentStatus.COMPLETED:
                label = "-"
            else:
                number += 1
                label = str(number)
            if record.preview is not None:
                detail = f"{record.preview.width}x{record.preview.height}, {len(record.content or b'')} bytes"
            else:
                detail = record.error or ""
            table.add_row(
                label,
                Text(record.status.value, style=_STATUS_STYLES[record.status]),
                record.filename,
                detail,
            )
        if limit is not None and len(records) > limit:
            table.add_row("", "", Text(f"... and {len(records) - limit} more", style="dim"), "")
        return table
