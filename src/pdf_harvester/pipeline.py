"""Concurrent download and preview pipeline for discovered documents."""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable, Mapping

from pdf_harvester.errors import DownloadError, HarvestError
from pdf_harvester.events import RecordTransitioned
from pdf_harvester.fetcher.base import BaseFetcher
from pdf_harvester.models import DocumentRecord, DocumentStatus
from pdf_harvester.preview import PdfPreviewRenderer
from pdf_harvester.utils.rate_limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)


def create_records(urls: Iterable[str]) -> dict[str, DocumentRecord]:
    """Create one pending record per document URL, keyed by URL."""
    records: dict[str, DocumentRecord] = {}
    for url in urls:
        if url not in records:
            records[url] = DocumentRecord(url=url)
    return records


def is_complete(records: Mapping[str, DocumentRecord]) -> bool:
    """Whether every record has reached a terminal status."""
    snapshot = list(records.values())
    return all(record.is_terminal for record in snapshot)


class AcquisitionPipeline:
    """Drive each record independently through download and preview.

    Every record gets its own task, started at once. A failure is recorded on
    the failing record only; the run returns once all records are terminal.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        renderer: PdfPreviewRenderer,
        limiter: ConcurrencyLimiter | None = None,
    ):
        self.fetcher = fetcher
        self.renderer = renderer
        self.limiter = limiter or ConcurrencyLimiter()
        self._tasks: list[asyncio.Task] = []

    async def run(
        self,
        records: Mapping[str, DocumentRecord],
        is_current: Callable[[], bool] = lambda: True,
        on_transition: Callable[[RecordTransitioned], None] | None = None,
    ) -> Mapping[str, DocumentRecord]:
        """Acquire every record concurrently and wait for all to finish.

        ``is_current`` is checked before each mutation; once it returns False
        the chains stop touching their records.
        """
        started = time.monotonic()
        self._tasks = [
            asyncio.create_task(self._acquire(record, is_current, on_transition))
            for record in records.values()
        ]
        # Chains handle their own failures; cancelled ones surface here as results
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        completed = sum(1 for r in records.values() if r.status == DocumentStatus.COMPLETED)
        logger.info(
            "Acquired %d/%d document(s) in %.1fs",
            completed, len(records), time.monotonic() - started,
        )
        return records

    def cancel(self) -> None:
        """Abandon every in-flight chain."""
        for task in self._tasks:
            task.cancel()

    async def _acquire(
        self,
        record: DocumentRecord,
        is_current: Callable[[], bool],
        on_transition: Callable[[RecordTransitioned], None] | None,
    ) -> None:
        def transition(apply: Callable[[], None]) -> bool:
            if not is_current():
                return False
            apply()
            if on_transition:
                try:
                    on_transition(RecordTransitioned(record.url, record.status, record.error))
                except Exception:
                    logger.exception("Transition listener failed for %s", record.url)
            return True

        async with self.limiter:
            if not transition(record.mark_downloading):
                return
            try:
                result = await self.fetcher.download_with_retry(record.url)
                if not result.success:
                    if result.status_code == 429:
                        self.limiter.back_off()
                    raise DownloadError(record.url, result.status_code, result.error)
                preview = await self.renderer.render_first_page(result.content)
            except HarvestError as e:
                logger.warning("Failed to process %s: %s", record.url, e)
                transition(lambda: record.mark_error(str(e)))
                return
            except Exception as e:
                logger.exception("Unexpected failure processing %s", record.url)
                transition(lambda: record.mark_error(str(e) or type(e).__name__))
                return

            transition(lambda: record.mark_completed(result.content, preview))
