"""Document link discovery across operator-selected pages."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pdf_harvester.discovery.base import BaseDiscoverer
from pdf_harvester.events import PageScanned
from pdf_harvester.extractor.links import extract_document_links

logger = logging.getLogger(__name__)


@dataclass
class PageFailure:
    """A selected page that could not be scanned."""

    url: str
    error: str


class DocumentDiscoverer(BaseDiscoverer):
    """Scan pages one at a time and merge the document links they contain."""

    def __init__(self, fetcher):
        super().__init__(fetcher)
        self.failures: list[PageFailure] = []

    async def discover(
        self,
        page_urls: Sequence[str],
        on_progress: Callable[[PageScanned], None] | None = None,
    ) -> list[str]:
        """Return document URLs from every page, unique in first-seen order.

        Pages are scanned sequentially in the given order. A page that fails
        to fetch or parse is recorded in ``failures`` and skipped.
        """
        self.failures = []
        seen: set[str] = set()
        documents: list[str] = []
        total = len(page_urls)

        for index, page_url in enumerate(page_urls, 1):
            if on_progress:
                on_progress(PageScanned(index=index, total=total, url=page_url))
            try:
                markup, base_url = await self._fetch_markup(page_url)
                found = extract_document_links(markup, base_url)
            except Exception as e:
                logger.warning("Could not scan %s: %s", page_url, e)
                self.failures.append(PageFailure(url=page_url, error=str(e)))
                continue

            logger.debug("Page %d/%d: %d document link(s) on %s", index, total, len(found), page_url)
            for url in found:
                if url not in seen:
                    seen.add(url)
                    documents.append(url)

        logger.info(
            "Found %d document(s) across %d page(s), %d failed",
            len(documents), total, len(self.failures),
        )
        return documents
