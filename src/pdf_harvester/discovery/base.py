"""Base class for one-hop link discovery."""

import logging
from abc import ABC

from pdf_harvester.errors import FetchError
from pdf_harvester.fetcher.base import BaseFetcher

logger = logging.getLogger(__name__)


class BaseDiscoverer(ABC):
    """Shared fetch step for the discovery stages."""

    def __init__(self, fetcher: BaseFetcher):
        self.fetcher = fetcher

    async def _fetch_markup(self, url: str) -> tuple[str, str]:
        """Fetch a page and return ``(markup, base_url)``.

        The base is the final URL after redirects, which is what relative
        links on the page are written against.
        """
        result = await self.fetcher.fetch_with_retry(url)
        if not result.success:
            raise FetchError(url, result.status_code, result.error)
        logger.debug("Fetched %s (%d chars, %d attempt(s))", url, len(result.html), result.attempts)
        return result.html, result.final_url or url
