"""Candidate link discovery on the seed page."""

import logging

from pdf_harvester.discovery.base import BaseDiscoverer
from pdf_harvester.extractor.links import extract_links

logger = logging.getLogger(__name__)


class LinkDiscoverer(BaseDiscoverer):
    """Collect every navigable link on a single seed page."""

    async def discover(self, seed_url: str) -> list[str]:
        """Fetch the seed page once and return its unique absolute links.

        Raises FetchError when the page cannot be retrieved. An empty list
        means the page has no navigable links.
        """
        markup, base_url = await self._fetch_markup(seed_url)
        links = extract_links(markup, base_url)
        logger.info("Found %d unique links on %s", len(links), seed_url)
        return links
