"""Hyperlink extraction from raw page markup."""

import logging

from bs4 import BeautifulSoup

from pdf_harvester.errors import ParseError
from pdf_harvester.utils.url_utils import DOCUMENT_SUFFIX, has_document_suffix, resolve_url

logger = logging.getLogger(__name__)

# In-page anchors, script and mail links never lead to another page
_SKIP_PREFIXES = ("#", "javascript:", "mailto:")


def parse_references(markup: str) -> list[str]:
    """Return the raw href value of every anchor in document order."""
    try:
        soup = BeautifulSoup(markup, "lxml")
        return [a["href"] for a in soup.find_all("a", href=True)]
    except Exception as e:
        raise ParseError(f"Could not parse markup: {e}") from e


def _is_navigable(reference: str) -> bool:
    trimmed = reference.strip()
    return bool(trimmed) and not trimmed.lower().startswith(_SKIP_PREFIXES)


def _resolve_unique(references: list[str], base_url: str) -> list[str]:
    seen: set[str] = set()
    urls: list[str] = []
    for reference in references:
        if not _is_navigable(reference):
            continue
        absolute = resolve_url(reference, base_url)
        if absolute is None or absolute in seen:
            continue
        seen.add(absolute)
        urls.append(absolute)
    return urls


def extract_links(markup: str, base_url: str) -> list[str]:
    """Extract every navigable absolute URL from a page, first-seen order."""
    try:
        references = parse_references(markup)
    except ParseError as e:
        logger.warning("%s (%s)", e, base_url)
        return []
    return _resolve_unique(references, base_url)


def extract_document_links(
    markup: str, base_url: str, suffix: str = DOCUMENT_SUFFIX
) -> list[str]:
    """Extract absolute URLs pointing at the tracked document type.

    The result is always a subset of ``extract_links`` for the same input.
    """
    return [url for url in extract_links(markup, base_url) if has_document_suffix(url, suffix)]
