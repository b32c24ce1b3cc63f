"""One-hop discovery stages."""

from pdf_harvester.discovery.base import BaseDiscoverer
from pdf_harvester.discovery.documents import DocumentDiscoverer, PageFailure
from pdf_harvester.discovery.links import LinkDiscoverer

__all__ = [
    "BaseDiscoverer",
    "DocumentDiscoverer",
    "LinkDiscoverer",
    "PageFailure",
]
