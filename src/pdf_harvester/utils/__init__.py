"""Utility functions and classes."""

from pdf_harvester.utils.rate_limiter import ConcurrencyLimiter
from pdf_harvester.utils.url_utils import (
    DOCUMENT_SUFFIX,
    has_document_suffix,
    resolve_url,
    truncate_url,
    url_to_filename,
)

__all__ = [
    "ConcurrencyLimiter",
    "DOCUMENT_SUFFIX",
    "has_document_suffix",
    "resolve_url",
    "truncate_url",
    "url_to_filename",
]
