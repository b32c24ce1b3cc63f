"""Base class for page fetchers and document downloaders."""

import asyncio
import random
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from email.utils import parsedate_to_datetime
from typing import TypeVar

from pydantic import BaseModel

from pdf_harvester.config import DownloadConfig, FetcherConfig

_MAX_RETRY_DELAY = 60.0  # Never sleep longer than this on a single retry


class _Response(BaseModel):
    url: str
    final_url: str  # After redirects
    status_code: int
    error: str | None = None
    retry_after: float | None = None
    attempts: int = 1

    @property
    def success(self) -> bool:
        return self.status_code >= 200 and self.status_code < 400 and not self.error


class FetchResult(_Response):
    """Result of fetching a page's markup."""

    html: str = ""


class DownloadResult(_Response):
    """Result of downloading a document's bytes."""

    content: bytes = b""
    content_type: str = ""


R = TypeVar("R", bound=_Response)


class BaseFetcher(ABC):
    """Abstract base class for fetchers.

    A fetcher never raises on HTTP or transport failures; it reports them on
    the returned result so callers decide how to surface them.
    """

    def __init__(self, config: FetcherConfig, download: DownloadConfig | None = None):
        self.config = config
        self.download_config = download or DownloadConfig()

    @abstractmethod
    async def fetch(self, url: str) -> FetchResult:
        """Fetch a page and return its HTML content."""
        pass

    @abstractmethod
    async def download(self, url: str) -> DownloadResult:
        """Download a document and return its bytes."""
        pass

    async def fetch_with_retry(self, url: str) -> FetchResult:
        """Fetch with exponential backoff on transient errors."""
        return await self._with_retry(self.fetch, url)

    async def download_with_retry(self, url: str) -> DownloadResult:
        """Download with exponential backoff on transient errors."""
        return await self._with_retry(self.download, url)

    async def _with_retry(self, op: Callable[[str], Awaitable[R]], url: str) -> R:
        max_retries = self.download_config.max_retries
        base_delay = self.download_config.retry_base_delay
        for attempt in range(max_retries + 1):
            result = await op(url)
            result.attempts = attempt + 1
            if result.success or not self._is_retryable(result):
                return result
            if attempt < max_retries:
                delay = base_delay * (2 ** attempt) + random.uniform(0, 0.5)
                if result.retry_after is not None:
                    delay = max(delay, result.retry_after)
                delay = min(delay, _MAX_RETRY_DELAY)
                await asyncio.sleep(delay)
        return result

    @staticmethod
    def _parse_retry_after(header_value: str | None) -> float | None:
        """Parse a Retry-After header value into seconds.

        Supports both delta-seconds (e.g. "120") and HTTP-date formats.
        Returns None if the header is missing or unparseable.
        """
        if not header_value:
            return None
        try:
            return max(0.0, float(header_value))
        except ValueError:
            pass
        try:
            from datetime import datetime, timezone

            dt = parsedate_to_datetime(header_value)
            delta = (dt - datetime.now(timezone.utc)).total_seconds()
            return max(0.0, delta)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _is_retryable(result: _Response) -> bool:
        """Check if a failed request should be retried."""
        # Retry on rate-limit or server errors
        if result.status_code == 429 or result.status_code >= 500:
            return True
        # Retry on connection/timeout errors (status_code 0 with an error message)
        if result.status_code == 0 and result.error:
            return True
        return False

    @abstractmethod
    async def __aenter__(self):
        """Async context manager entry."""
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        pass
