"""Page fetching and document downloading."""

from pdf_harvester.config import DownloadConfig, FetcherConfig
from pdf_harvester.fetcher.base import BaseFetcher, DownloadResult, FetchResult
from pdf_harvester.fetcher.http_fetcher import HttpFetcher


def create_fetcher(config: FetcherConfig, download: DownloadConfig | None = None) -> BaseFetcher:
    """Create the appropriate fetcher."""
    if config.use_js:
        # Imported lazily so plain HTTP runs never start a browser driver
        from pdf_harvester.fetcher.playwright_fetcher import PlaywrightFetcher

        return PlaywrightFetcher(config, download)
    return HttpFetcher(config, download)


__all__ = [
    "BaseFetcher",
    "DownloadResult",
    "FetchResult",
    "HttpFetcher",
    "create_fetcher",
]
