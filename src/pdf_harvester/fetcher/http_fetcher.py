"""Plain HTTP fetcher for pages and documents."""

import logging

import httpx

from pdf_harvester.config import DownloadConfig, FetcherConfig
from pdf_harvester.fetcher.base import BaseFetcher, DownloadResult, FetchResult

logger = logging.getLogger(__name__)


class HttpFetcher(BaseFetcher):
    """HTTP fetcher without JavaScript rendering."""

    def __init__(
        self,
        config: FetcherConfig,
        download: DownloadConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config, download)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        """Initialize HTTP client."""
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
            timeout=self.config.timeout_ms / 1000,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Clean up HTTP client."""
        if self._client:
            await self._client.aclose()

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context manager.")
        return self._client

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a page via HTTP."""
        client = self._require_client()

        try:
            response = await client.get(url)

            retry_after: float | None = None
            if response.status_code == 429:
                retry_after = self._parse_retry_after(response.headers.get("retry-after"))

            return FetchResult(
                url=url,
                final_url=str(response.url),
                html=response.text,
                status_code=response.status_code,
                retry_after=retry_after,
            )

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return FetchResult(url=url, final_url=url, status_code=0, error=str(e) or type(e).__name__)

    async def download(self, url: str) -> DownloadResult:
        """Stream a document into memory, enforcing the size limit."""
        client = self._require_client()
        max_size = self.download_config.max_file_size

        try:
            async with client.stream("GET", url) as response:
                final_url = str(response.url)
                status = response.status_code
                content_type = response.headers.get("content-type", "")

                if not response.is_success:
                    retry_after = None
                    if status == 429:
                        retry_after = self._parse_retry_after(response.headers.get("retry-after"))
                    return DownloadResult(
                        url=url, final_url=final_url, status_code=status, retry_after=retry_after
                    )

                # Error pages and interstitials are often served with a 200
                if "text/html" in content_type:
                    return DownloadResult(
                        url=url,
                        final_url=final_url,
                        status_code=status,
                        error=f"Expected a document but got HTML (content-type: {content_type})",
                    )

                content_length = response.headers.get("content-length")
                if content_length and content_length.isdigit() and int(content_length) > max_size:
                    return DownloadResult(
                        url=url,
                        final_url=final_url,
                        status_code=status,
                        error=f"File too large: {content_length} bytes",
                    )

                chunks: list[bytes] = []
                size = 0
                async for chunk in response.aiter_bytes(chunk_size=65536):
                    size += len(chunk)
                    if size > max_size:
                        return DownloadResult(
                            url=url,
                            final_url=final_url,
                            status_code=status,
                            error=f"File exceeded max size during download: {size} bytes",
                        )
                    chunks.append(chunk)

            logger.debug("Downloaded %s (%d bytes)", url, size)
            return DownloadResult(
                url=url,
                final_url=final_url,
                status_code=status,
                content=b"".join(chunks),
                content_type=content_type,
            )

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return DownloadResult(url=url, final_url=url, status_code=0, error=str(e) or type(e).__name__)
