"""Playwright-based fetcher for JavaScript-rendered pages."""

import asyncio
import logging

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from pdf_harvester.config import DownloadConfig, FetcherConfig
from pdf_harvester.fetcher.base import BaseFetcher, DownloadResult, FetchResult

logger = logging.getLogger(__name__)


class PlaywrightFetcher(BaseFetcher):
    """Fetch pages with JavaScript rendering using a pool of browser pages.

    Documents are downloaded through the browser context's request API so
    they share its cookies and user agent.
    """

    def __init__(self, config: FetcherConfig, download: DownloadConfig | None = None):
        super().__init__(config, download)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page_pool: asyncio.Queue | None = None

    async def __aenter__(self):
        """Start the browser and pre-create the page pool."""
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=True)
            self._context = await self._browser.new_context(
                user_agent=self.config.user_agent,
                viewport={"width": 1280, "height": 720},
            )
            self._page_pool = asyncio.Queue()
            for _ in range(self.config.page_pool_size):
                await self._page_pool.put(await self._context.new_page())
        except Exception:
            await self.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close pooled pages and Playwright resources."""
        if self._page_pool:
            while not self._page_pool.empty():
                page = await self._page_pool.get()
                try:
                    await page.close()
                except Exception:
                    logger.debug("Failed to close page during cleanup", exc_info=True)
        if self._context:
            await self._context.close()
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()

    async def fetch(self, url: str) -> FetchResult:
        """Render a page and return its final DOM."""
        if not self._context or not self._page_pool:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context manager.")

        page = await self._page_pool.get()
        try:
            response = await page.goto(
                url,
                wait_until="networkidle",
                timeout=self.config.timeout_ms,
            )
            if response is None:
                return FetchResult(url=url, final_url=url, status_code=0, error="No response received")

            if self.config.wait_after_load_ms > 0:
                await asyncio.sleep(self.config.wait_after_load_ms / 1000)

            retry_after: float | None = None
            if response.status == 429:
                retry_after = self._parse_retry_after(response.headers.get("retry-after"))

            return FetchResult(
                url=url,
                final_url=page.url,
                html=await page.content(),
                status_code=response.status,
                retry_after=retry_after,
            )

        except Exception as e:
            return FetchResult(url=url, final_url=url, status_code=0, error=str(e))
        finally:
            await self._return_page_to_pool(page)

    async def download(self, url: str) -> DownloadResult:
        """Download a document through the browser context."""
        if not self._context:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context manager.")

        try:
            response = await self._context.request.get(url, timeout=self.config.timeout_ms)
            try:
                content_type = response.headers.get("content-type", "")
                if not response.ok:
                    return DownloadResult(url=url, final_url=response.url, status_code=response.status)
                if "text/html" in content_type:
                    return DownloadResult(
                        url=url,
                        final_url=response.url,
                        status_code=response.status,
                        error=f"Expected a document but got HTML (content-type: {content_type})",
                    )
                body = await response.body()
                if len(body) > self.download_config.max_file_size:
                    return DownloadResult(
                        url=url,
                        final_url=response.url,
                        status_code=response.status,
                        error=f"File too large: {len(body)} bytes",
                    )
                return DownloadResult(
                    url=url,
                    final_url=response.url,
                    status_code=response.status,
                    content=body,
                    content_type=content_type,
                )
            finally:
                await response.dispose()
        except Exception as e:
            return DownloadResult(url=url, final_url=url, status_code=0, error=str(e))

    async def _return_page_to_pool(self, page) -> None:
        """Reset a page and return it to the pool, replacing it if broken."""
        assert self._page_pool is not None
        assert self._context is not None
        try:
            await page.goto("about:blank", wait_until="load", timeout=5000)
            await self._page_pool.put(page)
        except Exception:
            logger.debug("Page reset failed, replacing page", exc_info=True)
            try:
                await page.close()
            except Exception:
                logger.debug("Failed to close broken page", exc_info=True)
            await self._page_pool.put(await self._context.new_page())
