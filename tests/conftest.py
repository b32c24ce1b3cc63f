import asyncio

import fitz
import pytest

from pdf_harvester.config import DownloadConfig, FetcherConfig
from pdf_harvester.errors import RenderError
from pdf_harvester.fetcher.base import BaseFetcher, DownloadResult, FetchResult
from pdf_harvester.models import PreviewImage


class FakeFetcher(BaseFetcher):
    """In-memory fetcher: pages map URL to markup, documents to bytes.

    A value that is an int is returned as that HTTP status with no body.
    Documents listed in ``gates`` wait for their event before answering.
    """

    def __init__(self, pages=None, documents=None):
        super().__init__(FetcherConfig(), DownloadConfig(max_retries=0))
        self.pages = pages or {}
        self.documents = documents or {}
        self.gates: dict[str, asyncio.Event] = {}
        self.fetched: list[str] = []
        self.downloaded: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    async def fetch(self, url):
        self.fetched.append(url)
        page = self.pages.get(url, 404)
        if isinstance(page, int):
            return FetchResult(url=url, final_url=url, status_code=page)
        return FetchResult(url=url, final_url=url, status_code=200, html=page)

    async def download(self, url):
        self.downloaded.append(url)
        if url in self.gates:
            await self.gates[url].wait()
        body = self.documents.get(url, 404)
        if isinstance(body, int):
            return DownloadResult(url=url, final_url=url, status_code=body)
        return DownloadResult(url=url, final_url=url, status_code=200, content=body)


class FakeRenderer:
    """Renders any bytes except ``b"broken"`` to a tiny fake preview."""

    def __init__(self):
        self.calls = 0

    async def render_first_page(self, content):
        self.calls += 1
        if content == b"broken":
            raise RenderError("Could not open PDF: broken")
        return PreviewImage(data=b"\xff\xd8jpeg", width=10, height=14)


def anchors(*hrefs):
    links = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><body>{links}</body></html>"


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def pdf_bytes():
    doc = fitz.open()
    page = doc.new_page(width=200, height=300)
    page.insert_text((20, 40), "Quarterly report")
    data = doc.tobytes()
    doc.close()
    return data
