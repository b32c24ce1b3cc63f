import pytest

from pdf_harvester.utils.url_utils import has_document_suffix, resolve_url, truncate_url, url_to_filename

BASE = "https://example.com/docs/index.html?page=2"


@pytest.mark.parametrize(
    "reference, expected",
    [
        ("guide.html", "https://example.com/docs/guide.html"),
        ("../about", "https://example.com/about"),
        ("/root.pdf", "https://example.com/root.pdf"),
        ("//cdn.example.org/a.pdf", "https://cdn.example.org/a.pdf"),
        ("?page=3", "https://example.com/docs/index.html?page=3"),
        ("#top", "https://example.com/docs/index.html?page=2#top"),
        ("  spaced.html  ", "https://example.com/docs/spaced.html"),
        ("http://other.org/x", "http://other.org/x"),
    ],
)
def test_resolve_url(reference, expected):
    assert resolve_url(reference, BASE) == expected


def test_resolve_url_is_deterministic():
    assert resolve_url("a/b.pdf", BASE) == resolve_url("a/b.pdf", BASE)


@pytest.mark.parametrize("reference", ["http://[::1", "http://example.com:port/"])
def test_resolve_url_malformed_returns_none(reference):
    assert resolve_url(reference, BASE) is None


def test_resolve_url_without_absolute_base_returns_none():
    assert resolve_url("page.html", "not a url") is None


def test_url_to_filename():
    assert url_to_filename("https://example.com/files/Annual%20Report.pdf") == "Annual Report.pdf"
    assert url_to_filename("https://example.com/a/b.pdf?download=1") == "b.pdf"
    assert url_to_filename("https://example.com/") == "document.pdf"


def test_has_document_suffix_is_case_insensitive():
    assert has_document_suffix("https://example.com/A.PDF")
    assert not has_document_suffix("https://example.com/a.pdf.html")


def test_truncate_url():
    assert truncate_url("https://example.com/x", 100) == "https://example.com/x"
    truncated = truncate_url("https://example.com/" + "a" * 50, 20)
    assert len(truncated) == 20
    assert truncated.startswith("...")


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/files/..%2F..%2Fevil.pdf",
        "https://example.com/files/..%5C..%5Cevil.pdf",
        "https://example.com/files/sub%2Fevil.pdf",
    ],
)
def test_url_to_filename_drops_encoded_directories(url):
    assert url_to_filename(url) == "evil.pdf"


@pytest.mark.parametrize("url", ["https://example.com/files/..", "https://example.com/a/%2E%2E", "https://example.com/x%2F"])
def test_url_to_filename_falls_back_for_non_names(url):
    assert url_to_filename(url) == "document.pdf"
