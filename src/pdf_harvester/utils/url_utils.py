"""URL manipulation utilities."""

from urllib.parse import unquote, urljoin, urlsplit

DOCUMENT_SUFFIX = ".pdf"
FALLBACK_FILENAME = "document.pdf"


def resolve_url(reference: str, base_url: str) -> str | None:
    """Resolve a possibly-relative reference against a base page URL.

    Returns None when the reference (or base) cannot be parsed, or when the
    result is not absolute. Never raises.
    """
    try:
        absolute = urljoin(base_url, reference.strip())
        parsed = urlsplit(absolute)
        # Accessing port validates it; bad values raise ValueError
        parsed.port
    except ValueError:
        return None
    if not parsed.scheme:
        return None
    return absolute


def has_document_suffix(url: str, suffix: str = DOCUMENT_SUFFIX) -> bool:
    """Check if a URL ends, case-insensitively, in the tracked document suffix."""
    return url.lower().endswith(suffix)


def url_to_filename(url: str) -> str:
    """Derive a download filename from the last path segment of a URL."""
    path = urlsplit(url).path
    name = unquote(path.rsplit("/", 1)[-1])
    # Encoded separators must not turn the name back into a path
    name = name.replace("\\", "/").rsplit("/", 1)[-1]
    if name in ("", ".", ".."):
        return FALLBACK_FILENAME
    return name


def truncate_url(url: str, max_len: int) -> str:
    """Truncate a URL for display, keeping the end of the path visible."""
    if len(url) <= max_len:
        return url
    return "..." + url[-(max_len - 3):]
