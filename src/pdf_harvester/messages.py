"""Human-readable status messages for each session step."""

from pdf_harvester.utils.url_utils import truncate_url

READY = "Enter a URL to start."
INVALID_URL = "Please enter a valid URL."
NO_LINKS = "No navigable links found on the page."
EMPTY_LINK_SELECTION = "Please select at least one link to scrape."
SCAN_STARTING = "Initializing PDF scan..."
NO_DOCUMENTS = "No PDF files found across the selected links. Try selecting different pages."
EMPTY_DOCUMENT_SELECTION = "Please select at least one PDF to download."


def discovering(url: str) -> str:
    return f"Finding all links on {url}..."


def links_found(count: int) -> str:
    return f"Found {count} unique links. Select which pages to scan for PDFs."


def scanning(index: int, total: int, url: str) -> str:
    return f"Scanning page {index} of {total}: {truncate_url(url, 100)}"


def documents_found(count: int) -> str:
    return f"Found {count} total PDF(s). Generating previews..."


def acquisition_finished(completed: int, failed: int) -> str:
    if completed == 0:
        return "Could not generate any previews. Check the log for errors."
    message = f"Generated {completed} previews. Select files to include in your ZIP."
    if failed:
        message += f" ({failed} failed)"
    return message


def zipping(count: int) -> str:
    return f"Zipping {count} file(s)..."


def archive_ready(count: int) -> str:
    return f"Success! {count} PDF(s) are ready for download."


def archive_failed(error: Exception) -> str:
    return f"Error creating ZIP: {_describe(error)}"


def failed(error: Exception) -> str:
    return f"Error: {_describe(error)}"


def _describe(error: Exception) -> str:
    return str(error) or "An unknown error occurred."
