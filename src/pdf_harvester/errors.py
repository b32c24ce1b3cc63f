"""Exception hierarchy for the harvesting pipeline."""


class HarvestError(Exception):
    """Base class for all pipeline errors."""


class FetchError(HarvestError):
    """A page could not be retrieved."""

    def __init__(self, url: str, status_code: int = 0, message: str | None = None):
        self.url = url
        self.status_code = status_code
        detail = message or f"HTTP {status_code}"
        super().__init__(f"Failed to fetch page: {detail}")


class ParseError(HarvestError):
    """Markup could not be parsed into links."""


class DownloadError(HarvestError):
    """A document could not be downloaded."""

    def __init__(self, url: str, status_code: int = 0, message: str | None = None):
        self.url = url
        self.status_code = status_code
        detail = message or f"HTTP {status_code}"
        super().__init__(f"Failed to download file: {detail}")


class RenderError(HarvestError):
    """A preview of the document's first page could not be produced."""


class InvalidOperationError(HarvestError):
    """An operator action was rejected."""


class EmptySelectionError(InvalidOperationError):
    """An archive was requested with no eligible documents."""


class InvalidTransitionError(InvalidOperationError):
    """A phase change not permitted by the transition table."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move from '{current}' to '{target}'")
