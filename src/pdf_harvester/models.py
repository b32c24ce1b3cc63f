"""Data models for discovered documents."""

import base64
from enum import Enum

from pydantic import BaseModel, Field

from pdf_harvester.utils.url_utils import url_to_filename


class DocumentStatus(str, Enum):
    """Acquisition status of a discovered document."""

    PENDING = "pending"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.COMPLETED, DocumentStatus.ERROR)


class PreviewImage(BaseModel):
    """Rendered first page of a document."""

    data: bytes
    width: int
    height: int
    mime_type: str = "image/jpeg"

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class DocumentRecord(BaseModel):
    """Tracked state for one discovered document URL.

    ``content`` and ``preview`` are set exactly when the status is
    ``completed``; ``error`` exactly when it is ``error``. Use the ``mark_*``
    methods to change status so the pairing always holds.
    """

    url: str
    filename: str = ""
    status: DocumentStatus = DocumentStatus.PENDING
    error: str | None = None
    preview: PreviewImage | None = None
    content: bytes | None = Field(default=None, repr=False)
    selected: bool = True

    def model_post_init(self, __context) -> None:
        if not self.filename:
            self.filename = url_to_filename(self.url)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_archivable(self) -> bool:
        return self.selected and self.status == DocumentStatus.COMPLETED

    def mark_downloading(self) -> None:
        self.status = DocumentStatus.DOWNLOADING
        self.error = None
        self.content = None
        self.preview = None

    def mark_completed(self, content: bytes, preview: PreviewImage) -> None:
        self.content = content
        self.preview = preview
        self.error = None
        self.status = DocumentStatus.COMPLETED

    def mark_error(self, message: str) -> None:
        self.error = message or "Unknown error"
        self.content = None
        self.preview = None
        self.status = DocumentStatus.ERROR
