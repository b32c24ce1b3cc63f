"""First-page preview rendering for PDF documents."""

import asyncio
import logging

import fitz  # PyMuPDF

from pdf_harvester.config import PreviewConfig
from pdf_harvester.errors import RenderError
from pdf_harvester.models import PreviewImage

logger = logging.getLogger(__name__)


class PdfPreviewRenderer:
    """Render the first page of a PDF to a JPEG thumbnail."""

    def __init__(self, config: PreviewConfig | None = None):
        self.config = config or PreviewConfig()

    async def render_first_page(self, content: bytes) -> PreviewImage:
        """Render off the event loop; rasterizing is CPU-bound."""
        return await asyncio.to_thread(self._render, content)

    def _render(self, content: bytes) -> PreviewImage:
        if not content:
            raise RenderError("Document is empty")
        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as e:
            raise RenderError(f"Could not open PDF: {e}") from e

        try:
            if doc.needs_pass:
                raise RenderError("PDF is password protected")
            if doc.page_count == 0:
                raise RenderError("PDF has no pages")
            page = doc.load_page(0)
            matrix = fitz.Matrix(self.config.scale, self.config.scale)
            pix = page.get_pixmap(matrix=matrix, alpha=False)
            data = pix.tobytes(output="jpeg", jpg_quality=self.config.jpeg_quality)
            logger.debug("Rendered preview %dx%d (%d bytes)", pix.width, pix.height, len(data))
            return PreviewImage(data=data, width=pix.width, height=pix.height)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Could not render first page: {e}") from e
        finally:
            doc.close()
