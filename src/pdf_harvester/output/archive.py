"""ZIP archive assembly for selected documents."""

import asyncio
import io
import logging
import zipfile
from collections import Counter
from collections.abc import Sequence
from pathlib import Path

import aiofiles

from pdf_harvester.errors import EmptySelectionError, InvalidOperationError
from pdf_harvester.models import DocumentRecord

logger = logging.getLogger(__name__)


class ZipPacker:
    """Pack named byte blobs into one ZIP archive."""

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED):
        self.compression = compression

    async def pack(self, entries: Sequence[tuple[str, bytes]]) -> bytes:
        return await asyncio.to_thread(self._pack, entries)

    def _pack(self, entries: Sequence[tuple[str, bytes]]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=self.compression) as zf:
            for name, content in entries:
                zf.writestr(name, content)
        return buffer.getvalue()


class ArchiveBuilder:
    """Build an archive from selected, successfully acquired documents."""

    def __init__(self, packer: ZipPacker | None = None):
        self.packer = packer or ZipPacker()

    async def build(self, records: Sequence[DocumentRecord]) -> bytes:
        if not records:
            raise EmptySelectionError("Please select at least one PDF to download.")
        for record in records:
            if not record.is_archivable or record.content is None:
                raise InvalidOperationError(f"{record.filename} is not ready for the archive")

        # Duplicate names are passed through; the archive keeps both entries
        duplicates = [name for name, n in Counter(r.filename for r in records).items() if n > 1]
        if duplicates:
            logger.warning("Duplicate filenames in archive: %s", ", ".join(sorted(duplicates)))

        archive = await self.packer.pack([(r.filename, r.content) for r in records])
        logger.info("Packed %d file(s) into %d byte archive", len(records), len(archive))
        return archive


async def write_archive(archive: bytes, path: Path) -> Path:
    """Write archive bytes to disk."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix != ".zip":
        path = path.with_suffix(".zip")
    async with aiofiles.open(path, "wb") as f:
        await f.write(archive)
    return path


async def write_previews(records: Sequence[DocumentRecord], directory: Path) -> list[Path]:
    """Write each available preview as a JPEG named after its document."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for index, record in enumerate(records, 1):
        if record.preview is None:
            continue
        # Prefix keeps previews of same-named documents apart
        path = directory / f"{index:03d}-{Path(record.filename).stem}.jpg"
        async with aiofiles.open(path, "wb") as f:
            await f.write(record.preview.data)
        written.append(path)
    return written
