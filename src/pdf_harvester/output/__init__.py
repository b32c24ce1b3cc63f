"""Output writers for harvested documents."""

from pdf_harvester.output.archive import ArchiveBuilder, ZipPacker, write_archive, write_previews

__all__ = [
    "ArchiveBuilder",
    "ZipPacker",
    "write_archive",
    "write_previews",
]
