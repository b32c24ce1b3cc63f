"""Link extraction from fetched pages."""

from pdf_harvester.extractor.links import extract_document_links, extract_links

__all__ = ["extract_links", "extract_document_links"]
