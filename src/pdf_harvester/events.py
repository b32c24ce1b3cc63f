"""Typed progress events emitted by the session controller."""

from dataclasses import dataclass
from typing import Union

from pdf_harvester.models import DocumentStatus


@dataclass(frozen=True)
class PhaseChanged:
    previous: str
    current: str


@dataclass(frozen=True)
class StatusChanged:
    message: str


@dataclass(frozen=True)
class PageScanned:
    """A selected page is about to be scanned (1-based index)."""

    index: int
    total: int
    url: str


@dataclass(frozen=True)
class RecordTransitioned:
    url: str
    status: DocumentStatus
    error: str | None = None


@dataclass(frozen=True)
class ArchiveBuilt:
    file_count: int
    size: int


Event = Union[PhaseChanged, StatusChanged, PageScanned, RecordTransitioned, ArchiveBuilt]
