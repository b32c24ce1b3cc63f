"""Session state machine sequencing discovery, acquisition and archiving."""

import logging
from collections.abc import Callable
from enum import Enum

from pdf_harvester import messages
from pdf_harvester.config import AppConfig
from pdf_harvester.discovery import DocumentDiscoverer, LinkDiscoverer, PageFailure
from pdf_harvester.errors import EmptySelectionError, InvalidOperationError, InvalidTransitionError
from pdf_harvester.events import ArchiveBuilt, Event, PageScanned, PhaseChanged, StatusChanged
from pdf_harvester.fetcher.base import BaseFetcher
from pdf_harvester.models import DocumentRecord, DocumentStatus
from pdf_harvester.output.archive import ArchiveBuilder
from pdf_harvester.pipeline import AcquisitionPipeline, create_records, is_complete
from pdf_harvester.preview import PdfPreviewRenderer
from pdf_harvester.utils.rate_limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Phase of a harvesting session."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    DISCOVERED = "discovered"
    SCRAPING = "scraping"
    COMPLETED = "completed"
    ERROR = "error"


TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.IDLE: frozenset({Phase.DISCOVERING, Phase.ERROR}),
    Phase.DISCOVERING: frozenset({Phase.DISCOVERED, Phase.IDLE, Phase.ERROR}),
    Phase.DISCOVERED: frozenset({Phase.SCRAPING, Phase.IDLE, Phase.ERROR}),
    Phase.SCRAPING: frozenset({Phase.DISCOVERED, Phase.COMPLETED, Phase.IDLE, Phase.ERROR}),
    Phase.COMPLETED: frozenset({Phase.COMPLETED, Phase.IDLE, Phase.ERROR}),
    Phase.ERROR: frozenset({Phase.IDLE}),
}


class Session:
    """State of one harvesting run, from seed URL to archive."""

    def __init__(self):
        self.seed_url: str = ""
        self.phase = Phase.IDLE
        self.status = messages.READY
        self.candidate_links: list[str] = []
        self.selected_links: set[str] = set()
        self.records: dict[str, DocumentRecord] = {}
        self.page_failures: list[PageFailure] = []
        self.archive: bytes | None = None
        self.active = True
        self._pipeline: AcquisitionPipeline | None = None

    @property
    def selected_pages(self) -> list[str]:
        """Selected candidate links in discovery order."""
        return [url for url in self.candidate_links if url in self.selected_links]

    @property
    def selected_records(self) -> list[DocumentRecord]:
        """Records eligible for the archive, in discovery order."""
        return [record for record in self.records.values() if record.is_archivable]

    def count(self, status: DocumentStatus) -> int:
        return sum(1 for record in self.records.values() if record.status == status)

    def release(self) -> None:
        """Discard this session: stop in-flight work and drop held buffers."""
        self.active = False
        if self._pipeline is not None:
            self._pipeline.cancel()
            self._pipeline = None
        self.records = {}
        self.candidate_links = []
        self.selected_links = set()
        self.page_failures = []
        self.archive = None


class SessionController:
    """Drive a Session through its phases.

    Every phase change goes through ``_transition``, which checks the
    ``TRANSITIONS`` table. Operator actions invoked in the wrong phase raise
    ``InvalidOperationError`` and leave the session unchanged. Work started
    for a session that has since been restarted never touches the new one.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        renderer: PdfPreviewRenderer | None = None,
        archive_builder: ArchiveBuilder | None = None,
        config: AppConfig | None = None,
    ):
        self.config = config or AppConfig()
        self.fetcher = fetcher
        self.renderer = renderer or PdfPreviewRenderer(self.config.preview)
        self.archive_builder = archive_builder or ArchiveBuilder()
        self.session = Session()
        self._subscribers: list[Callable[[Event], None]] = []

    # -- events ---------------------------------------------------------

    def subscribe(self, callback: Callable[[Event], None]) -> Callable[[], None]:
        """Register an event callback; returns a function that removes it."""
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def _emit(self, event: Event) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Event subscriber failed on %s", type(event).__name__)

    # -- state helpers --------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.session.phase

    def _is_current(self, session: Session) -> bool:
        return session is self.session and session.active

    def _transition(self, session: Session, target: Phase) -> None:
        if target not in TRANSITIONS[session.phase]:
            raise InvalidTransitionError(session.phase.value, target.value)
        previous = session.phase
        session.phase = target
        if previous != target:
            logger.debug("Phase %s -> %s", previous.value, target.value)
            self._emit(PhaseChanged(previous.value, target.value))

    def _set_status(self, session: Session, message: str) -> None:
        session.status = message
        self._emit(StatusChanged(message))

    def _require(self, session: Session, phase: Phase, action: str) -> None:
        if session.phase != phase:
            raise InvalidOperationError(f"Cannot {action} while {session.phase.value}")

    # -- operator actions -----------------------------------------------

    async def submit_seed(self, url: str) -> Phase:
        """Discover candidate links on the seed page."""
        session = self.session
        self._require(session, Phase.IDLE, "submit a URL")
        url = (url or "").strip()
        if not url:
            self._set_status(session, messages.INVALID_URL)
            raise InvalidOperationError(messages.INVALID_URL)

        session.seed_url = url
        self._transition(session, Phase.DISCOVERING)
        self._set_status(session, messages.discovering(url))

        try:
            links = await LinkDiscoverer(self.fetcher).discover(url)
        except Exception as e:
            if not self._is_current(session):
                return session.phase
            logger.error("Link discovery failed for %s: %s", url, e)
            self._set_status(session, messages.failed(e))
            self._transition(session, Phase.ERROR)
            return session.phase

        if not self._is_current(session):
            return session.phase

        if not links:
            self._set_status(session, messages.NO_LINKS)
            self._transition(session, Phase.IDLE)
            return session.phase

        session.candidate_links = links
        session.selected_links = set(links)
        self._set_status(session, messages.links_found(len(links)))
        self._transition(session, Phase.DISCOVERED)
        return session.phase

    def toggle_link(self, url: str) -> bool:
        """Flip selection of a candidate link; returns the new state."""
        session = self.session
        self._require(session, Phase.DISCOVERED, "change the page selection")
        if url not in session.candidate_links:
            raise InvalidOperationError(f"Unknown link: {url}")
        if url in session.selected_links:
            session.selected_links.discard(url)
            return False
        session.selected_links.add(url)
        return True

    def select_all_links(self, select: bool = True) -> None:
        session = self.session
        self._require(session, Phase.DISCOVERED, "change the page selection")
        session.selected_links = set(session.candidate_links) if select else set()

    async def confirm_selection(self) -> Phase:
        """Scan the selected pages for documents, then acquire them all."""
        session = self.session
        self._require(session, Phase.DISCOVERED, "scan pages")
        pages = session.selected_pages
        if not pages:
            self._set_status(session, messages.EMPTY_LINK_SELECTION)
            raise InvalidOperationError(messages.EMPTY_LINK_SELECTION)

        self._transition(session, Phase.SCRAPING)
        self._set_status(session, messages.SCAN_STARTING)
        session.records = {}
        session.archive = None

        def on_page(event: PageScanned) -> None:
            if self._is_current(session):
                self._set_status(session, messages.scanning(event.index, event.total, event.url))
                self._emit(event)

        discoverer = DocumentDiscoverer(self.fetcher)
        try:
            document_urls = await discoverer.discover(pages, on_progress=on_page)
            if not self._is_current(session):
                return session.phase
            session.page_failures = discoverer.failures

            if not document_urls:
                self._set_status(session, messages.NO_DOCUMENTS)
                self._transition(session, Phase.DISCOVERED)
                return session.phase

            session.records = create_records(document_urls)
            self._set_status(session, messages.documents_found(len(session.records)))

            limiter = ConcurrencyLimiter(
                self.config.download.max_concurrent,
                self.config.download.delay_seconds,
            )
            pipeline = AcquisitionPipeline(self.fetcher, self.renderer, limiter)
            session._pipeline = pipeline
            await pipeline.run(
                session.records,
                is_current=lambda: self._is_current(session),
                on_transition=self._emit,
            )
        except Exception as e:
            if not self._is_current(session):
                return session.phase
            logger.error("Document scan failed: %s", e)
            self._set_status(session, messages.failed(e))
            self._transition(session, Phase.ERROR)
            return session.phase

        if not self._is_current(session):
            return session.phase
        session._pipeline = None

        if not is_complete(session.records):
            raise RuntimeError("Acquisition finished with non-terminal records")

        completed = session.count(DocumentStatus.COMPLETED)
        failed = session.count(DocumentStatus.ERROR)
        self._set_status(session, messages.acquisition_finished(completed, failed))
        self._transition(session, Phase.COMPLETED)
        return session.phase

    def toggle_document(self, url: str) -> bool:
        """Flip a document's archive selection; returns the new state."""
        session = self.session
        self._require(session, Phase.COMPLETED, "change the document selection")
        record = session.records.get(url)
        if record is None:
            raise InvalidOperationError(f"Unknown document: {url}")
        record.selected = not record.selected
        return record.selected

    def select_all_documents(self, select: bool = True) -> None:
        session = self.session
        self._require(session, Phase.COMPLETED, "change the document selection")
        for record in session.records.values():
            record.selected = select

    async def build_archive(self) -> bytes:
        """Pack the selected completed documents into one archive."""
        session = self.session
        self._require(session, Phase.COMPLETED, "build an archive")
        records = session.selected_records
        if not records:
            self._set_status(session, messages.EMPTY_DOCUMENT_SELECTION)
            raise EmptySelectionError(messages.EMPTY_DOCUMENT_SELECTION)

        self._transition(session, Phase.COMPLETED)
        self._set_status(session, messages.zipping(len(records)))
        try:
            archive = await self.archive_builder.build(records)
        except Exception as e:
            if self._is_current(session):
                logger.error("Archive creation failed: %s", e)
                self._set_status(session, messages.archive_failed(e))
            raise

        if self._is_current(session):
            session.archive = archive
            self._set_status(session, messages.archive_ready(len(records)))
            self._emit(ArchiveBuilt(file_count=len(records), size=len(archive)))
        return archive

    def restart(self) -> None:
        """Discard the current session and start a fresh one."""
        old = self.session
        if old.phase == Phase.IDLE:
            if old.status != messages.READY:
                self._set_status(old, messages.READY)
            return

        if Phase.IDLE not in TRANSITIONS[old.phase]:
            raise InvalidTransitionError(old.phase.value, Phase.IDLE.value)
        logger.info("Restarting session (was %s)", old.phase.value)
        old.release()
        self.session = Session()
        self._emit(PhaseChanged(old.phase.value, Phase.IDLE.value))
        self._emit(StatusChanged(self.session.status))
