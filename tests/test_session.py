import asyncio
import io
import zipfile

import pytest

from pdf_harvester import messages
from pdf_harvester.errors import EmptySelectionError, InvalidOperationError, InvalidTransitionError
from pdf_harvester.events import ArchiveBuilt, PageScanned, PhaseChanged, RecordTransitioned
from pdf_harvester.models import DocumentStatus
from pdf_harvester.session import TRANSITIONS, Phase, SessionController

from tests.conftest import FakeFetcher, anchors

SEED = "https://example.com/"
PAGE_A = "https://example.com/a"
PAGE_B = "https://example.com/b"
DOC_1 = "https://example.com/files/one.pdf"
DOC_2 = "https://example.com/files/two.pdf"


def site(**overrides):
    pages = {
        SEED: anchors("a", "b", "mailto:x@example.com"),
        PAGE_A: anchors("/files/one.pdf", "/files/two.pdf"),
        PAGE_B: anchors("/files/two.pdf"),
    }
    pages.update(overrides)
    return FakeFetcher(pages=pages, documents={DOC_1: b"%PDF-1", DOC_2: 404})


@pytest.fixture
def controller(fake_renderer):
    return SessionController(site(), renderer=fake_renderer)


async def test_full_session(controller):
    events = []
    controller.subscribe(events.append)

    assert await controller.submit_seed(SEED) == Phase.DISCOVERED
    assert controller.session.candidate_links == [PAGE_A, PAGE_B]
    assert controller.session.selected_links == {PAGE_A, PAGE_B}
    assert controller.session.status == messages.links_found(2)

    assert await controller.confirm_selection() == Phase.COMPLETED
    records = controller.session.records
    assert list(records) == [DOC_1, DOC_2]
    assert records[DOC_1].status == DocumentStatus.COMPLETED
    assert records[DOC_2].status == DocumentStatus.ERROR
    assert controller.session.status.startswith("Generated 1 previews")

    archive = await controller.build_archive()
    assert controller.phase == Phase.COMPLETED
    assert controller.session.archive == archive
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert zf.namelist() == ["one.pdf"]

    phases = [(e.previous, e.current) for e in events if isinstance(e, PhaseChanged)]
    assert phases == [
        ("idle", "discovering"),
        ("discovering", "discovered"),
        ("discovered", "scraping"),
        ("scraping", "completed"),
    ]
    assert [e.index for e in events if isinstance(e, PageScanned)] == [1, 2]
    assert any(isinstance(e, RecordTransitioned) and e.url == DOC_2 and e.error for e in events)
    assert any(isinstance(e, ArchiveBuilt) and e.file_count == 1 for e in events)


async def test_blank_seed_is_rejected(controller):
    with pytest.raises(InvalidOperationError):
        await controller.submit_seed("   ")
    assert controller.phase == Phase.IDLE
    assert controller.session.status == messages.INVALID_URL


async def test_seed_without_links_returns_to_idle(fake_renderer):
    controller = SessionController(site(**{SEED: "<p>empty</p>"}), renderer=fake_renderer)

    assert await controller.submit_seed(SEED) == Phase.IDLE
    assert controller.session.status == messages.NO_LINKS


async def test_seed_fetch_failure_moves_to_error(fake_renderer):
    controller = SessionController(site(**{SEED: 500}), renderer=fake_renderer)

    assert await controller.submit_seed(SEED) == Phase.ERROR
    assert controller.session.status.startswith("Error:")

    with pytest.raises(InvalidOperationError):
        await controller.submit_seed(SEED)
    controller.restart()
    assert controller.phase == Phase.IDLE


async def test_empty_link_selection_is_rejected(controller):
    await controller.submit_seed(SEED)
    controller.select_all_links(False)

    with pytest.raises(InvalidOperationError):
        await controller.confirm_selection()

    assert controller.phase == Phase.DISCOVERED
    assert controller.session.status == messages.EMPTY_LINK_SELECTION


async def test_only_selected_pages_are_scanned(controller):
    await controller.submit_seed(SEED)
    assert controller.toggle_link(PAGE_A) is False

    await controller.confirm_selection()

    assert list(controller.session.records) == [DOC_2]
    assert PAGE_A not in controller.fetcher.fetched


async def test_no_documents_returns_to_link_selection(fake_renderer):
    controller = SessionController(
        site(**{PAGE_A: anchors("x.html"), PAGE_B: 404}), renderer=fake_renderer
    )
    await controller.submit_seed(SEED)

    assert await controller.confirm_selection() == Phase.DISCOVERED
    assert controller.session.status == messages.NO_DOCUMENTS
    assert [f.url for f in controller.session.page_failures] == [PAGE_B]


async def test_actions_in_wrong_phase_are_rejected(controller):
    with pytest.raises(InvalidOperationError):
        await controller.confirm_selection()
    with pytest.raises(InvalidOperationError):
        await controller.build_archive()
    with pytest.raises(InvalidOperationError):
        controller.toggle_link(PAGE_A)
    assert controller.phase == Phase.IDLE


async def test_archive_with_no_selected_documents(controller):
    await controller.submit_seed(SEED)
    await controller.confirm_selection()
    controller.select_all_documents(False)

    with pytest.raises(EmptySelectionError):
        await controller.build_archive()

    assert controller.phase == Phase.COMPLETED
    assert controller.session.status == messages.EMPTY_DOCUMENT_SELECTION

    assert controller.toggle_document(DOC_1) is True
    await controller.build_archive()


async def test_restart_from_idle_is_a_no_op(controller):
    session = controller.session
    controller.restart()
    assert controller.session is session
    assert controller.phase == Phase.IDLE
    assert controller.session.status == messages.READY


async def test_restart_releases_the_discarded_session(controller):
    await controller.submit_seed(SEED)
    await controller.confirm_selection()
    old = controller.session

    controller.restart()

    assert controller.session is not old
    assert controller.phase == Phase.IDLE
    assert not old.active
    assert old.records == {}
    assert controller.session.records == {}


async def test_restart_during_acquisition_discards_in_flight_work(controller):
    fetcher = controller.fetcher
    fetcher.gates[DOC_1] = asyncio.Event()
    await controller.submit_seed(SEED)

    scrape = asyncio.create_task(controller.confirm_selection())
    for _ in range(20):
        await asyncio.sleep(0)
    assert controller.phase == Phase.SCRAPING

    controller.restart()
    assert controller.phase == Phase.IDLE
    assert controller.session.status == messages.READY

    # New session over the same documents before the old download is released
    old_gate = fetcher.gates.pop(DOC_1)
    await controller.submit_seed(SEED)
    assert await controller.confirm_selection() == Phase.COMPLETED
    fresh = dict(controller.session.records)
    assert fresh[DOC_1].status == DocumentStatus.COMPLETED
    renders = controller.renderer.calls

    late = []
    controller.subscribe(late.append)
    old_gate.set()
    await scrape
    for _ in range(20):
        await asyncio.sleep(0)

    assert late == []
    assert controller.renderer.calls == renders
    assert controller.session.records == fresh
    assert controller.session.records[DOC_1] is fresh[DOC_1]
    assert fresh[DOC_1].status == DocumentStatus.COMPLETED
    assert fresh[DOC_1].content == b"%PDF-1"
    assert fresh[DOC_2].status == DocumentStatus.ERROR
    assert controller.phase == Phase.COMPLETED


async def test_restart_during_discovery_ignores_late_results(fake_renderer):
    class SlowFetcher(FakeFetcher):
        def __init__(self, **kwargs):
            super().__init__(**kwargs)
            self.release = asyncio.Event()

        async def fetch(self, url):
            await self.release.wait()
            return await super().fetch(url)

    fetcher = SlowFetcher(pages={SEED: anchors("a")})
    controller = SessionController(fetcher, renderer=fake_renderer)
    discovery = asyncio.create_task(controller.submit_seed(SEED))
    await asyncio.sleep(0)
    assert controller.phase == Phase.DISCOVERING

    controller.restart()
    fetcher.release.set()
    await discovery

    assert controller.phase == Phase.IDLE
    assert controller.session.candidate_links == []


def test_transition_table():
    assert TRANSITIONS[Phase.COMPLETED] >= {Phase.COMPLETED, Phase.IDLE}
    assert all(Phase.ERROR in targets for phase, targets in TRANSITIONS.items() if phase != Phase.ERROR)
    assert all(Phase.IDLE in targets for phase, targets in TRANSITIONS.items() if phase != Phase.IDLE)
    assert Phase.SCRAPING not in TRANSITIONS[Phase.IDLE]


def test_invalid_transition_is_refused(controller):
    with pytest.raises(InvalidTransitionError):
        controller._transition(controller.session, Phase.COMPLETED)


async def test_failing_subscriber_does_not_stall_the_session(controller):
    seen = []

    def subscriber(event):
        seen.append(event)
        if isinstance(event, RecordTransitioned):
            raise ValueError("subscriber broke")

    controller.subscribe(subscriber)
    await controller.submit_seed(SEED)

    assert await controller.confirm_selection() == Phase.COMPLETED
    assert controller.session.records[DOC_1].status == DocumentStatus.COMPLETED
    assert controller.session.records[DOC_2].status == DocumentStatus.ERROR
    assert sum(isinstance(e, RecordTransitioned) for e in seen) == 4
