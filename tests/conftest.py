import copy
from typing import Callable, Dict, List, Optional

import pytest

from database.db import Database
from database.models import Portal, Tender
from monitor.dedup import DeduplicationStore
from monitor.portals import PortalRegistry
from monitor.scan import Scanner
from monitor.scheduler import Clock
from notifications.broadcaster import LocalBroadcaster
from notifications.emitter import NotificationEmitter
from sources.base import TenderSource
from utils.keywords import KeywordMatcher


class VirtualTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock(Clock):
    """Timers that only fire when the test advances time."""

    def __init__(self):
        self.now = 0.0
        self.timers: List[VirtualTimer] = []

    def call_later(self, delay, callback):
        timer = VirtualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[VirtualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted((t for t in self.pending if t.when <= target), key=lambda t: t.when)
            if not due:
                break
            timer = due[0]
            self.now = timer.when
            timer.fired = True
            timer.callback()
        self.now = target


class StubSource(TenderSource):
    """Returns a scripted list of candidates per call."""

    SOURCE_NAME = "stub"

    def __init__(self, *batches: List[Tender], config: Optional[dict] = None):
        super().__init__(config or {})
        self.batches = list(batches)
        self.calls = 0

    def fetch(self, portal: Portal) -> List[Tender]:
        index = min(self.calls, len(self.batches) - 1)
        self.calls += 1
        # dedup mutates the records it stores
        return copy.deepcopy(self.batches[index]) if self.batches else []


class FailingSource(TenderSource):
    SOURCE_NAME = "failing"

    def __init__(self, error: Optional[Exception] = None):
        super().__init__({})
        self.error = error or ConnectionError("portal unreachable")
        self.calls = 0

    def fetch(self, portal: Portal) -> List[Tender]:
        self.calls += 1
        raise self.error


def make_tender(tender_id: str, title: str, portal_id: str = "metro-portal", **fields) -> Tender:
    fields.setdefault("description", "")
    fields.setdefault("keywords", [])
    return Tender(id=tender_id, title=title, portal_id=portal_id, **fields)


def portal_entry(portal_id: str, name: Optional[str] = None, active: bool = True) -> Dict:
    return {
        "id": portal_id,
        "name": name or portal_id.replace("-", " ").title(),
        "url": f"https://{portal_id}.example.org",
        "type": "government",
        "active": active,
    }


class EventRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event, payload):
        self.events.append((event, payload))

    def of_type(self, event):
        return [payload for name, payload in self.events if name == event]


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "tenders.db"))
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def broadcaster():
    return LocalBroadcaster()


@pytest.fixture
def recorder(broadcaster):
    events = EventRecorder()
    broadcaster.subscribe(events)
    return events


@pytest.fixture
def build_scanner(db, broadcaster):
    """Scanner over the given portal catalog and per-portal sources."""

    def _build(
        portals: List[Dict],
        sources: Dict[str, TenderSource],
        keywords=("metro", "railway"),
        fetch_timeout: Optional[float] = 5,
        max_workers: int = 4,
    ) -> Scanner:
        registry = PortalRegistry(db, portals)
        registry.seed()

        def source_for(portal: Portal) -> TenderSource:
            return sources[portal.id]

        return Scanner(
            registry=registry,
            source_for=source_for,
            dedup=DeduplicationStore(db),
            emitter=NotificationEmitter(db, broadcaster),
            matcher=KeywordMatcher(keywords=keywords),
            max_workers=max_workers,
            fetch_timeout=fetch_timeout,
        )

    return _build
