import pytest

from conftest import StubSource, VirtualClock, make_tender, portal_entry
from monitor.service import PortalMonitor
from notifications.broadcaster import EVENT_NEW_TENDER
from utils.config import load_config


@pytest.fixture
def config(tmp_path):
    config = load_config(None)
    config["database"]["path"] = str(tmp_path / "monitor.db")
    config["keywords"] = {"file": None, "terms": ["metro"], "exclusions": []}
    config["portals"] = [portal_entry("metro-portal"), portal_entry("rail-portal", active=False)]
    return config


@pytest.fixture
def sources():
    return {
        "metro-portal": StubSource(
            [make_tender("T1", "Metro Viaduct Repairs", value=12_000_000.0)],
            [make_tender("T1", "Metro Viaduct Repairs"), make_tender("T2", "Metro Depot Lighting")],
        ),
        "rail-portal": StubSource(
            [make_tender("R1", "Metro Feeder Rail Link", portal_id="rail-portal")],
        ),
    }


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def monitor(config, sources, clock, broadcaster):
    instance = PortalMonitor.from_config(
        config,
        broadcaster=broadcaster,
        clock=clock,
        source_for=lambda portal: sources[portal.id],
    )
    yield instance
    instance.close()


def test_portals_are_seeded_from_config(monitor):
    portals = {p.id: p for p in monitor.list_portals()}

    assert set(portals) == {"metro-portal", "rail-portal"}
    assert portals["rail-portal"].active is False


def test_monitoring_scans_on_start_and_every_interval(monitor, clock, recorder):
    assert monitor.start_monitoring() is True
    assert monitor.start_monitoring() is False
    assert monitor.is_monitoring

    clock.advance(0)
    assert [t.id for t in monitor.list_tenders()] == ["T1"]

    clock.advance(60 * 60)
    assert sorted(t.id for t in monitor.list_tenders()) == ["T1", "T2"]
    assert [p["id"] for p in recorder.of_type(EVENT_NEW_TENDER)] == ["T1", "T2"]

    assert monitor.stop_monitoring() is True
    assert not monitor.is_monitoring
    assert clock.pending == []


def test_scan_now_runs_synchronously(monitor, sources):
    stats = monitor.scan_now()

    assert sources["metro-portal"].calls == 1
    assert sources["rail-portal"].calls == 0
    assert stats.total_new_tenders == 1
    assert monitor.list_tenders()[0].priority == "urgent"
    assert [n.type for n in monitor.list_notifications()] == ["scan-summary", "new-tender"]
    assert monitor.unread_notification_count() == 2


def test_enabling_a_portal_includes_it_in_the_next_scan(monitor, sources):
    assert monitor.set_portal_active("rail-portal", True) is True

    stats = monitor.scan_now()

    assert sources["rail-portal"].calls == 1
    assert stats.successful_scans == 2
    assert {row["portal_id"]: row["stored_tenders"] for row in monitor.portal_statistics()} == {
        "metro-portal": 1,
        "rail-portal": 1,
    }


def test_search_reads_stored_tenders(monitor):
    monitor.scan_now()

    assert [t.id for t in monitor.search_tenders("viaduct")] == ["T1"]
    assert monitor.search_tenders("stationery") == []
