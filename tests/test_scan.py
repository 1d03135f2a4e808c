import sqlite3
import threading

from conftest import FailingSource, StubSource, make_tender, portal_entry
from database.models import NOTIFICATION_NEW_TENDER, NOTIFICATION_SCAN_SUMMARY
from monitor.scan import filter_by_keywords
from notifications.broadcaster import EVENT_NEW_NOTIFICATION, EVENT_NEW_TENDER
from sources.base import TenderSource
from utils.keywords import KeywordMatcher

METRO_PLATFORM = make_tender("T1", "Metro Station Platform", description="Platform works")
STATIONERY = make_tender("T2", "Office Stationery Supply", description="Paper and pens")
SIGNALLING = make_tender("T3", "Railway Signalling Upgrade")


def test_scan_persists_only_relevant_tender_and_notifies(db, build_scanner, recorder):
    scanner = build_scanner(
        [portal_entry("metro-portal")],
        {"metro-portal": StubSource([METRO_PLATFORM, STATIONERY])},
    )

    stats = scanner.perform_scan()

    stored = db.get_tenders()
    assert [t.id for t in stored] == ["T1"]
    assert stored[0].matched_keyword == "metro"

    new_tender = db.get_notifications(notification_type=NOTIFICATION_NEW_TENDER)
    assert len(new_tender) == 1
    assert new_tender[0].data["tenderId"] == "T1"
    assert new_tender[0].data["portalId"] == "metro-portal"
    assert new_tender[0].channels == ["dashboard", "email"]

    summary = db.get_notifications(notification_type=NOTIFICATION_SCAN_SUMMARY)
    assert len(summary) == 1
    assert summary[0].data["totalNewTenders"] == 1
    assert summary[0].data["successfulScans"] == 1
    assert summary[0].data["failedScans"] == 0

    assert stats.total_new_tenders == 1
    assert [p["id"] for p in recorder.of_type(EVENT_NEW_TENDER)] == ["T1"]
    assert len(recorder.of_type(EVENT_NEW_NOTIFICATION)) == 2


def test_repeated_scan_does_not_duplicate_tenders(db, build_scanner):
    scanner = build_scanner(
        [portal_entry("metro-portal")],
        {"metro-portal": StubSource([METRO_PLATFORM])},
    )

    scanner.perform_scan()
    second = scanner.perform_scan()

    assert db.get_tender_count("metro-portal") == 1
    assert second.total_new_tenders == 0
    assert len(db.get_notifications(notification_type=NOTIFICATION_NEW_TENDER)) == 1


def test_rescan_with_partial_overlap_only_reports_new_tender(db, build_scanner, recorder):
    source = StubSource([METRO_PLATFORM], [METRO_PLATFORM, SIGNALLING])
    scanner = build_scanner([portal_entry("metro-portal")], {"metro-portal": source})

    scanner.perform_scan()
    stats = scanner.perform_scan()

    assert stats.total_new_tenders == 1
    assert sorted(t.id for t in db.get_tenders()) == ["T1", "T3"]
    assert [p["id"] for p in recorder.of_type(EVENT_NEW_TENDER)] == ["T1", "T3"]

    portal = db.get_portal("metro-portal")
    assert portal.total_tenders == 2
    assert portal.new_tenders == 1
    assert portal.last_scanned is not None


def test_failed_portal_does_not_block_others(db, build_scanner):
    broken = FailingSource()
    scanner = build_scanner(
        [portal_entry("broken-portal"), portal_entry("metro-portal")],
        {
            "broken-portal": broken,
            "metro-portal": StubSource([METRO_PLATFORM]),
        },
    )

    stats = scanner.perform_scan()

    assert broken.calls == 1
    assert stats.failed_scans == 1
    assert stats.successful_scans == 1
    assert [t.id for t in db.get_tenders()] == ["T1"]

    failed = [r for r in stats.portal_results if not r.success]
    assert failed[0].portal_id == "broken-portal"
    assert "portal unreachable" in failed[0].error

    summary = db.get_notifications(notification_type=NOTIFICATION_SCAN_SUMMARY)
    assert summary[0].data["failedScans"] == 1
    assert summary[0].data["successfulScans"] == 1


def test_no_summary_when_nothing_new(db, build_scanner):
    scanner = build_scanner(
        [portal_entry("metro-portal")],
        {"metro-portal": StubSource([STATIONERY])},
    )

    stats = scanner.perform_scan()

    assert stats.total_new_tenders == 0
    assert db.get_notifications() == []


def test_inactive_portals_are_skipped(db, build_scanner):
    dormant = StubSource([METRO_PLATFORM])
    scanner = build_scanner(
        [portal_entry("metro-portal", active=False)],
        {"metro-portal": dormant},
    )

    stats = scanner.perform_scan()

    assert dormant.calls == 0
    assert stats.successful_scans == 0
    assert stats.failed_scans == 0


def test_slow_portal_counts_as_failure(db, build_scanner):
    release = threading.Event()

    class HangingSource(TenderSource):
        SOURCE_NAME = "hanging"

        def fetch(self, portal):
            release.wait(5)
            return []

    scanner = build_scanner(
        [portal_entry("slow-portal"), portal_entry("metro-portal")],
        {
            "slow-portal": HangingSource({}),
            "metro-portal": StubSource([METRO_PLATFORM]),
        },
        fetch_timeout=0.2,
    )

    try:
        stats = scanner.perform_scan()
    finally:
        release.set()

    results = {r.portal_id: r for r in stats.portal_results}
    assert results["slow-portal"].success is False
    assert "No answer" in results["slow-portal"].error
    assert results["metro-portal"].records_new == 1


def test_priority_is_scored_before_storage(db, build_scanner):
    valuable = make_tender("T9", "Metro Depot Construction", value=12_000_000.0)
    scanner = build_scanner(
        [portal_entry("metro-portal")],
        {"metro-portal": StubSource([valuable])},
    )

    scanner.perform_scan()

    assert db.get_tenders()[0].priority == "urgent"
    assert db.get_notifications(notification_type=NOTIFICATION_NEW_TENDER)[0].priority == "urgent"


def test_filter_by_keywords_searches_keyword_list():
    matcher = KeywordMatcher(keywords=["railway"])
    tagged = make_tender("T4", "Track Renewal", keywords=["Railway", "track"])
    untagged = make_tender("T5", "Track Renewal", keywords=["track"])

    assert filter_by_keywords([tagged, untagged], matcher) == [tagged]
    assert tagged.matched_keyword == "railway"


def test_stored_tender_is_notified_when_counter_update_fails(db, build_scanner, recorder, monkeypatch):
    scanner = build_scanner(
        [portal_entry("metro-portal")],
        {"metro-portal": StubSource([METRO_PLATFORM])},
    )

    def locked(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(db, "update_portal_scan", locked)
    stats = scanner.perform_scan()

    assert stats.successful_scans == 1
    assert stats.failed_scans == 0
    assert stats.total_new_tenders == 1
    new_tender = db.get_notifications(notification_type=NOTIFICATION_NEW_TENDER)
    assert [n.data["tenderId"] for n in new_tender] == ["T1"]

    monkeypatch.undo()
    second = scanner.perform_scan()

    assert second.total_new_tenders == 0
    assert len(db.get_notifications(notification_type=NOTIFICATION_NEW_TENDER)) == 1
    assert [p["id"] for p in recorder.of_type(EVENT_NEW_TENDER)] == ["T1"]
    assert db.get_portal("metro-portal").last_scanned is not None


def test_failed_notification_does_not_skip_remaining_tenders(db, build_scanner, monkeypatch):
    scanner = build_scanner(
        [portal_entry("metro-portal")],
        {"metro-portal": StubSource([METRO_PLATFORM, SIGNALLING])},
    )
    emit = scanner.emitter.emit_new_tender

    def flaky(tender, portal):
        if tender.id == "T1":
            raise ValueError("Single '}' encountered in format string")
        return emit(tender, portal)

    monkeypatch.setattr(scanner.emitter, "emit_new_tender", flaky)
    stats = scanner.perform_scan()

    assert stats.successful_scans == 1
    assert stats.total_new_tenders == 2
    assert sorted(t.id for t in db.get_tenders()) == ["T1", "T3"]
    new_tender = db.get_notifications(notification_type=NOTIFICATION_NEW_TENDER)
    assert [n.data["tenderId"] for n in new_tender] == ["T3"]


def test_queued_portal_is_reported_as_not_started(db, build_scanner):
    release = threading.Event()
    queued = StubSource([METRO_PLATFORM])

    class HangingSource(TenderSource):
        SOURCE_NAME = "hanging"

        def fetch(self, portal):
            release.wait(5)
            return []

    scanner = build_scanner(
        [
            portal_entry("slow-portal", name="A Slow Portal"),
            portal_entry("metro-portal", name="B Metro Portal"),
        ],
        {
            "slow-portal": HangingSource({}),
            "metro-portal": queued,
        },
        fetch_timeout=0.2,
        max_workers=1,
    )

    try:
        stats = scanner.perform_scan()
    finally:
        release.set()

    results = {r.portal_id: r for r in stats.portal_results}
    assert "No answer" in results["slow-portal"].error
    assert results["metro-portal"].success is False
    assert "Not started" in results["metro-portal"].error
    assert queued.calls == 0
