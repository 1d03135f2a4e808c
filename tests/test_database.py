import sqlite3
from datetime import datetime, timedelta

import pytest

from conftest import make_tender, portal_entry
from database.db import PersistenceFailure
from database.models import NOTIFICATION_SCAN_SUMMARY, Notification, Portal
from database.queries import TenderQueries
from monitor.portals import PortalRegistry


def test_seeding_is_idempotent(db):
    registry = PortalRegistry(db, [portal_entry("metro-portal"), portal_entry("rail-portal")])

    assert registry.seed() == 2
    assert registry.seed() == 0
    assert [p.id for p in registry.list_portals()] == ["metro-portal", "rail-portal"]


def test_seeding_keeps_existing_portal_state(db):
    registry = PortalRegistry(db, [portal_entry("metro-portal")])
    registry.seed()
    registry.set_active("metro-portal", False)
    registry.record_scan("metro-portal", datetime(2026, 10, 19, 8, 0), 5, 2)

    registry.seed()

    portal = registry.get_portal("metro-portal")
    assert portal.active is False
    assert portal.total_tenders == 5
    assert portal.last_scanned == datetime(2026, 10, 19, 8, 0)


def test_toggling_unknown_portal_reports_false(db):
    assert PortalRegistry(db).set_active("nowhere", True) is False


def test_duplicate_tender_insert_is_ignored(db):
    tender = make_tender("T1", "Metro Station Platform", keywords=["metro"])

    assert db.insert_tender(tender) is True
    assert db.insert_tender(tender) is False

    stored = db.get_tenders()
    assert len(stored) == 1
    assert stored[0].keywords == ["metro"]


def test_notification_round_trip(db):
    notification = Notification(
        type=NOTIFICATION_SCAN_SUMMARY,
        title="Portal Scan Complete",
        message="Found 1 new tender(s) across 1 portal(s)",
        category="system",
        data={"totalNewTenders": 1, "scanTime": datetime(2026, 10, 19, 9, 0)},
    )

    row_id = db.insert_notification(notification)

    stored = db.get_notifications(unread_only=True)[0]
    assert stored.id == row_id
    assert stored.read is False
    assert stored.channels == ["dashboard"]
    assert stored.data == {"totalNewTenders": 1, "scanTime": "2026-10-19T09:00:00"}


def test_portal_from_dict_accepts_camel_case_endpoint():
    portal = Portal.from_dict({"id": "gem-portal", "url": "https://gem.gov.in", "searchEndpoint": "/api/tenders"})

    assert portal.name == "gem-portal"
    assert portal.search_endpoint == "/api/tenders"


def test_queries_search_and_deadlines(db):
    PortalRegistry(db, [portal_entry("metro-portal"), portal_entry("rail-portal")]).seed()
    now = datetime.now()
    db.insert_tender(make_tender("A", "Metro Depot", organization="KMRL", submission_deadline=now + timedelta(days=3)))
    db.insert_tender(make_tender("B", "Track Renewal", organization="Southern Railway", submission_deadline=now + timedelta(days=30)))
    db.insert_tender(make_tender("C", "Office Supplies", organization="KMRL", submission_deadline=now - timedelta(days=1)))

    queries = TenderQueries(db)

    assert sorted(t.id for t in queries.search_tenders("kmrl")) == ["A", "C"]
    assert [t.id for t in queries.search_tenders("renewal")] == ["B"]
    assert [t.id for t in queries.get_upcoming_deadlines(days=7)] == ["A"]

    stats = {row["portal_id"]: row["stored_tenders"] for row in queries.get_portal_statistics()}
    assert stats == {"metro-portal": 3, "rail-portal": 0}

    assert queries.get_unread_notification_count() == 0


def test_upcoming_deadlines_respects_limit(db):
    PortalRegistry(db, [portal_entry("metro-portal")]).seed()
    now = datetime.now()
    for day in (5, 2, 4, 1):
        db.insert_tender(make_tender(f"D{day}", "Metro Viaduct Works", submission_deadline=now + timedelta(days=day)))

    queries = TenderQueries(db)

    assert [t.id for t in queries.get_upcoming_deadlines(days=7, limit=2)] == ["D1", "D2"]
    assert len(queries.get_upcoming_deadlines(days=7)) == 4


def test_failed_portal_scan_update_raises_persistence_failure(db):
    PortalRegistry(db, [portal_entry("metro-portal")]).seed()
    db.connect().execute("DROP TABLE portals")

    with pytest.raises(PersistenceFailure) as exc_info:
        db.update_portal_scan("metro-portal", datetime(2026, 10, 19, 9, 0), 3, 1)

    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
