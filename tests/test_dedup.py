import pytest

from conftest import make_tender, portal_entry
from database.db import PersistenceFailure
from monitor.dedup import DeduplicationStore
from monitor.portals import PortalRegistry


@pytest.fixture
def store(db):
    PortalRegistry(db, [portal_entry("metro-portal"), portal_entry("rail-portal")]).seed()
    return DeduplicationStore(db)


def test_new_candidates_are_stored_in_order(db, store):
    new = store.filter_new(
        [make_tender("A", "Metro A"), make_tender("B", "Metro B")],
        "metro-portal",
    )

    assert [t.id for t in new] == ["A", "B"]
    assert all(t.added_date is not None for t in new)
    assert db.get_tender_ids("metro-portal") == {"A", "B"}


def test_repeated_id_in_one_batch_is_stored_once(db, store):
    new = store.filter_new(
        [make_tender("A", "Metro A"), make_tender("A", "Metro A again")],
        "metro-portal",
    )

    assert [t.title for t in new] == ["Metro A"]
    assert db.get_tender_count("metro-portal") == 1


def test_known_ids_are_not_new(store):
    store.filter_new([make_tender("A", "Metro A")], "metro-portal")

    new = store.filter_new(
        [make_tender("A", "Metro A"), make_tender("C", "Metro C")],
        "metro-portal",
    )

    assert [t.id for t in new] == ["C"]


def test_same_id_on_another_portal_is_new(db, store):
    store.filter_new([make_tender("A", "Metro A")], "metro-portal")

    new = store.filter_new([make_tender("A", "Rail A", portal_id="rail-portal")], "rail-portal")

    assert [t.id for t in new] == ["A"]
    assert db.get_tender_count() == 2


def test_persistence_failure_drops_only_that_record(db, store, monkeypatch):
    original_insert = db.insert_tender

    def flaky_insert(tender):
        if tender.id == "B":
            raise PersistenceFailure("metro-portal/B", "disk I/O error")
        return original_insert(tender)

    monkeypatch.setattr(db, "insert_tender", flaky_insert)

    new = store.filter_new(
        [make_tender("A", "Metro A"), make_tender("B", "Metro B"), make_tender("C", "Metro C")],
        "metro-portal",
    )

    assert [t.id for t in new] == ["A", "C"]
    assert db.get_tender_ids("metro-portal") == {"A", "C"}


def test_record_stored_by_another_writer_is_not_new(db, store, monkeypatch):
    # Another writer stores "A" between loading the known ids and inserting
    monkeypatch.setattr(db, "get_tender_ids", lambda portal_id: set())
    db.insert_tender(make_tender("A", "Metro A"))

    new = store.filter_new([make_tender("A", "Metro A")], "metro-portal")

    assert new == []
    assert db.get_tender_count("metro-portal") == 1
