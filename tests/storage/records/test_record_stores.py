"""
Tests for memory record storage.

Every test runs against both the in-memory store and the SQLAlchemy store
(in-memory SQLite), since both must honor the same versioning contract.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine

from journal_memory.errors import RecordNotFound, WriteConflict
from journal_memory.storage import InMemoryRecordStore, SQLAlchemyRecordStore


@pytest.fixture(params=["memory", "sqlalchemy"])
def store(request):
    if request.param == "memory":
        return InMemoryRecordStore()

    engine = create_engine("sqlite:///:memory:")
    sql_store = SQLAlchemyRecordStore(engine)
    sql_store.create_tables()
    return sql_store


def test_add_and_get(store, make_record):
    record = make_record(recurrence_pattern={"type": "weekly", "day": "monday", "time": "09:00"})
    record_id = store.add(record)

    fetched = store.get_by_id(record_id)

    assert fetched is not None
    assert fetched.content == "Sarah is my co-founder"
    assert fetched.entity_type == "person"
    assert fetched.embedding == [1.0, 0.0, 0.0]
    assert fetched.recurrence_pattern.day == "monday"
    assert fetched.version == 1
    assert fetched.status == "active"


def test_get_missing_record(store):
    assert store.get_by_id("nope") is None


def test_update_with_matching_version(store, make_record):
    record = make_record()
    store.add(record)

    updated = record.model_copy(update={"content": "Sarah left the company", "version": 2})
    store.update(updated, expected_version=1)

    fetched = store.get_by_id(record.id)
    assert fetched.content == "Sarah left the company"
    assert fetched.version == 2


def test_update_with_stale_version_conflicts(store, make_record):
    """Two writers read v1; the second write must not overwrite the first."""
    record = make_record()
    store.add(record)

    store.update(record.model_copy(update={"content": "first", "version": 2}), expected_version=1)

    with pytest.raises(WriteConflict) as exc_info:
        store.update(record.model_copy(update={"content": "second", "version": 2}), expected_version=1)

    assert exc_info.value.actual_version == 2
    assert store.get_by_id(record.id).content == "first"


def test_update_missing_record(store, make_record):
    with pytest.raises(RecordNotFound):
        store.update(make_record(), expected_version=1)


def test_archive_keeps_record_retrievable(store, make_record):
    record = make_record()
    store.add(record)

    archived = store.archive(record.id, expected_version=1)

    assert archived.status == "archived"
    assert archived.archived_at is not None
    assert archived.version == 1
    assert store.get_by_id(record.id).content == record.content


def test_archive_with_stale_version_conflicts(store, make_record):
    record = make_record()
    store.add(record)
    store.update(record.model_copy(update={"version": 2}), expected_version=1)

    with pytest.raises(WriteConflict):
        store.archive(record.id, expected_version=1)


def test_archive_missing_record(store):
    with pytest.raises(RecordNotFound):
        store.archive("nope")


def test_conditional_write_on_retired_record_conflicts(store, make_record):
    """Archiving does not bump the version, so status is part of the check."""
    record = make_record()
    store.add(record)
    store.archive(record.id)

    with pytest.raises(WriteConflict):
        store.update(record.model_copy(update={"version": 2}), expected_version=1)


def test_supersede_retires_and_links(store, make_record):
    old = make_record()
    store.add(old)
    successor = make_record(
        "Sarah left the company", version=2, supersedes_id=old.id, embedding=[0.9, 0.1, 0.0]
    )

    store.supersede(old.id, expected_version=1, successor=successor)

    retired = store.get_by_id(old.id)
    assert retired.status == "superseded"
    assert retired.is_historical is True
    assert retired.superseded_by_id == successor.id
    assert retired.content == "Sarah is my co-founder"

    new = store.get_by_id(successor.id)
    assert new.is_active
    assert new.supersedes_id == old.id


def test_supersede_conflict_leaves_no_successor(store, make_record):
    old = make_record()
    store.add(old)
    store.update(old.model_copy(update={"version": 2}), expected_version=1)
    successor = make_record("Sarah left the company", version=2, supersedes_id=old.id)

    with pytest.raises(WriteConflict):
        store.supersede(old.id, expected_version=1, successor=successor)

    assert store.get_by_id(successor.id) is None
    assert store.get_by_id(old.id).is_active


def test_merge_rewrites_keeper_and_archives_merged(store, make_record):
    keeper = make_record()
    merged = make_record("Sarah is my cofounder")
    store.add(keeper)
    store.add(merged)

    store.merge(
        keeper.model_copy(update={"content": "Sarah is my co-founder. Sarah is my cofounder", "version": 2}),
        expected_keeper_version=1,
        merged_id=merged.id,
        expected_merged_version=1,
    )

    kept = store.get_by_id(keeper.id)
    assert kept.version == 2
    assert kept.content == "Sarah is my co-founder. Sarah is my cofounder"
    gone = store.get_by_id(merged.id)
    assert gone.status == "archived"
    assert gone.archived_at is not None
    assert gone.superseded_by_id == keeper.id
    assert gone.content == "Sarah is my cofounder"


def test_merge_conflict_on_merged_record_writes_nothing(store, make_record):
    keeper = make_record()
    merged = make_record("Sarah is my cofounder")
    store.add(keeper)
    store.add(merged)
    store.update(merged.model_copy(update={"version": 2}), expected_version=1)

    with pytest.raises(WriteConflict):
        store.merge(
            keeper.model_copy(update={"content": "merged", "version": 2}),
            expected_keeper_version=1,
            merged_id=merged.id,
            expected_merged_version=1,
        )

    kept = store.get_by_id(keeper.id)
    assert kept.version == 1
    assert kept.content == "Sarah is my co-founder"
    assert store.get_by_id(merged.id).is_active


def test_merge_missing_record(store, make_record):
    keeper = make_record()
    store.add(keeper)

    with pytest.raises(RecordNotFound):
        store.merge(
            keeper.model_copy(update={"version": 2}),
            expected_keeper_version=1,
            merged_id="rec_missing",
            expected_merged_version=1,
        )

    assert store.get_by_id(keeper.id).version == 1


def test_delete(store, make_record):
    record = make_record()
    store.add(record)

    assert store.delete(record.id) is True
    assert store.get_by_id(record.id) is None
    assert store.delete(record.id) is False


def test_find_similar_ranks_and_filters(store, make_record):
    close = make_record("Sarah is my co-founder", embedding=[1.0, 0.0, 0.0])
    nearby = make_record("Sarah likes climbing", embedding=[0.8, 0.6, 0.0])
    far = make_record("The office is in Berlin", name="Office", embedding=[0.0, 0.0, 1.0])
    other_owner = make_record(owner_id="user_2", embedding=[1.0, 0.0, 0.0])
    for record in (close, nearby, far, other_owner):
        store.add(record)

    results = store.find_similar("user_1", [1.0, 0.0, 0.0], threshold=0.5)

    assert [r.id for r, _ in results] == [close.id, nearby.id]
    assert results[0][1] == pytest.approx(1.0)
    assert results[1][1] == pytest.approx(0.8)


def test_find_similar_excludes_retired_and_expired(store, make_record):
    archived = make_record("archived")
    expired = make_record("expired", expires_at=datetime.now() - timedelta(days=1))
    live = make_record("live")
    for record in (archived, expired, live):
        store.add(record)
    store.archive(archived.id)

    results = store.find_similar("user_1", [1.0, 0.0, 0.0])
    assert [r.id for r, _ in results] == [live.id]

    with_archived = store.find_similar("user_1", [1.0, 0.0, 0.0], include_archived=True)
    assert {r.id for r, _ in with_archived} == {live.id, archived.id}


def test_find_similar_without_embedding(store, make_record):
    store.add(make_record())
    assert store.find_similar("user_1", None) == []


def test_find_similar_limit(store, make_record):
    for i in range(4):
        store.add(make_record(f"fact {i}"))
    assert len(store.find_similar("user_1", [1.0, 0.0, 0.0], limit=2)) == 2


def test_find_active_by_name(store, make_record):
    active = make_record(name="Sarah")
    retired = make_record(name="sarah")
    fact = make_record(name="SARAH ", memory_type="fact")
    for record in (active, retired, fact):
        store.add(record)
    store.archive(retired.id)

    assert {r.id for r in store.find_active_by_name("user_1", " sarah")} == {active.id, fact.id}
    assert [r.id for r in store.find_active_by_name("user_1", "Sarah", "entity")] == [active.id]
    assert store.find_active_by_name("user_2", "Sarah") == []


def test_list_records_by_status(store, make_record):
    first = make_record("first", created_at=datetime(2024, 1, 1))
    second = make_record("second", created_at=datetime(2024, 2, 1))
    store.add(second)
    store.add(first)
    store.archive(second.id)

    assert [r.id for r in store.list_records("user_1")] == [first.id, second.id]
    assert [r.id for r in store.list_records("user_1", status="archived")] == [second.id]


def test_get_chain_newest_first(store, make_record):
    v1 = make_record("v1")
    store.add(v1)
    v2 = make_record("v2", version=2, supersedes_id=v1.id)
    store.supersede(v1.id, 1, v2)
    v3 = make_record("v3", version=3, supersedes_id=v2.id)
    store.supersede(v2.id, 2, v3)

    chain = store.get_chain(v3.id)

    assert [r.id for r in chain] == [v3.id, v2.id, v1.id]
    assert chain[-1].supersedes_id is None
    assert len(chain) == chain[0].version


def test_get_chain_stops_on_cycle(store, make_record):
    a = make_record("a", id="a", supersedes_id="b")
    b = make_record("b", id="b", supersedes_id="a")
    store.add(a)
    store.add(b)

    assert [r.id for r in store.get_chain("a")] == ["a", "b"]


def test_archive_expired(store, make_record):
    now = datetime(2024, 5, 15, 12, 0)
    past = make_record("dentist", memory_type="event", expires_at=now - timedelta(hours=1))
    future = make_record("trip", memory_type="event", expires_at=now + timedelta(days=1))
    permanent = make_record("co-founder")
    for record in (past, future, permanent):
        store.add(record)

    archived_ids = store.archive_expired("user_1", now=now)

    assert archived_ids == [past.id]
    assert store.get_by_id(past.id).status == "archived"
    assert store.get_by_id(future.id).is_active
    assert store.archive_expired("user_1", now=now) == []


def test_in_memory_store_returns_copies(make_record):
    store = InMemoryRecordStore()
    record = make_record()
    store.add(record)

    fetched = store.get_by_id(record.id)
    fetched.content = "mutated"

    assert store.get_by_id(record.id).content == "Sarah is my co-founder"
