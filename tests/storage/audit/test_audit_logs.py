"""Tests for the append-only audit log implementations."""

import pytest
from sqlalchemy import create_engine

from journal_memory.models import AuditEntry
from journal_memory.storage import InMemoryAuditLog, SQLAlchemyAuditLog


@pytest.fixture(params=["memory", "sqlalchemy"])
def log(request):
    if request.param == "memory":
        return InMemoryAuditLog()

    engine = create_engine("sqlite:///:memory:")
    sql_log = SQLAlchemyAuditLog(engine)
    sql_log.create_tables()
    return sql_log


def _entry(operation="ADD", owner_id="user_1", **fields):
    return AuditEntry(
        owner_id=owner_id,
        operation=operation,
        candidate_content=fields.pop("candidate_content", "Sarah is my co-founder"),
        **fields,
    )


def test_append_and_list_in_order(log):
    ids = [log.append(_entry(op)) for op in ("ADD", "UPDATE", "NOOP", "DELETE")]

    entries = log.list_entries("user_1")

    assert [e.id for e in entries] == ids
    assert [e.operation for e in entries] == ["ADD", "UPDATE", "NOOP", "DELETE"]


def test_entry_fields_survive_storage(log):
    entry = _entry(
        "DELETE",
        affected_record_id="rec_1",
        source_note_id="note_9",
        decision_rationale="User asked to forget",
        similar_record_ids=["rec_1", "rec_2"],
        hard_delete=True,
        deleted_snapshot={"id": "rec_1", "content": "Sarah is my co-founder"},
        old_version=3,
        note="explicit request",
    )
    log.append(entry)

    stored = log.list_entries("user_1")[0]

    assert stored.affected_record_id == "rec_1"
    assert stored.similar_record_ids == ["rec_1", "rec_2"]
    assert stored.hard_delete is True
    assert stored.deleted_snapshot["content"] == "Sarah is my co-founder"
    assert stored.old_version == 3
    assert stored.note == "explicit request"


def test_consolidate_entry(log):
    log.append(_entry("CONSOLIDATE", merged_record_ids=["rec_2"], merge_strategy=None))
    assert log.list_entries("user_1")[0].merged_record_ids == ["rec_2"]


def test_filter_by_owner_and_note(log):
    log.append(_entry(source_note_id="n1"))
    log.append(_entry(source_note_id="n2"))
    log.append(_entry(owner_id="user_2", source_note_id="n1"))

    assert len(log.list_entries("user_1")) == 2
    assert len(log.list_entries("user_1", source_note_id="n1")) == 1
    assert log.list_entries("user_3") == []


def test_limit(log):
    for _ in range(5):
        log.append(_entry())
    assert len(log.list_entries("user_1", limit=3)) == 3


def test_count(log):
    log.append(_entry("ADD"))
    log.append(_entry("ADD"))
    log.append(_entry("NOOP"))
    log.append(_entry("ADD", owner_id="user_2"))

    assert log.count("user_1") == 3
    assert log.count("user_1", operation="ADD") == 2
    assert log.count("user_1", operation="ERROR") == 0
