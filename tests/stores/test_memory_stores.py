"""Tests for the in-memory record store and audit sink."""

from datetime import datetime, timezone

from recon_kernel.domain.audit import AuditEntry
from recon_kernel.stores.memory import InMemoryAuditSink, InMemoryRecordStore


def _entry(entity_id: str, to_status: str) -> AuditEntry:
    return AuditEntry.create(
        entity_type="PAIR",
        entity_id=entity_id,
        from_status=None,
        to_status=to_status,
        triggered_by="matcher",
        reason="",
        occurred_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class TestInMemoryRecordStore:

    def test_load_missing_returns_none(self):
        assert InMemoryRecordStore().load("trx_pair", "p-1") is None

    def test_load_returns_a_copy(self):
        store = InMemoryRecordStore()
        store.put("trx_pair", {"id": "p-1", "status": "pending_review", "tags": ["a"]})
        loaded = store.load("trx_pair", "p-1")
        loaded["status"] = "confirmed"
        loaded["tags"].append("b")
        assert store.load("trx_pair", "p-1") == {
            "id": "p-1", "status": "pending_review", "tags": ["a"],
        }

    def test_save_applies_when_status_matches(self):
        store = InMemoryRecordStore()
        store.put("trx_pair", {"id": "p-1", "status": "pending_review"})
        assert store.save(
            "trx_pair", {"id": "p-1", "status": "confirmed"}, expected_status="pending_review",
        )
        assert store.load("trx_pair", "p-1")["status"] == "confirmed"
        assert store.writes == [("trx_pair", {"id": "p-1", "status": "confirmed"})]

    def test_save_refused_when_status_differs(self):
        store = InMemoryRecordStore()
        store.put("trx_pair", {"id": "p-1", "status": "confirmed"})
        assert not store.save(
            "trx_pair", {"id": "p-1", "status": "rejected"}, expected_status="pending_review",
        )
        assert store.load("trx_pair", "p-1")["status"] == "confirmed"
        assert store.writes == []

    def test_save_expected_none_matches_absent_or_empty_status(self):
        store = InMemoryRecordStore()
        store.put("trx_pair", {"id": "p-1"})
        store.put("trx_pair", {"id": "p-2", "status": ""})
        assert store.save("trx_pair", {"id": "p-1", "status": "auto_accepted"}, expected_status=None)
        assert store.save("trx_pair", {"id": "p-2", "status": "auto_accepted"}, expected_status=None)

    def test_save_never_creates_records(self):
        store = InMemoryRecordStore()
        assert not store.save("trx_pair", {"id": "p-1", "status": "auto_accepted"}, expected_status=None)
        assert store.load("trx_pair", "p-1") is None

    def test_custom_field_names(self):
        store = InMemoryRecordStore(id_field="ref", status_field="state")
        store.put("exception_queue", {"ref": "e-1", "state": "open"})
        assert store.save(
            "exception_queue", {"ref": "e-1", "state": "dismissed"}, expected_status="open",
        )
        assert store.load("exception_queue", "e-1") == {"ref": "e-1", "state": "dismissed"}


class TestInMemoryAuditSink:

    def test_append_and_read_in_order(self):
        sink = InMemoryAuditSink()
        first, second = _entry("p-1", "pending_review"), _entry("p-1", "confirmed")
        sink.append("audit_log", first)
        sink.append("audit_log", second)
        assert sink.entries("audit_log") == (first, second)

    def test_entries_for_filters_by_record(self):
        sink = InMemoryAuditSink()
        sink.append("audit_log", _entry("p-1", "pending_review"))
        sink.append("audit_log", _entry("p-2", "auto_accepted"))
        assert [e.entity_id for e in sink.entries_for("PAIR", "p-2")] == ["p-2"]

    def test_entries_across_collections(self):
        sink = InMemoryAuditSink()
        sink.append("audit_log", _entry("p-1", "pending_review"))
        sink.append("status_history", _entry("p-2", "auto_accepted"))
        assert len(sink.entries()) == 2
        assert len(sink.entries("status_history")) == 1
