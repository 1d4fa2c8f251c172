"""Tests for the SQLite document store."""

import pytest

from common.types import DocumentHandle, GeoPoint, Timestamp
from replicator.document_store import SqliteDocumentStore
from replicator.exceptions import StoreUnavailableError
from tests.factories import LOCAL_REGION, PREFIX


class TestReadWrite:
    """Test plain reads and writes."""

    def test_missing_document(self, store):
        assert store.get("orders/1") is None

    def test_values_survive_storage(self, store):
        record = {
            "null": None,
            "flag": True,
            "count": 7,
            "ratio": 0.5,
            "name": "widget",
            "blob": b"\x00\x01",
            "at": Timestamp(1700000000, 12),
            "where": GeoPoint(1.5, -2.25),
            "owner": store.new_reference("customers/7"),
            "tags": ["a", 1, [True]],
            "nested": {"inner": {"deep": Timestamp(5, 6)}},
        }

        store.put("orders/1", record)

        assert store.get("orders/1") == record

    def test_put_replaces(self, store):
        store.put("orders/1", {"a": 1, "b": 2})
        store.put("orders/1", {"a": 3})

        assert store.get("orders/1") == {"a": 3}

    def test_list_paths(self, store):
        store.put("orders/2", {})
        store.put("orders/1", {})

        assert store.list_paths() == ["orders/1", "orders/2"]

    def test_unsupported_value_rejected(self, store):
        with pytest.raises(TypeError):
            store.put("orders/1", {"bad": object()})

        assert store.get("orders/1") is None


class TestConditionalOperations:
    """Test predicate-guarded writes."""

    def test_conditional_write_applies_when_predicate_holds(self, store):
        seen = []

        def predicate(existing):
            seen.append(existing)
            return True

        assert store.conditional_write("orders/1", {"a": 1}, predicate) is True
        assert seen == [None]
        assert store.get("orders/1") == {"a": 1}

    def test_conditional_write_skipped_when_predicate_fails(self, store):
        store.put("orders/1", {"a": 1})

        assert store.conditional_write("orders/1", {"a": 2}, lambda existing: False) is False
        assert store.get("orders/1") == {"a": 1}

    def test_flag_update_merges_fields(self, store):
        store.put("orders/1", {"a": 1, "b": 2})

        updated = store.conditional_flag_update("orders/1", {"b": 3, "c": 4}, lambda e: e is not None)

        assert updated is True
        assert store.get("orders/1") == {"a": 1, "b": 3, "c": 4}

    def test_flag_update_skipped(self, store):
        updated = store.conditional_flag_update("orders/1", {"c": 4}, lambda e: e is not None)

        assert updated is False
        assert store.get("orders/1") is None

    def test_predicate_error_rolls_back(self, store):
        store.put("orders/1", {"a": 1})

        def predicate(existing):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            store.conditional_write("orders/1", {"a": 2}, predicate)

        assert store.get("orders/1") == {"a": 1}
        store.put("orders/1", {"a": 5})
        assert store.get("orders/1") == {"a": 5}


class TestDelete:
    """Test hard deletes."""

    def test_delete_existing(self, store):
        store.put("orders/1", {"a": 1})

        assert store.delete("orders/1") is True
        assert store.get("orders/1") is None

    def test_delete_missing(self, store):
        assert store.delete("orders/1") is False


class TestReferences:
    """Test document handles."""

    def test_new_reference_uses_local_region(self, store):
        handle = store.new_reference("customers/7")

        assert handle == DocumentHandle(
            path="customers/7",
            resource_id=f"{PREFIX}/regions/{LOCAL_REGION}/documents/customers/7"
        )

    def test_now_is_timestamp(self, store):
        assert isinstance(store.now(), Timestamp)


class TestAvailability:
    """Test connectivity failures."""

    def test_ping(self, store):
        store.ping()

    def test_unopenable_database(self, tmp_path):
        with pytest.raises(StoreUnavailableError):
            SqliteDocumentStore(str(tmp_path), region=LOCAL_REGION)
