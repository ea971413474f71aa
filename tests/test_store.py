# tests/test_store.py

"""
Tests for the in-memory document store and its change feed.
"""

from unittest.mock import Mock

import pytest

from core.errors import NotFound, StoreUnavailable
from core.store import SERVER_TIMESTAMP, InMemoryDocumentStore, doc_path, parent_collection


def test_paths():
    assert doc_path("users", "u1", "settings", "app") == "users/u1/settings/app"
    assert parent_collection("users/u1/settings/app") == "users/u1/settings"
    assert parent_collection("users") == ""


def test_merge_write_merges_nested_fields(store):
    store.merge_write("users/u1", {"displayName": "Ana", "permissions": {"canViewSpa": True}})
    store.merge_write("users/u1", {"permissions": {"canViewFnb": True}})

    assert store.get("users/u1") == {
        "displayName": "Ana",
        "permissions": {"canViewSpa": True, "canViewFnb": True},
    }


def test_server_timestamp_is_resolved(store):
    store.merge_write("users/u1", {"createdAt": SERVER_TIMESTAMP})
    assert isinstance(store.get("users/u1")["createdAt"], str)


def test_subscribe_delivers_current_value_immediately(store):
    store.merge_write("users/u1", {"role": "staff"})
    on_change = Mock()

    store.subscribe_snapshot("users/u1", on_change, Mock())

    snapshot = on_change.call_args[0][0]
    assert snapshot.exists
    assert snapshot.id == "u1"
    assert snapshot.data == {"role": "staff"}


def test_missing_document_delivers_non_existing_snapshot(store):
    on_change = Mock()
    store.subscribe_snapshot("users/nobody", on_change, Mock())
    assert on_change.call_args[0][0].exists is False


def test_writes_and_deletes_are_delivered(store):
    seen = []
    store.subscribe_snapshot("users/u1", lambda s: seen.append(s.data), Mock())

    store.merge_write("users/u1", {"role": "staff"})
    store.delete_document("users/u1")

    assert seen == [None, {"role": "staff"}, None]


def test_query_receives_collection_changes_only(store):
    seen = []
    store.subscribe_query("users", lambda snaps: seen.append([s.id for s in snaps]), Mock())

    store.merge_write("users/u1", {"role": "staff"})
    store.merge_write("users/u1/settings/app", {"darkMode": True})  # not a direct child
    store.merge_write("users/u2", {"role": "admin"})

    assert seen == [[], ["u1"], ["u1", "u2"]]


def test_unsubscribe_stops_delivery(store):
    on_change = Mock()
    unsubscribe = store.subscribe_snapshot("users/u1", on_change, Mock())
    unsubscribe()

    store.merge_write("users/u1", {"role": "staff"})

    assert on_change.call_count == 1
    assert store.subscriber_count() == 0


def test_refresh_delivers_remote_changes_once(store):
    seen = []
    store.subscribe_snapshot("users/u1", lambda s: seen.append(s.data), Mock())

    store.put_remote("users/u1", {"role": "manager"})
    store.refresh()
    store.refresh()

    assert seen == [None, {"role": "manager"}]


def test_delivered_data_is_a_copy(store):
    store.merge_write("users/u1", {"permissions": {"canViewSpa": True}})
    seen = []
    store.subscribe_snapshot("users/u1", lambda s: seen.append(s.data), Mock())

    seen[0]["permissions"]["canViewSpa"] = False

    assert store.peek("users/u1")["permissions"]["canViewSpa"] is True


def test_read_failure_goes_to_error_channel():
    store = InMemoryDocumentStore()
    store._read_document = Mock(side_effect=ConnectionError("network down"))
    on_change, on_error = Mock(), Mock()

    store.subscribe_snapshot("users/u1", on_change, on_error)

    on_change.assert_not_called()
    error = on_error.call_args[0][0]
    assert isinstance(error, StoreUnavailable)
    assert "network down" in error.message


def test_get_wraps_backend_errors():
    store = InMemoryDocumentStore()
    store._read_document = Mock(side_effect=RuntimeError("boom"))

    with pytest.raises(StoreUnavailable):
        store.get("users/u1")


def test_ping(store):
    assert store.ping()["status"] == "ok"


def test_update_merges_fields_computed_from_latest_data(store):
    store.merge_write("logbook/l1", {"readBy": ["u1"], "status": "active"})
    seen = []
    store.subscribe_snapshot("logbook/l1", lambda s: seen.append(s.data), Mock())

    result = store.update("logbook/l1", lambda current: {"readBy": current["readBy"] + ["u2"]})

    assert result == {"readBy": ["u1", "u2"], "status": "active"}
    assert seen[-1] == result


def test_update_returning_none_writes_nothing(store):
    store.merge_write("users/u1", {"role": "staff"})
    seen = []
    store.subscribe_snapshot("users/u1", lambda s: seen.append(s.data), Mock())

    assert store.update("users/u1", lambda current: None) == {"role": "staff"}
    assert len(seen) == 1


def test_update_propagates_mutation_errors(store):
    def refuse(current):
        raise NotFound("missing")

    with pytest.raises(NotFound):
        store.update("users/ghost", refuse)

    assert store.peek("users/ghost") is None
