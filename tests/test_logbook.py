# tests/test_logbook.py

"""
Tests for the main courante filter engine and entry transitions.
"""

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import NotFound, OperationNotAllowed
from core.store import InMemoryDocumentStore
from models.enums import LogPriority, LogStatus, LogTarget, QuickFilter
from models.logbook import LogEntry, LogFilter
from services.logbook import (
    LogbookRepository,
    apply_to,
    archive,
    filter_log,
    mark_read,
    new_entry,
    post_entry,
    toggle_archive,
    unarchive,
)


NOW = datetime(2026, 3, 14, 8, 30, tzinfo=timezone.utc)


def _entry(id, author="Réception", message="Note", priority=LogPriority.info, status=LogStatus.active):
    return LogEntry(
        id=id,
        author=author,
        message=message,
        priority=priority,
        status=status,
        timestamp=NOW,
    )


@pytest.fixture
def entries():
    return [
        _entry("1", "Marie", "Client chambre 12 arrive tard", LogPriority.urgent),
        _entry("2", "Paul", "Fuite robinet 204", LogPriority.important),
        _entry("3", "Marie", "Taxi réservé pour 7h", LogPriority.info),
        _entry("4", "Paul", "Ancienne consigne", LogPriority.urgent, LogStatus.archived),
    ]


# ------------------------------------------------------------
# Filter engine
# ------------------------------------------------------------
def test_archive_partition(entries):
    """Active and archived views are disjoint and cover every entry."""
    active = filter_log(entries, LogFilter())
    archived = filter_log(entries, LogFilter(show_archived=True))

    assert [e.id for e in active] == ["1", "2", "3"]
    assert [e.id for e in archived] == ["4"]
    assert {e.id for e in active} | {e.id for e in archived} == {e.id for e in entries}


def test_filter_preserves_order_and_is_a_subset(entries):
    for quick_filter in QuickFilter:
        result = filter_log(entries, LogFilter(quick_filter=quick_filter, current_user_display_name="Marie"))
        ids = [e.id for e in entries]
        positions = [ids.index(e.id) for e in result]
        assert positions == sorted(positions)


def test_search_is_case_insensitive_on_message_and_author(entries):
    assert [e.id for e in filter_log(entries, {"searchText": "ROBINET"})] == ["2"]
    assert [e.id for e in filter_log(entries, {"searchText": "marie"})] == ["1", "3"]


def test_quick_filters(entries):
    assert [e.id for e in filter_log(entries, LogFilter(quick_filter=QuickFilter.URGENT))] == ["1"]
    assert [e.id for e in filter_log(entries, LogFilter(quick_filter=QuickFilter.IMPORTANT))] == ["2"]

    mine = filter_log(
        entries,
        LogFilter(quick_filter=QuickFilter.MINE, current_user_display_name="Paul"),
    )
    assert [e.id for e in mine] == ["2"]


def test_mine_requires_exact_author_match(entries):
    mine = filter_log(
        entries,
        LogFilter(quick_filter=QuickFilter.MINE, current_user_display_name="marie"),
    )
    assert mine == []


def test_filters_combine(entries):
    result = filter_log(
        entries,
        LogFilter(show_archived=True, search_text="consigne", quick_filter=QuickFilter.URGENT),
    )
    assert [e.id for e in result] == ["4"]


# ------------------------------------------------------------
# Transitions
# ------------------------------------------------------------
def test_new_entry_defaults():
    entry = new_entry("  Appeler le plombier ", now=NOW)

    assert entry.id.startswith("log-")
    assert entry.message == "Appeler le plombier"
    assert entry.author == "Réception"
    assert entry.status == LogStatus.active
    assert entry.priority == LogPriority.info
    assert entry.target == LogTarget.all
    assert entry.read_by == []
    assert entry.timestamp == NOW


def test_new_entry_author_fallback_order():
    assert new_entry("x", author="Paul", session_display_name="Marie").author == "Paul"
    assert new_entry("x", author="  ", session_display_name="Marie").author == "Marie"


def test_new_entry_requires_message():
    with pytest.raises(OperationNotAllowed):
        new_entry("   ")


def test_post_entry_prepends(entries):
    entry = new_entry("Nouvelle consigne", now=NOW)
    posted = post_entry(entries, entry)

    assert posted[0] is entry
    assert posted[1:] == entries


def test_archive_round_trip():
    entry = _entry("1")

    archived = archive(entry)
    assert archived.status == LogStatus.archived
    assert unarchive(archived).status == LogStatus.active
    assert toggle_archive(toggle_archive(entry)).status == LogStatus.active
    # transitions never mutate
    assert entry.status == LogStatus.active


def test_mark_read_is_idempotent():
    entry = mark_read(_entry("1"), "u1")
    again = mark_read(entry, "u1")

    assert entry.read_by == ["u1"]
    assert again is entry
    assert mark_read(entry, "u2").read_by == ["u1", "u2"]


def test_apply_to_keeps_positions(entries):
    updated = apply_to(entries, "2", archive)

    assert [e.id for e in updated] == ["1", "2", "3", "4"]
    assert updated[1].status == LogStatus.archived
    assert entries[1].status == LogStatus.active


# ------------------------------------------------------------
# Repository
# ------------------------------------------------------------
def test_repository_lists_newest_first(store):
    repo = LogbookRepository(store)
    repo.save(new_entry("older", now=NOW))
    repo.save(new_entry("newer", now=NOW + timedelta(hours=1)))

    assert [e.message for e in repo.list_entries()] == ["newer", "older"]


def test_repository_transition_persists(store):
    repo = LogbookRepository(store)
    entry = repo.save(new_entry("to read", now=NOW))

    repo.transition(entry.id, lambda e: mark_read(e, "u1"))
    repo.transition(entry.id, lambda e: mark_read(e, "u1"))

    assert repo.get(entry.id).read_by == ["u1"]
    assert store.peek(repo.path(entry.id))["readBy"] == ["u1"]


def test_repository_unknown_entry(store):
    with pytest.raises(NotFound):
        LogbookRepository(store).get("log-missing")


def test_urgent_active_scenario():
    alice = _entry("a", "Alice", priority=LogPriority.urgent)
    bob = _entry("b", "Bob", priority=LogPriority.info, status=LogStatus.archived)

    result = filter_log([alice, bob], {"showArchived": False, "quickFilter": "URGENT"})

    assert result == [alice]


def test_archive_round_trip_changes_only_status():
    entry = mark_read(_entry("1", "Alice", "Check-out 8h", LogPriority.important), "u1")
    assert unarchive(archive(entry)) == entry


class SlowLogbookStore(InMemoryDocumentStore):
    """Logbook reads take a network round trip."""

    def _read_document(self, path):
        if path.startswith("logbook/"):
            time.sleep(0.05)
        return super()._read_document(path)


def _run_together(*actions):
    threads = [threading.Thread(target=action) for action in actions]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


def test_concurrent_readers_are_all_recorded():
    store = SlowLogbookStore()
    repo = LogbookRepository(store)
    entry = repo.save(new_entry("Réunion 9h", now=NOW))

    _run_together(
        lambda: repo.transition(entry.id, lambda e: mark_read(e, "u1")),
        lambda: repo.transition(entry.id, lambda e: mark_read(e, "u2")),
    )

    assert sorted(repo.get(entry.id).read_by) == ["u1", "u2"]


def test_archive_during_read_keeps_the_reader():
    store = SlowLogbookStore()
    repo = LogbookRepository(store)
    entry = repo.save(new_entry("Réunion 9h", now=NOW))

    _run_together(
        lambda: repo.transition(entry.id, lambda e: mark_read(e, "u1")),
        lambda: repo.transition(entry.id, archive),
    )

    stored = repo.get(entry.id)
    assert stored.status == LogStatus.archived
    assert stored.read_by == ["u1"]


def test_transition_writes_only_changed_fields(store):
    repo = LogbookRepository(store)
    entry = repo.save(new_entry("Réunion 9h", now=NOW))
    written = []
    original_update = store.update

    def recording_update(path, mutate):
        def recorded(current):
            fields = mutate(current)
            written.append(fields)
            return fields
        return original_update(path, recorded)

    store.update = recording_update
    repo.transition(entry.id, archive)
    repo.transition(entry.id, lambda e: mark_read(e, "u1"))
    repo.transition(entry.id, lambda e: mark_read(e, "u1"))

    assert written == [{"status": "archived"}, {"readBy": ["u1"]}, None]


def test_transition_unknown_entry(store):
    with pytest.raises(NotFound):
        LogbookRepository(store).transition("log-missing", archive)
