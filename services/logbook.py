# services/logbook.py

"""
Main courante (front-desk logbook).

The filter engine and the entry transitions are pure: they never touch
the store and never reorder entries. Entries are kept newest first by
prepending on creation.

LogbookRepository persists entries under logbook/{id}.
"""

import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from core.errors import NotFound, OperationNotAllowed
from core.store import DocumentStore, doc_path
from models.enums import LogPriority, LogStatus, LogTarget, QuickFilter
from models.logbook import LogEntry, LogFilter


LOGBOOK_COLLECTION = "logbook"
DEFAULT_AUTHOR = "Réception"


# ============================================================
# Filter engine
# ============================================================

def filter_log(entries: Iterable[LogEntry], options: Union[LogFilter, dict]) -> List[LogEntry]:
    """
    Keep the entries that pass, in order:
      1. archive partition (archived only, or everything not archived)
      2. case-insensitive substring search on message or author
      3. quick filter (ALL, URGENT, IMPORTANT, MINE = exact author match)
    Input order is preserved.
    """
    if isinstance(options, dict):
        options = LogFilter.model_validate(options)

    search = (options.search_text or "").lower()
    result = []

    for entry in entries:
        if options.show_archived:
            if entry.status != LogStatus.archived:
                continue
        elif entry.status == LogStatus.archived:
            continue

        if search and search not in entry.message.lower() and search not in entry.author.lower():
            continue

        if options.quick_filter == QuickFilter.URGENT and entry.priority != LogPriority.urgent:
            continue
        if options.quick_filter == QuickFilter.IMPORTANT and entry.priority != LogPriority.important:
            continue
        if options.quick_filter == QuickFilter.MINE and entry.author != options.current_user_display_name:
            continue

        result.append(entry)

    return result


# ============================================================
# Entry transitions
# ============================================================

def new_entry(
    message: str,
    author: Optional[str] = None,
    session_display_name: Optional[str] = None,
    priority: LogPriority = LogPriority.info,
    target: LogTarget = LogTarget.all,
    now: Optional[datetime] = None,
) -> LogEntry:
    message = (message or "").strip()
    if not message:
        raise OperationNotAllowed("A logbook entry needs a message.")

    return LogEntry(
        id=f"log-{uuid.uuid4().hex}",
        author=(author or "").strip() or session_display_name or DEFAULT_AUTHOR,
        message=message,
        priority=priority,
        target=target,
        status=LogStatus.active,
        timestamp=now or datetime.now(timezone.utc),
        read_by=[],
    )


def post_entry(entries: List[LogEntry], entry: LogEntry) -> List[LogEntry]:
    """Newest first."""
    return [entry, *entries]


def archive(entry: LogEntry) -> LogEntry:
    return entry.model_copy(update={"status": LogStatus.archived})


def unarchive(entry: LogEntry) -> LogEntry:
    return entry.model_copy(update={"status": LogStatus.active})


def toggle_archive(entry: LogEntry) -> LogEntry:
    return unarchive(entry) if entry.status == LogStatus.archived else archive(entry)


def mark_read(entry: LogEntry, reader_uid: str) -> LogEntry:
    """Idempotent: a reader is recorded at most once, and never removed."""
    if reader_uid in entry.read_by:
        return entry
    return entry.model_copy(update={"read_by": [*entry.read_by, reader_uid]})


def apply_to(entries: List[LogEntry], entry_id: str, transition) -> List[LogEntry]:
    """Apply a transition to one entry of a list, keeping positions."""
    return [transition(e) if e.id == entry_id else e for e in entries]


# ============================================================
# Persistence
# ============================================================

class LogbookRepository:

    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def path(entry_id: str) -> str:
        return doc_path(LOGBOOK_COLLECTION, entry_id)

    def list_entries(self) -> List[LogEntry]:
        entries = [
            LogEntry.model_validate({"id": snap.id, **snap.data})
            for snap in self.store.get_collection(LOGBOOK_COLLECTION)
            if snap.exists
        ]
        # Newest first, as they were prepended at creation
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries

    def get(self, entry_id: str) -> LogEntry:
        data = self.store.get(self.path(entry_id))
        if data is None:
            raise NotFound("Logbook entry not found")
        return LogEntry.model_validate({"id": entry_id, **data})

    def save(self, entry: LogEntry) -> LogEntry:
        doc = entry.to_document()
        doc.pop("id", None)
        self.store.merge_write(self.path(entry.id), doc)
        return entry

    def transition(self, entry_id: str, transition) -> LogEntry:
        """
        Apply `transition` to the latest stored entry and persist only the
        fields it changed. Runs as one store update, so concurrent readers
        and archive toggles never drop each other's changes.
        """

        def mutate(data: Optional[dict]) -> Optional[dict]:
            if data is None:
                raise NotFound("Logbook entry not found")
            current = LogEntry.model_validate({"id": entry_id, **data})
            updated = transition(current)
            if updated is current:
                return None
            return changed_fields(current, updated)

        stored = self.store.update(self.path(entry_id), mutate)
        return LogEntry.model_validate({"id": entry_id, **stored})


def changed_fields(before: LogEntry, after: LogEntry) -> dict:
    old, new = before.to_document(), after.to_document()
    return {k: v for k, v in new.items() if k != "id" and old.get(k) != v}
