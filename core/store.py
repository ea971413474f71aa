# core/store.py

"""
Keyed document store contract and the change-feed machinery shared by
every backend.

Paths are slash separated, alternating collection / document ids:
    users/{uid}
    users/{uid}/settings/app
    logbook/{entry_id}
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from threading import RLock
from typing import Callable, Dict, List, Optional, Tuple

from core.errors import StoreUnavailable, handle_store_error
from core.logging_config import get_logger
from core.utils import deep_merge, utc_now_iso

logger = get_logger("store")


class _ServerTimestamp:
    """Placeholder resolved by the store to the write time."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()

Unsubscribe = Callable[[], None]

# Receives the current data (None when missing), returns the fields to
# merge, or None to leave the document untouched
Mutation = Callable[[Optional[dict]], Optional[dict]]

MAX_WRITE_ATTEMPTS = 5


# ============================================================
# Paths
# ============================================================

def doc_path(*segments: str) -> str:
    return "/".join(str(s).strip("/") for s in segments)


def parent_collection(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


def document_id(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def resolve_timestamps(data: dict, now: str) -> dict:
    resolved = {}
    for k, v in data.items():
        if v is SERVER_TIMESTAMP:
            resolved[k] = now
        elif isinstance(v, dict):
            resolved[k] = resolve_timestamps(v, now)
        else:
            resolved[k] = v
    return resolved


# ============================================================
# Snapshots
# ============================================================

@dataclass(frozen=True)
class DocumentSnapshot:
    path: str
    data: Optional[dict] = None

    @property
    def id(self) -> str:
        return document_id(self.path)

    @property
    def exists(self) -> bool:
        return self.data is not None


# ============================================================
# Contract
# ============================================================

class DocumentStore(ABC):

    @abstractmethod
    def get(self, path: str) -> Optional[dict]:
        ...

    @abstractmethod
    def get_collection(self, collection_path: str) -> List[DocumentSnapshot]:
        ...

    @abstractmethod
    def merge_write(self, path: str, data: dict) -> None:
        ...

    @abstractmethod
    def update(self, path: str, mutate: Mutation) -> Optional[dict]:
        """
        Atomic read-modify-write: `mutate` sees the latest stored data and
        its result is merged in without losing concurrent writes.
        """

    @abstractmethod
    def delete_document(self, path: str) -> None:
        ...

    @abstractmethod
    def subscribe_snapshot(
        self,
        path: str,
        on_change: Callable[[DocumentSnapshot], None],
        on_error: Callable[[Exception], None],
    ) -> Unsubscribe:
        ...

    @abstractmethod
    def subscribe_query(
        self,
        collection_path: str,
        on_change: Callable[[List[DocumentSnapshot]], None],
        on_error: Callable[[Exception], None],
    ) -> Unsubscribe:
        ...


# ============================================================
# Change feed
# ============================================================

_UNSET = object()


@dataclass(eq=False)
class _Listener:
    target: str
    is_query: bool
    on_change: Callable
    on_error: Callable
    last: object = field(default=_UNSET)
    active: bool = True


class ChangeFeedStore(DocumentStore):
    """
    Backend-independent subscription bookkeeping.

    Subclasses implement the raw read / compare-and-write / remove
    primitives; this class turns them into merge writes and live
    subscriptions:
      • merges run read-modify-write under the lock, and a write whose
        version moved underneath it (another process) is retried
      • the current value is delivered immediately on subscribe
      • every local write/delete re-delivers to affected subscribers
      • refresh() re-reads every subscription and delivers changed values
        (writes made by other processes)
    Deliveries are serialized by one re-entrant lock so each subscriber
    sees a monotonic sequence, even when refresh() runs on a scheduler
    thread.
    """

    def __init__(self):
        self._listeners: List[_Listener] = []
        self._lock = RLock()

    # ---------------- raw primitives ----------------

    @abstractmethod
    def _read_document(self, path: str) -> Optional[dict]:
        ...

    @abstractmethod
    def _read_collection(self, collection_path: str) -> Dict[str, dict]:
        """Return {document path: data} for direct children of the collection."""

    def _read_versioned(self, path: str) -> Tuple[Optional[dict], object]:
        """Return (data, version); version is None when the document is missing."""
        data = self._read_document(path)
        return data, None

    @abstractmethod
    def _compare_and_write(self, path: str, data: dict, version: object) -> bool:
        """
        Store `data` only if the document is still at `version`
        (None: only if it still does not exist). False on conflict.
        """

    @abstractmethod
    def _remove_document(self, path: str) -> None:
        ...

    # ---------------- reads ----------------

    def get(self, path: str) -> Optional[dict]:
        try:
            return self._read_document(path)
        except Exception as e:
            raise handle_store_error(e, f"Failed to read {path}")

    def get_collection(self, collection_path: str) -> List[DocumentSnapshot]:
        try:
            docs = self._read_collection(collection_path)
        except Exception as e:
            raise handle_store_error(e, f"Failed to read {collection_path}")
        return [DocumentSnapshot(path, data) for path, data in sorted(docs.items())]

    # ---------------- writes ----------------

    def merge_write(self, path: str, data: dict) -> None:
        self.update(path, lambda current: data)

    def update(self, path: str, mutate: Mutation) -> Optional[dict]:
        with self._lock:
            for _ in range(MAX_WRITE_ATTEMPTS):
                try:
                    current, version = self._read_versioned(path)
                except Exception as e:
                    raise handle_store_error(e, f"Failed to read {path}")

                fields = mutate(copy.deepcopy(current))
                if fields is None:
                    return current

                merged = deep_merge(current or {}, resolve_timestamps(fields, utc_now_iso()))
                try:
                    written = self._compare_and_write(path, merged, version)
                except Exception as e:
                    raise handle_store_error(e, f"Failed to write {path}")

                if written:
                    self._notify(path)
                    return merged

                logger.info(f"Concurrent write on {path}, retrying")

        raise StoreUnavailable(f"Failed to write {path}: too many concurrent writes")

    def delete_document(self, path: str) -> None:
        with self._lock:
            try:
                self._remove_document(path)
            except Exception as e:
                raise handle_store_error(e, f"Failed to delete {path}")
            self._notify(path)

    # ---------------- subscriptions ----------------

    def subscribe_snapshot(self, path, on_change, on_error) -> Unsubscribe:
        return self._subscribe(_Listener(path, False, on_change, on_error))

    def subscribe_query(self, collection_path, on_change, on_error) -> Unsubscribe:
        return self._subscribe(_Listener(collection_path, True, on_change, on_error))

    def _subscribe(self, listener: _Listener) -> Unsubscribe:
        with self._lock:
            self._listeners.append(listener)
            self._deliver(listener, only_if_changed=False)

        def unsubscribe():
            with self._lock:
                listener.active = False
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def refresh(self) -> None:
        """Pull the latest value of every subscription; deliver what changed."""
        with self._lock:
            for listener in list(self._listeners):
                self._deliver(listener, only_if_changed=True)

    def ping(self) -> dict:
        try:
            self._read_document("_health/ping")
            return {"service": type(self).__name__, "status": "ok"}
        except Exception as e:
            return {"service": type(self).__name__, "status": "error", "detail": str(e)}

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _notify(self, path: str) -> None:
        collection = parent_collection(path)
        for listener in list(self._listeners):
            if listener.is_query:
                if listener.target == collection:
                    self._deliver(listener, only_if_changed=False)
            elif listener.target == path:
                self._deliver(listener, only_if_changed=False)

    def _deliver(self, listener: _Listener, only_if_changed: bool) -> None:
        if not listener.active:
            return

        try:
            if listener.is_query:
                value = self._read_collection(listener.target)
            else:
                value = self._read_document(listener.target)
        except Exception as e:
            error = handle_store_error(e, f"Subscription to {listener.target}")
            logger.warning(f"Change feed error for {listener.target}: {error.message}")
            listener.on_error(error)
            return

        if only_if_changed and listener.last is not _UNSET and listener.last == value:
            return
        listener.last = copy.deepcopy(value)

        if listener.is_query:
            listener.on_change(
                [DocumentSnapshot(p, copy.deepcopy(d)) for p, d in sorted(value.items())]
            )
        else:
            listener.on_change(DocumentSnapshot(listener.target, copy.deepcopy(value)))


# ============================================================
# In-memory backend (development / tests)
# ============================================================

class InMemoryDocumentStore(ChangeFeedStore):

    def __init__(self, documents: Optional[Dict[str, dict]] = None):
        super().__init__()
        self._documents: Dict[str, dict] = copy.deepcopy(documents or {})

    def _read_document(self, path):
        data = self._documents.get(path)
        return copy.deepcopy(data) if data is not None else None

    def _read_collection(self, collection_path):
        return {
            path: copy.deepcopy(data)
            for path, data in self._documents.items()
            if parent_collection(path) == collection_path
        }

    def _compare_and_write(self, path, data, version):
        # Single process: the change-feed lock already serializes writers
        self._documents[path] = copy.deepcopy(data)
        return True

    def _remove_document(self, path):
        self._documents.pop(path, None)

    # Test/inspection helper: raw stored data, no delivery
    def peek(self, path: str) -> Optional[dict]:
        return self._read_document(path)

    def put_remote(self, path: str, data: Optional[dict]) -> None:
        """
        Simulate a write made by another client: the data changes but
        nobody is notified until refresh().
        """
        if data is None:
            self._documents.pop(path, None)
        else:
            self._documents[path] = copy.deepcopy(data)
