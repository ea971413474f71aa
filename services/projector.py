# services/projector.py

"""
Live projections: subscribe to a document or collection in the store,
pass every change through a sanitizer and republish a consistent local
snapshot to consumers.

    projection = LiveProjection.of_document(store, "users/u1", decode)
    unsubscribe = projection.add_listener(render)
    ...
    projection.close()

Rules:
  • a published value has always been through the store's change feed,
    except an explicit overlay, which lives until the next snapshot
  • an error never clears the last good value; it sets a sticky `error`
    that the next good snapshot clears
"""

from typing import Callable, Generic, List, Optional, TypeVar

from core.errors import StoreUnavailable, handle_store_error
from core.logging_config import logger
from core.store import DocumentSnapshot, DocumentStore

T = TypeVar("T")


class LiveProjection(Generic[T]):

    def __init__(self, initial: Optional[T] = None):
        self.value: Optional[T] = initial
        self.error: Optional[StoreUnavailable] = None
        self.loading = True
        self.closed = False
        self._overlay: Optional[T] = None
        self._has_overlay = False
        self._listeners: List[Callable[[Optional[T]], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._delivery = 0

    # -------------------------------------------------
    # Construction
    # -------------------------------------------------
    @classmethod
    def of_document(
        cls,
        store: DocumentStore,
        path: str,
        sanitize: Callable[[DocumentSnapshot], T],
        initial: Optional[T] = None,
    ) -> "LiveProjection[T]":
        projection = cls(initial)
        projection._start(
            lambda on_change, on_error: store.subscribe_snapshot(path, on_change, on_error),
            sanitize,
        )
        return projection

    @classmethod
    def of_collection(
        cls,
        store: DocumentStore,
        collection_path: str,
        sanitize: Callable[[List[DocumentSnapshot]], T],
        initial: Optional[T] = None,
    ) -> "LiveProjection[T]":
        projection = cls(initial)
        projection._start(
            lambda on_change, on_error: store.subscribe_query(collection_path, on_change, on_error),
            sanitize,
        )
        return projection

    def _start(self, subscribe, sanitize) -> None:
        self._sanitize = sanitize
        unsubscribe = subscribe(self._on_change, self._on_error)
        # The store may already have delivered (and we may have closed) during subscribe
        if self.closed:
            unsubscribe()
        else:
            self._unsubscribe = unsubscribe

    # -------------------------------------------------
    # Consumer side
    # -------------------------------------------------
    @property
    def current(self) -> Optional[T]:
        """The overlay if one is pending, otherwise the last confirmed value."""
        return self._overlay if self._has_overlay else self.value

    def add_listener(self, listener: Callable[[Optional[T]], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def overlay(self, value: T) -> None:
        """Show `value` optimistically until the next store snapshot supersedes it."""
        self._overlay = value
        self._has_overlay = True
        self._publish()

    def clear_overlay(self) -> None:
        if self._has_overlay:
            self._overlay = None
            self._has_overlay = False
            self._publish()

    def close(self) -> None:
        self.closed = True
        self._listeners.clear()
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # -------------------------------------------------
    # Store side
    # -------------------------------------------------
    def _on_change(self, raw) -> None:
        if self.closed:
            return
        self._delivery += 1
        delivery = self._delivery
        try:
            value = self.handle_snapshot(raw)
        except Exception as e:
            self._on_error(e)
            return

        # A newer snapshot was applied while this one was being handled
        if delivery != self._delivery:
            return

        self.value = value
        self._overlay = None
        self._has_overlay = False
        self.error = None
        self.loading = False
        self._publish()

    def _on_error(self, error: Exception) -> None:
        if self.closed:
            return
        self.error = handle_store_error(error, "Live projection")
        self.loading = False
        logger.warning(f"Projection error, keeping last known value: {self.error.message}")
        self._publish()

    def handle_snapshot(self, raw) -> T:
        """Hook for specializations; default is the sanitizer alone."""
        return self._sanitize(raw)

    def _publish(self) -> None:
        current = self.current
        for listener in list(self._listeners):
            listener(current)
