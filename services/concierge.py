# services/concierge.py

import uuid
from typing import List, Optional, Type, TypeVar

from core.errors import NotFound
from core.store import DocumentStore, doc_path
from models.base import DocumentModel
from models.concierge import (
    LostItem,
    LostItemCreate,
    TaxiBooking,
    TaxiBookingCreate,
    WakeUpCall,
    WakeUpCallCreate,
)
from models.enums import LostItemStatus

M = TypeVar("M", bound=DocumentModel)

WAKEUPS_COLLECTION = "wakeups"
TAXIS_COLLECTION = "taxis"
LOST_ITEMS_COLLECTION = "lost_items"


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# -----------------------------------------------------
# Pure helpers
# -----------------------------------------------------
def add_wakeup(calls: List[WakeUpCall], call: WakeUpCall) -> List[WakeUpCall]:
    return sorted([*calls, call], key=lambda c: c.time)


def add_taxi(bookings: List[TaxiBooking], booking: TaxiBooking) -> List[TaxiBooking]:
    return sorted([*bookings, booking], key=lambda b: b.pickup_time)


def filter_lost_items(items: List[LostItem], status: Optional[LostItemStatus] = None) -> List[LostItem]:
    if status is None:
        return list(items)
    return [i for i in items if i.status == status]


# -----------------------------------------------------
# Persistence
# -----------------------------------------------------
class ConciergeRepository:

    def __init__(self, store: DocumentStore):
        self.store = store

    def _list(self, collection: str, model: Type[M]) -> List[M]:
        return [
            model.model_validate({"id": snap.id, **snap.data})
            for snap in self.store.get_collection(collection)
            if snap.exists
        ]

    def _save(self, collection: str, item: DocumentModel) -> None:
        doc = item.to_document()
        item_id = doc.pop("id")
        self.store.merge_write(doc_path(collection, item_id), doc)

    # Wake-up calls
    def list_wakeups(self) -> List[WakeUpCall]:
        return sorted(self._list(WAKEUPS_COLLECTION, WakeUpCall), key=lambda c: c.time)

    def create_wakeup(self, payload: WakeUpCallCreate) -> WakeUpCall:
        call = WakeUpCall(id=_new_id("wk"), room_number=payload.room_number.strip(), time=payload.time)
        self._save(WAKEUPS_COLLECTION, call)
        return call

    # Taxis
    def list_taxis(self) -> List[TaxiBooking]:
        return sorted(self._list(TAXIS_COLLECTION, TaxiBooking), key=lambda b: b.pickup_time)

    def create_taxi(self, payload: TaxiBookingCreate) -> TaxiBooking:
        booking = TaxiBooking(id=_new_id("taxi"), **payload.model_dump())
        self._save(TAXIS_COLLECTION, booking)
        return booking

    # Lost & found
    def list_lost_items(self, status: Optional[LostItemStatus] = None) -> List[LostItem]:
        items = sorted(
            self._list(LOST_ITEMS_COLLECTION, LostItem),
            key=lambda i: i.date_found,
            reverse=True,
        )
        return filter_lost_items(items, status)

    def create_lost_item(self, payload: LostItemCreate) -> LostItem:
        item = LostItem(id=_new_id("lost"), **payload.model_dump())
        self._save(LOST_ITEMS_COLLECTION, item)
        return item

    def set_lost_item_status(self, item_id: str, status: LostItemStatus) -> LostItem:
        path = doc_path(LOST_ITEMS_COLLECTION, item_id)
        data = self.store.get(path)
        if data is None:
            raise NotFound("Lost item not found")
        self.store.merge_write(path, {"status": status.value})
        return LostItem.model_validate({"id": item_id, **data, "status": status.value})
