# routers/concierge.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from core.store import DocumentStore
from dependencies.auth import get_store, requires_capability
from models.concierge import (
    LostItem,
    LostItemCreate,
    LostItemStatusUpdate,
    TaxiBooking,
    TaxiBookingCreate,
    WakeUpCall,
    WakeUpCallCreate,
)
from models.enums import LostItemStatus
from services.concierge import ConciergeRepository


router = APIRouter(
    prefix="/concierge",
    tags=["Concierge"],
    dependencies=[Depends(requires_capability("can_view_reception"))],
)


def get_repository(store: DocumentStore = Depends(get_store)) -> ConciergeRepository:
    return ConciergeRepository(store)


# -----------------------------------------------------
# WAKE-UP CALLS
# -----------------------------------------------------
@router.get("/wakeups", response_model=List[WakeUpCall])
def list_wakeups(repo: ConciergeRepository = Depends(get_repository)):
    return repo.list_wakeups()


@router.post("/wakeups", response_model=WakeUpCall, status_code=201)
def create_wakeup(payload: WakeUpCallCreate, repo: ConciergeRepository = Depends(get_repository)):
    return repo.create_wakeup(payload)


# -----------------------------------------------------
# TAXIS
# -----------------------------------------------------
@router.get("/taxis", response_model=List[TaxiBooking])
def list_taxis(repo: ConciergeRepository = Depends(get_repository)):
    return repo.list_taxis()


@router.post("/taxis", response_model=TaxiBooking, status_code=201)
def create_taxi(payload: TaxiBookingCreate, repo: ConciergeRepository = Depends(get_repository)):
    return repo.create_taxi(payload)


# -----------------------------------------------------
# LOST & FOUND
# -----------------------------------------------------
@router.get("/lost-items", response_model=List[LostItem])
def list_lost_items(
    status: Optional[LostItemStatus] = None,
    repo: ConciergeRepository = Depends(get_repository),
):
    return repo.list_lost_items(status)


@router.post("/lost-items", response_model=LostItem, status_code=201)
def create_lost_item(payload: LostItemCreate, repo: ConciergeRepository = Depends(get_repository)):
    return repo.create_lost_item(payload)


@router.patch("/lost-items/{item_id}", response_model=LostItem)
def update_lost_item(
    item_id: str,
    payload: LostItemStatusUpdate,
    repo: ConciergeRepository = Depends(get_repository),
):
    return repo.set_lost_item_status(item_id, payload.status)
