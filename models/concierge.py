# models/concierge.py

from typing import Optional

from models.base import DocumentModel
from models.enums import TaxiStatus, LostItemStatus


class WakeUpCall(DocumentModel):
    id: str
    room_number: str
    time: str           # HH:MM
    completed: bool = False


class WakeUpCallCreate(DocumentModel):
    room_number: str
    time: str


class TaxiBooking(DocumentModel):
    id: str
    client_name: str
    pickup_time: str    # HH:MM
    destination: str
    company: Optional[str] = None
    status: TaxiStatus = TaxiStatus.confirmed


class TaxiBookingCreate(DocumentModel):
    client_name: str
    pickup_time: str
    destination: str
    company: Optional[str] = None


class LostItem(DocumentModel):
    id: str
    description: str
    location_found: str
    date_found: str     # YYYY-MM-DD
    finder: Optional[str] = None
    # Opaque reference into blob storage
    photo_url: Optional[str] = None
    status: LostItemStatus = LostItemStatus.stored


class LostItemCreate(DocumentModel):
    description: str
    location_found: str
    date_found: str
    finder: Optional[str] = None
    photo_url: Optional[str] = None


class LostItemStatusUpdate(DocumentModel):
    status: LostItemStatus
