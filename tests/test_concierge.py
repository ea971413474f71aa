# tests/test_concierge.py

"""
Tests for the concierge desk (wake-up calls, taxis, lost & found).
"""

import pytest

from core.errors import NotFound
from models.concierge import (
    LostItem,
    LostItemCreate,
    TaxiBooking,
    TaxiBookingCreate,
    WakeUpCall,
    WakeUpCallCreate,
)
from models.enums import LostItemStatus, TaxiStatus
from services.concierge import ConciergeRepository, add_taxi, add_wakeup, filter_lost_items


def test_add_wakeup_keeps_time_order():
    calls = [WakeUpCall(id="a", room_number="12", time="07:00")]
    calls = add_wakeup(calls, WakeUpCall(id="b", room_number="3", time="06:15"))

    assert [c.id for c in calls] == ["b", "a"]


def test_filter_lost_items():
    items = [
        LostItem(id="1", description="Parapluie", location_found="Hall", date_found="2026-03-01"),
        LostItem(
            id="2",
            description="Montre",
            location_found="Spa",
            date_found="2026-03-02",
            status=LostItemStatus.returned,
        ),
    ]

    assert [i.id for i in filter_lost_items(items, LostItemStatus.stored)] == ["1"]
    assert len(filter_lost_items(items)) == 2


def test_repository_wakeups_sorted(store):
    repo = ConciergeRepository(store)
    repo.create_wakeup(WakeUpCallCreate(room_number="12", time="07:30"))
    repo.create_wakeup(WakeUpCallCreate(room_number=" 4 ", time="06:00"))

    calls = repo.list_wakeups()
    assert [c.room_number for c in calls] == ["4", "12"]
    assert all(c.completed is False for c in calls)


def test_repository_taxis(store):
    repo = ConciergeRepository(store)
    booking = repo.create_taxi(
        TaxiBookingCreate(client_name="M. Durand", pickup_time="09:00", destination="Gare de Lyon")
    )

    assert booking.status == TaxiStatus.confirmed
    assert repo.list_taxis()[0].destination == "Gare de Lyon"


def test_repository_lost_item_status(store):
    repo = ConciergeRepository(store)
    item = repo.create_lost_item(
        LostItemCreate(description="Écharpe", location_found="Bar", date_found="2026-03-10")
    )

    updated = repo.set_lost_item_status(item.id, LostItemStatus.returned)

    assert updated.status == LostItemStatus.returned
    assert repo.list_lost_items(LostItemStatus.stored) == []


def test_repository_unknown_lost_item(store):
    with pytest.raises(NotFound):
        ConciergeRepository(store).set_lost_item_status("lost-x", LostItemStatus.returned)


def test_add_taxi_keeps_pickup_order():
    bookings = [TaxiBooking(id="a", client_name="Durand", pickup_time="18:00", destination="Orly")]
    bookings = add_taxi(bookings, TaxiBooking(id="b", client_name="Martin", pickup_time="09:30", destination="CDG"))

    assert [b.id for b in bookings] == ["b", "a"]
