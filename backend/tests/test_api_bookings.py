from fastapi.testclient import TestClient

import pytest

from app.db.session import SessionLocal
from app.main import app
from app.models.closed_day import ClosedDay
from app.services.notifier import get_notifier

from helpers import RecordingNotifier, booking_payload, seed_discount, seed_slot, seed_tour

client = TestClient(app)


@pytest.fixture
def notifier():
    recorder = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_notifier, None)


def test_health():
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_public_tours_hide_inactive():
    active = seed_tour()
    seed_tour(is_active=False)
    r = client.get("/api/tours")
    assert r.status_code == 200
    assert [t["id"] for t in r.json()] == [active]
    assert r.json()[0]["name"] == {"en": "Alfama Walk", "pt": "", "ru": ""}
    assert client.get("/api/tours/9999").status_code == 404


def test_availabilities_and_calendar():
    tour_id = seed_tour()
    seed_slot(tour_id, "2099-05-04", "10:00")
    seed_slot(tour_id, "2099-05-04", "09:00")
    seed_slot(tour_id, "2099-05-06", "10:00", max_spots=3, spots_left=0)
    r = client.get("/api/availabilities", params={"tourId": tour_id, "date": "2099-05-04"})
    assert r.status_code == 200
    assert [s["time"] for s in r.json()] == ["09:00", "10:00"]

    r = client.get("/api/availabilities/calendar", params={"tourId": tour_id, "dateFrom": "2099-05-03", "dateTo": "2099-05-09"})
    assert r.status_code == 200
    assert r.json() == {"available_dates": ["2099-05-04"], "disabled_weekdays": [0, 2, 3, 4, 5, 6]}

    r = client.get("/api/availabilities", params={"tourId": tour_id, "dateFrom": "not-a-date"})
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"


def test_quote_has_no_side_effects():
    tour_id = seed_tour()
    seed_discount("WELCOME10", "percentage", 10, usage_limit=1)
    for _ in range(3):
        r = client.post("/api/bookings/quote", json={"tour_id": tour_id, "number_of_participants": 2, "discount_code": "welcome10"})
        assert r.status_code == 200
        assert r.json()["total_amount"] == 3600
        assert r.json()["applied_discount"]["code"] == "WELCOME10"


def test_booking_round_trip_by_reference(notifier):
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id, max_spots=4)
    r = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 3))
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["total_amount"] == 6000
    assert created["booking_status"] == "requested"
    assert created["payment_status"] == "unpaid"
    assert created["details"]["requested_date"] == "2099-03-10"
    assert notifier.kinds() == ["requested"]
    assert notifier.sent[0][1].to == "ana@example.com"

    r = client.get(f"/api/bookings/reference/{created['booking_reference'].lower()}")
    assert r.status_code == 200
    assert r.json()["id"] == created["id"]
    assert client.get("/api/bookings/reference/LT-XXXXXXX").status_code == 404

    slots = client.get("/api/availabilities", params={"tourId": tour_id}).json()
    assert slots[0]["spots_left"] == 1


def test_booking_errors_are_typed(notifier):
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id, max_spots=2)
    r = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 3))
    assert r.status_code == 409
    assert r.json()["error"] == "capacity_exceeded"

    r = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 1, code="NOPE"))
    assert r.status_code == 400
    assert r.json()["error"] == "discount_invalid"

    r = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 1, customer_email="not-an-email"))
    assert r.status_code == 422
    assert notifier.sent == []


def test_closed_day_blocks_listing():
    tour_id = seed_tour()
    seed_slot(tour_id, "2025-06-01", "10:00", max_spots=5)
    db = SessionLocal()
    db.add(ClosedDay(date="2025-06-01", reason="Holiday"))
    db.commit()
    db.close()
    r = client.get("/api/availabilities", params={"tourId": tour_id, "date": "2025-06-01"})
    assert r.status_code == 200
    assert r.json() == []
    assert client.get("/api/closed-days").json()[0]["date"] == "2025-06-01"


def test_review_submission_once_per_booking(notifier):
    tour_id = seed_tour()
    slot_id = seed_slot(tour_id)
    ref = client.post("/api/bookings", json=booking_payload(tour_id, slot_id, 1)).json()["booking_reference"]
    review = {"customer_name": "Ana", "customer_country": "Portugal", "rating": 5, "text": "Lovely"}
    r = client.post(f"/api/reviews/{ref}", json=review)
    assert r.status_code == 201
    assert r.json()["status"] == "pending"
    r = client.post(f"/api/reviews/{ref}", json=review)
    assert r.status_code == 409
    assert client.post("/api/reviews/LT-0000000", json=review).status_code == 404
    # unapproved reviews stay hidden
    assert client.get("/api/testimonials", params={"tourId": tour_id}).json() == []
